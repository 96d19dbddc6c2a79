from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ticketgate.api.schemas import (
    CheckInResponse,
    ManualVerifyRequest,
    ScanCodeRequest,
    VerdictResponse,
    check_in_response,
    verdict_response,
)
from ticketgate.dependencies.tickets import CoordinatorDep, EngineDep, StaffUser
from ticketgate.tickets.desk import CheckInDesk
from ticketgate.tickets.models import CheckInOutcome, VerdictKind, VerificationVerdict

router = APIRouter(tags=["verification"])

_REFUSED_VERDICT_STATUS: dict[VerdictKind, int] = {
    VerdictKind.ALREADY_USED: status.HTTP_409_CONFLICT,
    VerdictKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    VerdictKind.MALFORMED: 422,
    VerdictKind.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_CHECK_IN_STATUS: dict[CheckInOutcome, int] = {
    CheckInOutcome.ALREADY_USED: status.HTTP_409_CONFLICT,
    CheckInOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CheckInOutcome.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    CheckInOutcome.NOT_ELIGIBLE: status.HTTP_409_CONFLICT,
}


def _to_response(verdict: VerificationVerdict) -> VerdictResponse:
    if verdict.kind is VerdictKind.UNAVAILABLE:
        raise HTTPException(status_code=503, detail=verdict.message)
    return verdict_response(verdict)


@router.post("/verify", response_model=VerdictResponse)
async def verify_code(payload: ScanCodeRequest, engine: EngineDep, _: StaffUser) -> VerdictResponse:
    return _to_response(await engine.verify(payload.code))


@router.post("/verify/manual", response_model=VerdictResponse)
async def verify_manual(payload: ManualVerifyRequest, engine: EngineDep, _: StaffUser) -> VerdictResponse:
    return _to_response(await engine.verify_manual(payload.ticket_id))


@router.post("/check-in", response_model=CheckInResponse)
async def check_in(
    payload: ScanCodeRequest, engine: EngineDep, coordinator: CoordinatorDep, user: StaffUser
) -> CheckInResponse:
    """Verify ``code`` and, only if the verdict is valid, check the ticket in.

    HTTP callers hold no desk between requests, so every request gets a fresh
    one and goes through the same verify-then-check-in sequence as a scanner.
    """

    desk = CheckInDesk(engine, coordinator, actor=user.username)
    verdict = await desk.submit_scan(payload.code)
    refused = _REFUSED_VERDICT_STATUS.get(verdict.kind)
    if refused is not None:
        raise HTTPException(status_code=refused, detail=verdict.message)

    result = await desk.check_in()
    status_code = _CHECK_IN_STATUS.get(result.outcome)
    if status_code is not None:
        raise HTTPException(status_code=status_code, detail=result.message)
    return check_in_response(result)
