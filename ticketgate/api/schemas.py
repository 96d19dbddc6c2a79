from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ticketgate.tickets import codec
from ticketgate.tickets.models import (
    CheckInOutcome,
    CheckInResult,
    Ticket,
    VerdictKind,
    VerificationVerdict,
)


class ScanCodeRequest(BaseModel):
    code: str = Field(..., max_length=512)


class ManualVerifyRequest(BaseModel):
    ticket_id: str = Field(..., max_length=128)


class TicketResponse(BaseModel):
    ticket_id: str
    contract_address: str
    network_id: str
    scan_code: str
    owner_address: str
    event_id: str
    event_name: str
    venue: str
    event_starts_at: datetime | None
    used: bool
    used_at: datetime | None
    checked_in_by: str | None
    qr_data_url: str | None = None


class VerdictResponse(BaseModel):
    verdict: VerdictKind
    message: str
    raw_input: str
    ticket_id: str | None = None
    contract_address: str | None = None
    network_id: str | None = None
    exists: bool
    used: bool
    ticket: TicketResponse | None = None
    checked_at: datetime


class CheckInResponse(BaseModel):
    outcome: CheckInOutcome
    message: str
    ticket: TicketResponse | None = None


def ticket_response(ticket: Ticket, *, qr_data_url: str | None = None) -> TicketResponse:
    identity = ticket.identity
    return TicketResponse(
        ticket_id=identity.ticket_id,
        contract_address=identity.contract_address,
        network_id=identity.network_id,
        scan_code=codec.encode(identity),
        owner_address=ticket.owner_address,
        event_id=ticket.event_id,
        event_name=ticket.event_name,
        venue=ticket.venue,
        event_starts_at=ticket.event_starts_at,
        used=ticket.used,
        used_at=ticket.used_at,
        checked_in_by=ticket.checked_in_by,
        qr_data_url=qr_data_url,
    )


def verdict_response(verdict: VerificationVerdict) -> VerdictResponse:
    identity = verdict.identity
    return VerdictResponse(
        verdict=verdict.kind,
        message=verdict.message,
        raw_input=verdict.raw_input,
        ticket_id=None if identity is None else identity.ticket_id,
        contract_address=None if identity is None else identity.contract_address,
        network_id=None if identity is None else identity.network_id,
        exists=verdict.exists,
        used=verdict.used,
        ticket=None if verdict.ticket is None else ticket_response(verdict.ticket),
        checked_at=verdict.checked_at,
    )


def check_in_response(result: CheckInResult) -> CheckInResponse:
    return CheckInResponse(
        outcome=result.outcome,
        message=result.message,
        ticket=None if result.ticket is None else ticket_response(result.ticket),
    )
