from __future__ import annotations

import asyncio
import logging

from .checkin import CheckInCoordinator
from .models import CHECK_IN_MESSAGES, CheckInOutcome, CheckInResult, VerificationVerdict
from .state import ScanState, ScanStateMachine
from .verification import VerificationEngine

logger = logging.getLogger(__name__)

_OUTCOME_STATES: dict[CheckInOutcome, ScanState] = {
    CheckInOutcome.CHECKED_IN: ScanState.USED,
    CheckInOutcome.ALREADY_USED: ScanState.ALREADY_USED,
}


class CheckInDesk:
    """Verification state for one gate device.

    Holds the most recent verdict so that a check-in is only attempted for a
    ticket that was just verified as valid. Scans, manual entries and check-ins
    on one desk run one at a time, in arrival order.
    """

    def __init__(self, engine: VerificationEngine, coordinator: CheckInCoordinator, *, actor: str) -> None:
        self._engine = engine
        self._coordinator = coordinator
        self._actor = actor
        self._lock = asyncio.Lock()
        self._verdict: VerificationVerdict | None = None
        self._state = ScanStateMachine.initial_state()

    @property
    def verdict(self) -> VerificationVerdict | None:
        return self._verdict

    @property
    def state(self) -> ScanState:
        return self._state

    def reset(self) -> None:
        self._verdict = None
        self._state = ScanStateMachine.initial_state()

    async def submit_scan(self, code: str) -> VerificationVerdict:
        async with self._lock:
            self.reset()
            return self._remember(await self._engine.verify(code))

    async def submit_manual(self, ticket_id: str) -> VerificationVerdict:
        async with self._lock:
            self.reset()
            return self._remember(await self._engine.verify_manual(ticket_id))

    async def check_in(self) -> CheckInResult:
        async with self._lock:
            verdict = self._verdict
            if verdict is None or self._state is not ScanState.VALID or verdict.identity is None:
                return CheckInResult(
                    outcome=CheckInOutcome.NOT_ELIGIBLE,
                    message=CHECK_IN_MESSAGES[CheckInOutcome.NOT_ELIGIBLE],
                    identity=None if verdict is None else verdict.identity,
                )

            result = await self._coordinator.check_in(verdict.identity, actor=self._actor)
            new_state = _OUTCOME_STATES.get(result.outcome)
            if new_state is None:
                return result
            if self._verdict is not verdict or not ScanStateMachine.can_transition(self._state, new_state):
                # the operator cleared the desk meanwhile; the registry result still stands
                logger.info(
                    "Desk %s moved on before ticket %s finished checking in",
                    self._actor,
                    verdict.identity.ticket_id,
                )
                return result

            self._state = new_state
            # show the operator what the registry now holds
            refreshed = await self._engine.verify_identity(verdict.identity)
            if self._verdict is verdict:
                self._verdict = refreshed
            return result

    def _remember(self, verdict: VerificationVerdict) -> VerificationVerdict:
        ScanStateMachine.assert_transition(self._state, verdict.state)
        self._verdict = verdict
        self._state = verdict.state
        logger.debug("Desk %s now holds %s verdict", self._actor, verdict.kind.value)
        return verdict
