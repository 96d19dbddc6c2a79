from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .state import ScanState


@dataclass(frozen=True, slots=True)
class TicketIdentity:
    """The (ticket id, contract, network) triple naming a minted ticket."""

    ticket_id: str
    contract_address: str
    network_id: str


@dataclass(slots=True)
class Ticket:
    """Registry-side record of a minted ticket and its consumption state."""

    identity: TicketIdentity
    owner_address: str
    event_id: str
    event_name: str
    venue: str = ""
    event_starts_at: datetime | None = None
    used: bool = False
    exists: bool = True
    used_at: datetime | None = None
    checked_in_by: str | None = None


class VerdictKind(str, Enum):
    """Classification of a scanned or typed code."""

    VALID = "valid"
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    UNAVAILABLE = "registry_unavailable"


VERDICT_MESSAGES: dict[VerdictKind, str] = {
    VerdictKind.VALID: "Valid ticket",
    VerdictKind.ALREADY_USED: "Ticket has already been checked in",
    VerdictKind.NOT_FOUND: "This ticket does not exist or has been revoked.",
    VerdictKind.MALFORMED: "Invalid QR code format",
    VerdictKind.UNAVAILABLE: "Ticket registry is unavailable, please retry",
}

_VERDICT_STATES: dict[VerdictKind, ScanState] = {
    VerdictKind.VALID: ScanState.VALID,
    VerdictKind.ALREADY_USED: ScanState.ALREADY_USED,
    VerdictKind.NOT_FOUND: ScanState.NOT_FOUND,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class VerificationVerdict:
    """Snapshot of a ticket's state at the moment a code was checked."""

    kind: VerdictKind
    raw_input: str
    message: str
    identity: TicketIdentity | None = None
    ticket: Ticket | None = None
    checked_at: datetime = field(default_factory=_utcnow)

    @property
    def is_valid(self) -> bool:
        return self.kind is VerdictKind.VALID

    @property
    def exists(self) -> bool:
        return self.ticket is not None and self.ticket.exists

    @property
    def used(self) -> bool:
        return self.ticket is not None and self.ticket.used

    @property
    def state(self) -> ScanState:
        # malformed input and outages say nothing about the ticket itself
        return _VERDICT_STATES.get(self.kind, ScanState.UNKNOWN)


class CheckInOutcome(str, Enum):
    """Result of an attempt to consume a ticket."""

    CHECKED_IN = "checked_in"
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "registry_unavailable"
    NOT_ELIGIBLE = "not_eligible"


CHECK_IN_MESSAGES: dict[CheckInOutcome, str] = {
    CheckInOutcome.CHECKED_IN: "Ticket checked in successfully!",
    CheckInOutcome.ALREADY_USED: "Ticket was already checked in at another entrance",
    CheckInOutcome.NOT_FOUND: "This ticket does not exist or has been revoked.",
    CheckInOutcome.UNAVAILABLE: "Ticket registry is unavailable, please retry",
    CheckInOutcome.NOT_ELIGIBLE: "Verify a valid ticket before checking in",
}


@dataclass(frozen=True, slots=True)
class CheckInResult:
    """Tagged outcome returned by the check-in coordinator."""

    outcome: CheckInOutcome
    message: str
    identity: TicketIdentity | None = None
    ticket: Ticket | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is CheckInOutcome.CHECKED_IN
