"""Ticket verification and check-in domain."""

from .checkin import CheckInCoordinator
from .codec import InvalidTicketIdentityError, MalformedCodeError, decode, encode
from .desk import CheckInDesk
from .models import (
    CheckInOutcome,
    CheckInResult,
    Ticket,
    TicketIdentity,
    VerdictKind,
    VerificationVerdict,
)
from .registry import (
    DuplicateTicketError,
    InMemoryTicketRegistry,
    PostgresTicketRegistry,
    RegistryError,
    RegistryUnavailableError,
    TicketAlreadyUsedError,
    TicketNotFoundError,
    TicketRegistry,
)
from .state import ScanState, ScanStateMachine
from .verification import VerificationEngine

__all__ = [
    "CheckInCoordinator",
    "CheckInDesk",
    "CheckInOutcome",
    "CheckInResult",
    "DuplicateTicketError",
    "InMemoryTicketRegistry",
    "InvalidTicketIdentityError",
    "MalformedCodeError",
    "PostgresTicketRegistry",
    "RegistryError",
    "RegistryUnavailableError",
    "ScanState",
    "ScanStateMachine",
    "Ticket",
    "TicketAlreadyUsedError",
    "TicketIdentity",
    "TicketNotFoundError",
    "TicketRegistry",
    "VerdictKind",
    "VerificationEngine",
    "VerificationVerdict",
    "decode",
    "encode",
]
