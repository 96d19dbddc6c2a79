from __future__ import annotations

import pytest

from ticketgate.metrics import create_metrics_registry
from ticketgate.tickets.checkin import CheckInCoordinator
from ticketgate.tickets.models import Ticket, TicketIdentity
from ticketgate.tickets.registry import InMemoryTicketRegistry
from ticketgate.tickets.verification import VerificationEngine

CONTRACT = "0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14"
NETWORK = "84532"
OWNER = "0x1234000000000000000000000000000000005678"


@pytest.fixture
def make_ticket():
    def factory(ticket_id: str = "12345", *, used: bool = False, owner: str = OWNER) -> Ticket:
        return Ticket(
            identity=TicketIdentity(ticket_id=ticket_id, contract_address=CONTRACT, network_id=NETWORK),
            owner_address=owner,
            event_id="0",
            event_name="Base Workshop Meet 3",
            venue="Jakarta, Indonesia",
            used=used,
        )

    return factory


@pytest.fixture
def registry(make_ticket) -> InMemoryTicketRegistry:
    return InMemoryTicketRegistry([make_ticket("12345"), make_ticket("12346", used=True)])


@pytest.fixture
def metrics():
    return create_metrics_registry()


@pytest.fixture
def engine(registry, metrics) -> VerificationEngine:
    return VerificationEngine(registry, contract_address=CONTRACT, network_id=NETWORK, timeout=1.0, metrics=metrics)


@pytest.fixture
def coordinator(registry, metrics) -> CheckInCoordinator:
    return CheckInCoordinator(registry, timeout=1.0, metrics=metrics)
