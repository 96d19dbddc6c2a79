"""Sample tickets loaded into the in-memory registry for local development."""

from __future__ import annotations

from datetime import datetime, timezone

from .models import Ticket, TicketIdentity

DEMO_OWNER_ADDRESS = "0x1234000000000000000000000000000000005678"


def demo_tickets(contract_address: str, network_id: str) -> list[Ticket]:
    def identity(ticket_id: str) -> TicketIdentity:
        return TicketIdentity(ticket_id=ticket_id, contract_address=contract_address, network_id=network_id)

    return [
        Ticket(
            identity=identity("12345"),
            owner_address=DEMO_OWNER_ADDRESS,
            event_id="0",
            event_name="Base Workshop Meet 3",
            venue="Jakarta, Indonesia",
            event_starts_at=datetime(2026, 11, 14, 9, 0, tzinfo=timezone.utc),
        ),
        Ticket(
            identity=identity("12346"),
            owner_address=DEMO_OWNER_ADDRESS,
            event_id="1",
            event_name="Base Developer Conference",
            venue="San Francisco, CA",
            event_starts_at=datetime(2026, 11, 21, 17, 0, tzinfo=timezone.utc),
            used=True,
            used_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
            checked_in_by="seed",
        ),
    ]
