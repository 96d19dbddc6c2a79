"""Scan code encoding for ticket identities.

A scan code is the plain-text payload carried by a ticket's QR code::

    <ticket_id>-<contract_address>-<network_id>

There is no escaping, so no field may contain the separator. Identities that do
are rejected when a ticket is issued and when a code is encoded.
"""

from __future__ import annotations

from .models import TicketIdentity

SEPARATOR = "-"
FIELD_COUNT = 3


class MalformedCodeError(ValueError):
    """Raised when a scanned string is not a well formed scan code."""


class InvalidTicketIdentityError(ValueError):
    """Raised when an identity cannot be represented as a scan code."""


def validate_identity(identity: TicketIdentity) -> TicketIdentity:
    fields = {
        "ticket_id": identity.ticket_id,
        "contract_address": identity.contract_address,
        "network_id": identity.network_id,
    }
    for name, value in fields.items():
        if not value:
            raise InvalidTicketIdentityError(f"{name} must not be empty")
        if SEPARATOR in value:
            raise InvalidTicketIdentityError(f"{name} must not contain {SEPARATOR!r}: {value!r}")
    return identity


def encode(identity: TicketIdentity) -> str:
    validate_identity(identity)
    return SEPARATOR.join((identity.ticket_id, identity.contract_address, identity.network_id))


def decode(code: str) -> TicketIdentity:
    parts = code.split(SEPARATOR)
    if len(parts) != FIELD_COUNT:
        raise MalformedCodeError(f"Expected {FIELD_COUNT} fields in scan code, got {len(parts)}")
    ticket_id, contract_address, network_id = parts
    return TicketIdentity(ticket_id=ticket_id, contract_address=contract_address, network_id=network_id)
