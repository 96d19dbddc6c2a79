from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence
from uuid import uuid4

import asyncpg

from .codec import validate_identity
from .models import Ticket, TicketIdentity

logger = logging.getLogger(__name__)


class RegistryError(RuntimeError):
    """Base error for ticket registry issues."""


class TicketNotFoundError(RegistryError):
    """Raised when an identity does not resolve to a minted ticket."""


class TicketAlreadyUsedError(RegistryError):
    """Raised when a check-in loses the race against an earlier one."""


class DuplicateTicketError(RegistryError):
    """Raised when issuing a ticket whose identity is already registered."""


class RegistryUnavailableError(RegistryError):
    """Raised when the backing store cannot be reached."""


class TicketRegistry(Protocol):
    """Authoritative store of ticket ownership and consumption state."""

    async def lookup(self, identity: TicketIdentity) -> Ticket | None:
        ...

    async def mark_used(self, identity: TicketIdentity, *, actor: str) -> Ticket:
        ...

    async def issue(self, ticket: Ticket) -> Ticket:
        ...

    async def list_owned(self, owner_address: str) -> list[Ticket]:
        ...

    async def ping(self) -> bool:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryTicketRegistry:
    """Process-local registry used for development and tests."""

    def __init__(self, tickets: Sequence[Ticket] = ()) -> None:
        self._tickets: dict[TicketIdentity, Ticket] = {}
        self._lock = asyncio.Lock()
        for ticket in tickets:
            validate_identity(ticket.identity)
            self._tickets[ticket.identity] = replace(ticket)

    async def lookup(self, identity: TicketIdentity) -> Ticket | None:
        ticket = self._tickets.get(identity)
        return None if ticket is None else replace(ticket)

    async def mark_used(self, identity: TicketIdentity, *, actor: str) -> Ticket:
        # yield first so racing callers genuinely interleave before the lock
        await asyncio.sleep(0)
        async with self._lock:
            ticket = self._tickets.get(identity)
            if ticket is None:
                raise TicketNotFoundError(f"Ticket {identity.ticket_id} not found")
            if ticket.used:
                raise TicketAlreadyUsedError(f"Ticket {identity.ticket_id} already used")
            ticket.used = True
            ticket.used_at = _utcnow()
            ticket.checked_in_by = actor
            return replace(ticket)

    async def issue(self, ticket: Ticket) -> Ticket:
        validate_identity(ticket.identity)
        async with self._lock:
            if ticket.identity in self._tickets:
                raise DuplicateTicketError(f"Ticket {ticket.identity.ticket_id} already issued")
            self._tickets[ticket.identity] = replace(ticket)
        return replace(ticket)

    async def list_owned(self, owner_address: str) -> list[Ticket]:
        return [replace(ticket) for ticket in self._tickets.values() if ticket.owner_address == owner_address]

    async def ping(self) -> bool:
        return True


_TRANSIENT_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresTicketRegistry:
    """Registry backed by PostgreSQL through an asyncpg pool."""

    _COLUMNS = (
        "ticket_id, contract_address, network_id, owner_address, event_id, event_name, "
        "venue, event_starts_at, used, used_at, checked_in_by"
    )

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS tickets (
        ticket_id TEXT NOT NULL,
        contract_address TEXT NOT NULL,
        network_id TEXT NOT NULL,
        owner_address TEXT NOT NULL,
        event_id TEXT NOT NULL,
        event_name TEXT NOT NULL,
        venue TEXT NOT NULL DEFAULT '',
        event_starts_at TIMESTAMPTZ NULL,
        used BOOLEAN NOT NULL DEFAULT FALSE,
        used_at TIMESTAMPTZ NULL,
        checked_in_by TEXT NULL,
        minted_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (ticket_id, contract_address, network_id)
    )
    """

    _CREATE_OWNER_INDEX_SQL = """
    CREATE INDEX IF NOT EXISTS tickets_owner_address_idx ON tickets (owner_address)
    """

    _CREATE_CHECKINS_SQL = """
    CREATE TABLE IF NOT EXISTS ticket_checkins (
        id UUID PRIMARY KEY,
        ticket_id TEXT NOT NULL,
        contract_address TEXT NOT NULL,
        network_id TEXT NOT NULL,
        actor TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        FOREIGN KEY (ticket_id, contract_address, network_id)
            REFERENCES tickets (ticket_id, contract_address, network_id) ON DELETE CASCADE
    )
    """

    _INSERT_TICKET_SQL = f"""
    INSERT INTO tickets ({_COLUMNS})
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
    RETURNING {_COLUMNS}
    """

    _SELECT_TICKET_SQL = f"""
    SELECT {_COLUMNS}
    FROM tickets
    WHERE ticket_id = $1 AND contract_address = $2 AND network_id = $3
    """

    _SELECT_OWNED_SQL = f"""
    SELECT {_COLUMNS}
    FROM tickets
    WHERE owner_address = $1
    ORDER BY event_starts_at ASC NULLS LAST, ticket_id ASC
    """

    # Single conditional update; the WHERE clause is the serialization point.
    _MARK_USED_SQL = f"""
    UPDATE tickets
    SET used = TRUE,
        used_at = $4,
        checked_in_by = $5
    WHERE ticket_id = $1 AND contract_address = $2 AND network_id = $3 AND used = FALSE
    RETURNING {_COLUMNS}
    """

    _INSERT_CHECKIN_SQL = """
    INSERT INTO ticket_checkins (id, ticket_id, contract_address, network_id, actor, created_at)
    VALUES ($1, $2, $3, $4, $5, $6)
    """

    _EXISTS_SQL = """
    SELECT used
    FROM tickets
    WHERE ticket_id = $1 AND contract_address = $2 AND network_id = $3
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure_schema(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_OWNER_INDEX_SQL)
            await connection.execute(self._CREATE_CHECKINS_SQL)

    async def lookup(self, identity: TicketIdentity) -> Ticket | None:
        try:
            async with self._pool.acquire() as connection:
                row = await connection.fetchrow(self._SELECT_TICKET_SQL, *_identity_args(identity))
        except _TRANSIENT_ERRORS as exc:
            raise RegistryUnavailableError("Ticket lookup failed") from exc
        if row is None:
            return None
        return self._row_to_ticket(row)

    async def mark_used(self, identity: TicketIdentity, *, actor: str) -> Ticket:
        now = _utcnow()
        try:
            async with self._pool.acquire() as connection:
                async with connection.transaction():
                    row = await connection.fetchrow(self._MARK_USED_SQL, *_identity_args(identity), now, actor)
                    if row is not None:
                        await connection.execute(
                            self._INSERT_CHECKIN_SQL,
                            uuid4(),
                            *_identity_args(identity),
                            actor,
                            now,
                        )
                        return self._row_to_ticket(row)
                    # used never reverses, so a row that exists now was consumed already
                    existing = await connection.fetchrow(self._EXISTS_SQL, *_identity_args(identity))
        except _TRANSIENT_ERRORS as exc:
            raise RegistryUnavailableError("Ticket check-in failed") from exc

        if existing is None:
            raise TicketNotFoundError(f"Ticket {identity.ticket_id} not found")
        raise TicketAlreadyUsedError(f"Ticket {identity.ticket_id} already used")

    async def issue(self, ticket: Ticket) -> Ticket:
        validate_identity(ticket.identity)
        try:
            async with self._pool.acquire() as connection:
                row = await connection.fetchrow(
                    self._INSERT_TICKET_SQL,
                    *_identity_args(ticket.identity),
                    ticket.owner_address,
                    ticket.event_id,
                    ticket.event_name,
                    ticket.venue,
                    ticket.event_starts_at,
                    ticket.used,
                    ticket.used_at,
                    ticket.checked_in_by,
                )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateTicketError(f"Ticket {ticket.identity.ticket_id} already issued") from exc
        except _TRANSIENT_ERRORS as exc:
            raise RegistryUnavailableError("Ticket issue failed") from exc
        if row is None:
            raise RegistryError("Failed to insert ticket")
        return self._row_to_ticket(row)

    async def list_owned(self, owner_address: str) -> list[Ticket]:
        try:
            async with self._pool.acquire() as connection:
                rows = await connection.fetch(self._SELECT_OWNED_SQL, owner_address)
        except _TRANSIENT_ERRORS as exc:
            raise RegistryUnavailableError("Ticket listing failed") from exc
        return [self._row_to_ticket(row) for row in rows]

    async def ping(self) -> bool:
        try:
            async with self._pool.acquire() as connection:
                await connection.execute("SELECT 1")
        except _TRANSIENT_ERRORS:
            logger.warning("Ticket registry ping failed", exc_info=True)
            return False
        return True

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        return Ticket(
            identity=TicketIdentity(
                ticket_id=str(row["ticket_id"]),
                contract_address=str(row["contract_address"]),
                network_id=str(row["network_id"]),
            ),
            owner_address=str(row["owner_address"]),
            event_id=str(row["event_id"]),
            event_name=str(row["event_name"]),
            venue=str(row["venue"] or ""),
            event_starts_at=row["event_starts_at"],
            used=bool(row["used"]),
            used_at=row["used_at"],
            checked_in_by=row["checked_in_by"],
        )


def _identity_args(identity: TicketIdentity) -> tuple[str, str, str]:
    return identity.ticket_id, identity.contract_address, identity.network_id
