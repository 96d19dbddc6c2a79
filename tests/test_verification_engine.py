from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from ticketgate.metrics.definitions import VERIFICATIONS_TOTAL
from ticketgate.tickets import codec
from ticketgate.tickets.models import TicketIdentity, VerdictKind
from ticketgate.tickets.registry import RegistryUnavailableError
from ticketgate.tickets.verification import MANUAL_ENTRY_PROMPT, VerificationEngine


@pytest.mark.asyncio
async def test_unused_ticket_is_valid(engine, make_ticket):
    verdict = await engine.verify(codec.encode(make_ticket("12345").identity))

    assert verdict.kind is VerdictKind.VALID
    assert verdict.is_valid and verdict.exists and not verdict.used
    assert verdict.ticket is not None
    assert verdict.ticket.event_name == "Base Workshop Meet 3"
    assert verdict.message == "Valid ticket"


@pytest.mark.asyncio
async def test_used_ticket_is_already_used(engine, make_ticket):
    verdict = await engine.verify(codec.encode(make_ticket("12346").identity))

    assert verdict.kind is VerdictKind.ALREADY_USED
    assert verdict.exists and verdict.used


@pytest.mark.asyncio
async def test_unknown_ticket_is_not_found(engine):
    verdict = await engine.verify("99999-0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14-84532")

    assert verdict.kind is VerdictKind.NOT_FOUND
    assert verdict.kind is not VerdictKind.ALREADY_USED
    assert not verdict.exists
    assert verdict.identity == TicketIdentity(
        ticket_id="99999",
        contract_address="0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14",
        network_id="84532",
    )


@pytest.mark.asyncio
async def test_ticket_flagged_missing_is_not_found(make_ticket):
    ticket = make_ticket("12345")
    ticket.exists = False
    registry = AsyncMock()
    registry.lookup = AsyncMock(return_value=ticket)
    engine = VerificationEngine(registry, contract_address="0xabc", network_id="1")

    verdict = await engine.verify(codec.encode(ticket.identity))

    assert verdict.kind is VerdictKind.NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["a-b", "a-b-c-d", "", "   "])
async def test_malformed_input_is_distinct_from_not_found(engine, raw):
    verdict = await engine.verify(raw)

    assert verdict.kind is VerdictKind.MALFORMED
    assert verdict.message == "Invalid QR code format"
    assert verdict.identity is None


@pytest.mark.asyncio
async def test_scanner_whitespace_is_ignored(engine, make_ticket):
    code = codec.encode(make_ticket("12345").identity)

    verdict = await engine.verify(f"{code}\n")

    assert verdict.kind is VerdictKind.VALID
    assert verdict.raw_input == f"{code}\n"


@pytest.mark.asyncio
async def test_manual_entry_uses_venue_contract(engine):
    verdict = await engine.verify_manual(" 12345 ")

    assert verdict.kind is VerdictKind.VALID
    assert verdict.identity is not None
    assert verdict.identity.contract_address == engine.contract_address
    assert verdict.identity.network_id == engine.network_id
    assert verdict.raw_input == "12345-0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14-84532"


@pytest.mark.asyncio
async def test_manual_entry_rejects_blank_and_separator(engine):
    blank = await engine.verify_manual("  ")
    assert blank.kind is VerdictKind.MALFORMED
    assert blank.message == MANUAL_ENTRY_PROMPT

    with_separator = await engine.verify_manual("12-345")
    assert with_separator.kind is VerdictKind.MALFORMED


@pytest.mark.asyncio
async def test_registry_outage_is_not_a_validity_judgement():
    registry = AsyncMock()
    registry.lookup = AsyncMock(side_effect=RegistryUnavailableError("down"))
    engine = VerificationEngine(registry, contract_address="0xabc", network_id="1")

    verdict = await engine.verify("1-0xabc-1")

    assert verdict.kind is VerdictKind.UNAVAILABLE
    assert not verdict.exists


@pytest.mark.asyncio
async def test_slow_registry_times_out():
    async def slow_lookup(identity):
        await asyncio.sleep(1)

    registry = AsyncMock()
    registry.lookup = slow_lookup
    engine = VerificationEngine(registry, contract_address="0xabc", network_id="1", timeout=0.01)

    verdict = await engine.verify("1-0xabc-1")

    assert verdict.kind is VerdictKind.UNAVAILABLE


@pytest.mark.asyncio
async def test_verify_is_idempotent_and_counted(engine, metrics, make_ticket):
    code = codec.encode(make_ticket("12345").identity)

    first = await engine.verify(code)
    second = await engine.verify(code)

    assert first.kind is second.kind is VerdictKind.VALID
    counter = metrics.counter(VERIFICATIONS_TOTAL, label_names=("verdict",))
    assert counter.value(labels={"verdict": "valid"}) == 2
