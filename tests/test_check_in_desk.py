from __future__ import annotations

import asyncio

import pytest

from ticketgate.tickets import codec
from ticketgate.tickets.desk import CheckInDesk
from ticketgate.tickets.models import CheckInOutcome, VerdictKind
from ticketgate.tickets.state import ScanState


@pytest.fixture
def desk(engine, coordinator) -> CheckInDesk:
    return CheckInDesk(engine, coordinator, actor="north-gate")


@pytest.mark.asyncio
async def test_check_in_refreshes_verdict(desk, make_ticket):
    verdict = await desk.submit_scan(codec.encode(make_ticket("12345").identity))
    assert verdict.kind is VerdictKind.VALID
    assert desk.state is ScanState.VALID

    result = await desk.check_in()

    assert result.outcome is CheckInOutcome.CHECKED_IN
    assert desk.state is ScanState.USED
    assert desk.verdict is not None
    assert desk.verdict.kind is VerdictKind.ALREADY_USED
    assert desk.verdict.ticket is not None and desk.verdict.ticket.checked_in_by == "north-gate"


@pytest.mark.asyncio
async def test_check_in_without_valid_verdict_is_refused(desk, registry, make_ticket):
    assert (await desk.check_in()).outcome is CheckInOutcome.NOT_ELIGIBLE

    await desk.submit_scan("garbage")
    assert desk.state is ScanState.UNKNOWN
    assert (await desk.check_in()).outcome is CheckInOutcome.NOT_ELIGIBLE

    await desk.submit_scan(codec.encode(make_ticket("12346").identity))
    assert desk.state is ScanState.ALREADY_USED
    assert (await desk.check_in()).outcome is CheckInOutcome.NOT_ELIGIBLE

    stored = await registry.lookup(make_ticket("12345").identity)
    assert stored is not None and not stored.used


@pytest.mark.asyncio
async def test_stale_verdict_is_rechecked_by_registry(engine, coordinator, registry, make_ticket):
    identity = make_ticket("12345").identity
    north = CheckInDesk(engine, coordinator, actor="north-gate")
    south = CheckInDesk(engine, coordinator, actor="south-gate")

    await north.submit_scan(codec.encode(identity))
    await south.submit_scan(codec.encode(identity))
    assert (await north.check_in()).succeeded

    conflict = await south.check_in()

    assert conflict.outcome is CheckInOutcome.ALREADY_USED
    assert south.state is ScanState.ALREADY_USED
    stored = await registry.lookup(identity)
    assert stored is not None and stored.checked_in_by == "north-gate"


@pytest.mark.asyncio
async def test_manual_entry_and_reset(desk):
    verdict = await desk.submit_manual("12345")
    assert verdict.kind is VerdictKind.VALID

    desk.reset()

    assert desk.verdict is None
    assert desk.state is ScanState.UNKNOWN


@pytest.mark.asyncio
async def test_scan_arriving_during_check_in_waits_its_turn(desk, registry, make_ticket):
    identity = make_ticket("12345").identity
    await desk.submit_scan(codec.encode(identity))
    unknown = codec.encode(make_ticket("404").identity)

    result, verdict = await asyncio.gather(desk.check_in(), desk.submit_scan(unknown))

    assert result.outcome is CheckInOutcome.CHECKED_IN
    assert result.message == "Ticket checked in successfully!"
    assert verdict.kind is VerdictKind.NOT_FOUND
    assert desk.state is ScanState.NOT_FOUND
    assert desk.verdict is verdict
    stored = await registry.lookup(identity)
    assert stored is not None and stored.used and stored.checked_in_by == "north-gate"


class HeldCoordinator:
    """Delegates to a real coordinator once the test lets it through."""

    def __init__(self, inner):
        self._inner = inner
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def check_in(self, identity, *, actor="gate"):
        self.entered.set()
        await self.release.wait()
        return await self._inner.check_in(identity, actor=actor)


@pytest.mark.asyncio
async def test_reset_during_check_in_keeps_registry_result(engine, coordinator, registry, make_ticket):
    held = HeldCoordinator(coordinator)
    desk = CheckInDesk(engine, held, actor="north-gate")
    identity = make_ticket("12345").identity
    await desk.submit_scan(codec.encode(identity))

    pending = asyncio.create_task(desk.check_in())
    await held.entered.wait()
    desk.reset()
    held.release.set()
    result = await pending

    assert result.outcome is CheckInOutcome.CHECKED_IN
    assert desk.state is ScanState.UNKNOWN
    assert desk.verdict is None
    stored = await registry.lookup(identity)
    assert stored is not None and stored.used
