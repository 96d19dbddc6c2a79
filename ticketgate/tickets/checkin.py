from __future__ import annotations

import asyncio
import logging

from opentelemetry import trace

from ticketgate.metrics import MetricsRegistry, create_metrics_registry, track_duration
from ticketgate.metrics.definitions import CHECKINS_TOTAL, REGISTRY_CALL_DURATION

from .models import CHECK_IN_MESSAGES, CheckInOutcome, CheckInResult, TicketIdentity
from .registry import (
    RegistryUnavailableError,
    TicketAlreadyUsedError,
    TicketNotFoundError,
    TicketRegistry,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class CheckInCoordinator:
    """Consume tickets through the registry's atomic conditional update.

    The caller's verdict may be stale by the time an operator presses "check in",
    so preconditions are re-checked by the registry itself. Losing a race is an
    ordinary ``already_used`` outcome.
    """

    def __init__(
        self,
        registry: TicketRegistry,
        *,
        timeout: float | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._registry = registry
        self._timeout = timeout
        self._metrics = metrics or create_metrics_registry()

    async def check_in(self, identity: TicketIdentity, *, actor: str = "gate") -> CheckInResult:
        with tracer.start_as_current_span("ticketgate.check_in") as span:
            span.set_attribute("ticket.id", identity.ticket_id)
            ticket = None
            try:
                with track_duration(
                    self._metrics.distribution(REGISTRY_CALL_DURATION, label_names=("operation",)),
                    labels={"operation": "mark_used"},
                ):
                    ticket = await asyncio.wait_for(
                        self._registry.mark_used(identity, actor=actor),
                        timeout=self._timeout,
                    )
            except TicketAlreadyUsedError:
                outcome = CheckInOutcome.ALREADY_USED
                logger.info("Check-in conflict for ticket %s by %s", identity.ticket_id, actor)
            except TicketNotFoundError:
                outcome = CheckInOutcome.NOT_FOUND
                logger.info("Check-in for unknown ticket %s by %s", identity.ticket_id, actor)
            except (RegistryUnavailableError, asyncio.TimeoutError) as exc:
                outcome = CheckInOutcome.UNAVAILABLE
                logger.warning("Check-in for ticket %s failed: %s", identity.ticket_id, exc)
            else:
                outcome = CheckInOutcome.CHECKED_IN
                logger.info("Ticket %s checked in by %s", identity.ticket_id, actor)

            span.set_attribute("ticket.check_in_outcome", outcome.value)
            self._metrics.counter(CHECKINS_TOTAL, label_names=("outcome",)).inc(labels={"outcome": outcome.value})
            return CheckInResult(
                outcome=outcome,
                message=CHECK_IN_MESSAGES[outcome],
                identity=identity,
                ticket=ticket,
            )
