"""Turn a scanned or typed code into a verdict about the ticket it names.

Both input paths, camera scans and manual token-id entry, end up in
:meth:`VerificationEngine.verify`. The engine never raises for bad input or a
failing registry; callers get a :class:`VerificationVerdict` they must handle.
"""

from __future__ import annotations

import asyncio
import logging

from opentelemetry import trace

from ticketgate.metrics import MetricsRegistry, create_metrics_registry, track_duration
from ticketgate.metrics.definitions import REGISTRY_CALL_DURATION, VERIFICATIONS_TOTAL

from . import codec
from .models import VERDICT_MESSAGES, TicketIdentity, VerdictKind, VerificationVerdict
from .registry import RegistryUnavailableError, TicketRegistry

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

MANUAL_ENTRY_PROMPT = "Please enter a token ID"


class VerificationEngine:
    """Read-only verdicts backed by the ticket registry."""

    def __init__(
        self,
        registry: TicketRegistry,
        *,
        contract_address: str,
        network_id: str,
        timeout: float | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._registry = registry
        self._contract_address = contract_address
        self._network_id = network_id
        self._timeout = timeout
        self._metrics = metrics or create_metrics_registry()

    @property
    def contract_address(self) -> str:
        return self._contract_address

    @property
    def network_id(self) -> str:
        return self._network_id

    def manual_identity(self, ticket_id: str) -> TicketIdentity:
        """Identity for a typed ticket id on the venue's contract and network."""

        return TicketIdentity(
            ticket_id=ticket_id.strip(),
            contract_address=self._contract_address,
            network_id=self._network_id,
        )

    async def verify(self, raw_input: str) -> VerificationVerdict:
        with tracer.start_as_current_span("ticketgate.verify") as span:
            code = (raw_input or "").strip()
            try:
                identity = codec.decode(code)
            except codec.MalformedCodeError as exc:
                logger.info("Rejected malformed scan code %r: %s", code, exc)
                return self._record(VerificationVerdict(
                    kind=VerdictKind.MALFORMED,
                    raw_input=raw_input,
                    message=VERDICT_MESSAGES[VerdictKind.MALFORMED],
                ))
            span.set_attribute("ticket.id", identity.ticket_id)
            verdict = await self._classify(identity, raw_input)
            span.set_attribute("ticket.verdict", verdict.kind.value)
            return verdict

    async def verify_identity(self, identity: TicketIdentity) -> VerificationVerdict:
        try:
            code = codec.encode(identity)
        except codec.InvalidTicketIdentityError:
            return self._record(VerificationVerdict(
                kind=VerdictKind.MALFORMED,
                raw_input=identity.ticket_id,
                message=VERDICT_MESSAGES[VerdictKind.MALFORMED],
                identity=identity,
            ))
        return await self.verify(code)

    async def verify_manual(self, ticket_id: str) -> VerificationVerdict:
        if not (ticket_id or "").strip():
            return self._record(VerificationVerdict(
                kind=VerdictKind.MALFORMED,
                raw_input=ticket_id or "",
                message=MANUAL_ENTRY_PROMPT,
            ))
        return await self.verify_identity(self.manual_identity(ticket_id))

    async def _classify(self, identity: TicketIdentity, raw_input: str) -> VerificationVerdict:
        try:
            with track_duration(
                self._metrics.distribution(REGISTRY_CALL_DURATION, label_names=("operation",)),
                labels={"operation": "lookup"},
            ):
                ticket = await asyncio.wait_for(self._registry.lookup(identity), timeout=self._timeout)
        except (RegistryUnavailableError, asyncio.TimeoutError) as exc:
            logger.warning("Registry lookup failed for ticket %s: %s", identity.ticket_id, exc)
            return self._record(VerificationVerdict(
                kind=VerdictKind.UNAVAILABLE,
                raw_input=raw_input,
                message=VERDICT_MESSAGES[VerdictKind.UNAVAILABLE],
                identity=identity,
            ))

        if ticket is None or not ticket.exists:
            kind = VerdictKind.NOT_FOUND
        elif ticket.used:
            kind = VerdictKind.ALREADY_USED
        else:
            kind = VerdictKind.VALID
        logger.debug("Ticket %s verified as %s", identity.ticket_id, kind.value)
        return self._record(VerificationVerdict(
            kind=kind,
            raw_input=raw_input,
            message=VERDICT_MESSAGES[kind],
            identity=identity,
            ticket=ticket,
        ))

    def _record(self, verdict: VerificationVerdict) -> VerificationVerdict:
        self._metrics.counter(VERIFICATIONS_TOTAL, label_names=("verdict",)).inc(
            labels={"verdict": verdict.kind.value}
        )
        return verdict
