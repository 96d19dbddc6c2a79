from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI

from ticketgate.api.routes import ping, scanner, tickets, verification
from ticketgate.core.config import Settings, get_settings
from ticketgate.core.logging import configure_logging, init_tracer, shutdown_tracer
from ticketgate.metrics import create_metrics_registry
from ticketgate.tickets.checkin import CheckInCoordinator
from ticketgate.tickets.demo import demo_tickets
from ticketgate.tickets.registry import InMemoryTicketRegistry, PostgresTicketRegistry
from ticketgate.tickets.verification import VerificationEngine

logger = logging.getLogger(__name__)


def build_memory_registry(settings: Settings) -> InMemoryTicketRegistry:
    seed = demo_tickets(settings.default_contract_address, settings.default_network_id)
    return InMemoryTicketRegistry(seed if settings.seed_demo_tickets else ())


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - executed by framework
    settings = get_settings()
    configure_logging(settings)
    tracer_provider = init_tracer(settings)
    metrics = create_metrics_registry()

    pool = None
    if settings.registry_backend == "postgres":
        pool = await asyncpg.create_pool(dsn=settings.postgres_dsn, min_size=1, max_size=10)
        registry = PostgresTicketRegistry(pool)
        await registry.ensure_schema()
    elif settings.registry_backend == "memory":
        registry = build_memory_registry(settings)
    else:
        raise ValueError(f"Unsupported registry backend: {settings.registry_backend}")
    logger.info("Using %s ticket registry", settings.registry_backend)

    app.state.metrics = metrics
    app.state.ticket_registry = registry
    app.state.verification_engine = VerificationEngine(
        registry,
        contract_address=settings.default_contract_address,
        network_id=settings.default_network_id,
        timeout=settings.registry_timeout_seconds,
        metrics=metrics,
    )
    app.state.check_in_coordinator = CheckInCoordinator(
        registry,
        timeout=settings.registry_timeout_seconds,
        metrics=metrics,
    )
    try:
        yield
    finally:
        if pool is not None:
            await pool.close()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.include_router(ping.router)
    app.include_router(verification.router)
    app.include_router(tickets.router)
    app.include_router(scanner.router)
    return app


app = create_app()
