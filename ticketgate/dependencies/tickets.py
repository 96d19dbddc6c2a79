from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ticketgate.core.config import Settings, get_settings
from ticketgate.dependencies.auth import Role, User, role_required
from ticketgate.metrics import MetricsRegistry
from ticketgate.tickets.checkin import CheckInCoordinator
from ticketgate.tickets.registry import TicketRegistry
from ticketgate.tickets.verification import VerificationEngine

require_staff = role_required(Role.STAFF)
require_attendee = role_required(Role.ATTENDEE)

StaffUser = Annotated[User, Depends(require_staff)]
AttendeeUser = Annotated[User, Depends(require_attendee)]


def _state(request: Request, name: str, label: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail=f"{label} is not configured")
    return value


async def get_registry(request: Request) -> TicketRegistry:
    return _state(request, "ticket_registry", "Ticket registry")


async def get_verification_engine(request: Request) -> VerificationEngine:
    return _state(request, "verification_engine", "Verification engine")


async def get_check_in_coordinator(request: Request) -> CheckInCoordinator:
    return _state(request, "check_in_coordinator", "Check-in coordinator")


async def get_metrics(request: Request) -> MetricsRegistry:
    return _state(request, "metrics", "Metrics registry")


async def get_app_settings() -> Settings:
    return get_settings()


RegistryDep = Annotated[TicketRegistry, Depends(get_registry)]
EngineDep = Annotated[VerificationEngine, Depends(get_verification_engine)]
CoordinatorDep = Annotated[CheckInCoordinator, Depends(get_check_in_coordinator)]
MetricsDep = Annotated[MetricsRegistry, Depends(get_metrics)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
