from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Response

from ticketgate.api.schemas import TicketResponse, ticket_response
from ticketgate.dependencies.tickets import AttendeeUser, EngineDep, RegistryDep, SettingsDep
from ticketgate.tickets.codec import InvalidTicketIdentityError, validate_identity
from ticketgate.tickets.qr import render_qr_data_url, render_qr_png
from ticketgate.tickets.registry import RegistryUnavailableError

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=list[TicketResponse])
async def list_owned_tickets(
    registry: RegistryDep,
    settings: SettingsDep,
    _: AttendeeUser,
    owner: str = Query(..., min_length=1, max_length=128),
) -> list[TicketResponse]:
    try:
        tickets = await registry.list_owned(owner)
    except RegistryUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Ticket registry is unavailable, please retry") from exc
    return [
        ticket_response(
            ticket,
            qr_data_url=render_qr_data_url(
                ticket.identity, box_size=settings.qr_box_size, border=settings.qr_border
            ),
        )
        for ticket in tickets
    ]


@router.get("/{ticket_id}/qr", response_class=Response)
async def ticket_qr_code(
    ticket_id: str,
    registry: RegistryDep,
    engine: EngineDep,
    settings: SettingsDep,
    _: AttendeeUser,
) -> Response:
    identity = engine.manual_identity(ticket_id)
    try:
        validate_identity(identity)
    except InvalidTicketIdentityError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    try:
        ticket = await registry.lookup(identity)
    except RegistryUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Ticket registry is unavailable, please retry") from exc
    if ticket is None or not ticket.exists:
        raise HTTPException(status_code=404, detail=f"Ticket {ticket_id} not found")

    png = render_qr_png(identity, box_size=settings.qr_box_size, border=settings.qr_border)
    return Response(content=png, media_type="image/png")
