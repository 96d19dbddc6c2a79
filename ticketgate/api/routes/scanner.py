"""Websocket channel for gate devices.

The browser decodes QR frames from its camera and streams the payloads here;
each connection gets its own :class:`CheckInDesk` and scan session, and the
session is released when the socket goes away.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from ticketgate.api.schemas import check_in_response, verdict_response
from ticketgate.core.config import get_settings
from ticketgate.dependencies.auth import Role, resolve_token
from ticketgate.scanning import QueueCodeSource, ScanResourceUnavailableError, ScanSessionManager
from ticketgate.tickets.desk import CheckInDesk
from ticketgate.tickets.models import VerificationVerdict

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scanner"])


def _verdict_message(verdict: VerificationVerdict) -> dict[str, Any]:
    return {"type": "verdict", **verdict_response(verdict).model_dump(mode="json")}


def _active_source(manager: ScanSessionManager) -> QueueCodeSource | None:
    session = manager.session
    if session is None or not session.active or not isinstance(session.device, QueueCodeSource):
        return None
    return session.device


@router.websocket("/scan")
async def scanner(websocket: WebSocket, token: str | None = None) -> None:
    user = resolve_token(token)
    state = websocket.app.state
    engine = getattr(state, "verification_engine", None)
    coordinator = getattr(state, "check_in_coordinator", None)
    if user is None or not user.has_role(Role.STAFF):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    if engine is None or coordinator is None:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await websocket.accept()
    desk = CheckInDesk(engine, coordinator, actor=user.username)
    manager = ScanSessionManager(
        QueueCodeSource,
        single_shot=get_settings().scanner_single_shot,
        metrics=getattr(state, "metrics", None),
    )

    send_lock = asyncio.Lock()

    async def send(message: dict[str, Any]) -> None:
        # the scan pump and the receive loop both reply on this socket
        async with send_lock:
            await websocket.send_json(message)

    async def deliver(code: str) -> None:
        await send(_verdict_message(await desk.submit_scan(code)))

    async def start_scanning() -> None:
        try:
            await manager.start(deliver)
        except ScanResourceUnavailableError as exc:
            await send({"type": "error", "detail": str(exc)})
        else:
            await send({"type": "started"})

    try:
        await start_scanning()
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await send({"type": "error", "detail": "Messages must be JSON objects"})
                continue
            kind = message.get("type") if isinstance(message, dict) else None

            if kind == "scan":
                source = _active_source(manager)
                if source is None:
                    await send({"type": "error", "detail": "Scanner is not running"})
                else:
                    await source.push(str(message.get("code", "")))
            elif kind == "manual":
                verdict = await desk.submit_manual(str(message.get("ticket_id", "")))
                await send(_verdict_message(verdict))
            elif kind == "check_in":
                result = await desk.check_in()
                await send({"type": "check_in", **check_in_response(result).model_dump(mode="json")})
            elif kind == "start":
                await start_scanning()
            elif kind == "stop":
                await manager.stop()
                await send({"type": "stopped"})
            else:
                await send({"type": "error", "detail": f"Unsupported message type: {kind!r}"})
    except WebSocketDisconnect:
        logger.debug("Scanner %s disconnected", user.username)
    finally:
        await manager.stop()
