from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from ticketgate.main import create_app

CODE = "12345-0x25b2C2eaf9b8EC899d9cd44Ac74001eF17180F14-84532"


@pytest.fixture
def client(registry, engine, coordinator, metrics):
    app = create_app()
    app.state.ticket_registry = registry
    app.state.verification_engine = engine
    app.state.check_in_coordinator = coordinator
    app.state.metrics = metrics
    return TestClient(app)


def test_scan_check_in_and_rescan(client, registry, make_ticket):
    with client.websocket_connect("/scan?token=staff-token") as ws:
        assert ws.receive_json() == {"type": "started"}

        ws.send_json({"type": "scan", "code": CODE})
        verdict = ws.receive_json()
        assert verdict["type"] == "verdict"
        assert verdict["verdict"] == "valid"

        ws.send_json({"type": "check_in"})
        result = ws.receive_json()
        assert result["type"] == "check_in"
        assert result["outcome"] == "checked_in"
        assert result["message"] == "Ticket checked in successfully!"

        ws.send_json({"type": "check_in"})
        assert ws.receive_json()["outcome"] == "not_eligible"

        ws.send_json({"type": "scan", "code": CODE})
        assert ws.receive_json()["verdict"] == "already_used"


def test_manual_entry_and_bad_messages(client):
    with client.websocket_connect("/scan?token=staff-token") as ws:
        ws.receive_json()

        ws.send_json({"type": "manual", "ticket_id": "404"})
        assert ws.receive_json()["verdict"] == "not_found"

        ws.send_text("not json")
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "dance"})
        assert ws.receive_json()["type"] == "error"


def test_stopped_scanner_rejects_scans_until_restarted(client):
    with client.websocket_connect("/scan?token=staff-token") as ws:
        ws.receive_json()

        ws.send_json({"type": "stop"})
        assert ws.receive_json() == {"type": "stopped"}

        ws.send_json({"type": "scan", "code": CODE})
        assert ws.receive_json() == {"type": "error", "detail": "Scanner is not running"}

        ws.send_json({"type": "start"})
        assert ws.receive_json() == {"type": "started"}
        ws.send_json({"type": "scan", "code": "a-b"})
        assert ws.receive_json()["verdict"] == "malformed"


def test_scanner_requires_staff_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/scan?token=attendee-token") as ws:
            ws.receive_json()
