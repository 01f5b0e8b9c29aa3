import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import login_headers, register


def bearer(headers):
    return headers["Authorization"].split(" ", 1)[1]


def test_snapshot_then_live_changes(client, party_a, party_b, active_case):
    case_id = active_case["id"]
    with client.websocket_connect(f"/ws/cases/{case_id}?token={bearer(party_a['headers'])}") as ws:
        first = ws.receive_json()
        assert first["type"] == "snapshot"
        assert first["data"]["case"]["id"] == case_id
        assert len(first["data"]["participants"]) == 2

        client.post(f"/cases/{case_id}/messages", json={"content": "Hello from Blair"}, headers=party_b["headers"])
        change = ws.receive_json()
        assert change["type"] == "change"
        assert change["data"]["table"] == "messages"
        assert change["data"]["event"] == "INSERT"
        assert change["data"]["record"]["content"] == "Hello from Blair"


def test_invalid_token_is_closed(client, active_case):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(f"/ws/cases/{active_case['id']}?token=garbage") as ws:
            ws.receive_json()
    assert excinfo.value.code == 1008


def test_outsider_is_closed(client, active_case):
    register(client, "casey@example.com", "Casey Poe")
    outsider = login_headers(client, "casey@example.com")
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(f"/ws/cases/{active_case['id']}?token={bearer(outsider)}") as ws:
            ws.receive_json()
    assert excinfo.value.code == 1008


def test_disconnect_unsubscribes(client, app, party_a, active_case):
    case_id = active_case["id"]
    feed = app.state.case_store.feed
    with client.websocket_connect(f"/ws/cases/{case_id}?token={bearer(party_a['headers'])}") as ws:
        assert ws.receive_json()["type"] == "snapshot"
        assert feed.subscriber_count(case_id) == 1
    assert feed.subscriber_count(case_id) == 0


def test_unexpected_load_failure_unsubscribes(client, app, party_a, active_case, monkeypatch):
    case_id = active_case["id"]
    store = app.state.case_store

    def broken_snapshot(case_id, user_id):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(store, "snapshot", broken_snapshot)
    with pytest.raises((RuntimeError, WebSocketDisconnect)):
        with client.websocket_connect(f"/ws/cases/{case_id}?token={bearer(party_a['headers'])}") as ws:
            ws.receive_json()
    assert store.feed.subscriber_count(case_id) == 0
