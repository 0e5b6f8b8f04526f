"""
Dashboard WebSocket tests
"""
import pytest
from fastapi.testclient import TestClient

from support_hub.dependencies import get_analysis_proxy, get_ticket_store
from support_hub.main import app


@pytest.fixture
def client(store, seeded_repo, analyzer):
    app.dependency_overrides[get_ticket_store] = lambda: store
    app.dependency_overrides[get_analysis_proxy] = lambda: analyzer
    yield TestClient(app)
    app.dependency_overrides.clear()


def receive_until(websocket, predicate, limit=10):
    """Read messages until one matches (state pushes can repeat)"""
    for _ in range(limit):
        message = websocket.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message not received")


def is_state(message):
    return message["type"] == "state"


def test_initial_state(client):
    with client.websocket_connect("/ws/dashboard") as websocket:
        state = websocket.receive_json()

    assert state["type"] == "state"
    assert state["active_filter"] == "all"
    assert [t["customer"] for t in state["tickets"]] == ["Lisa Anderson", "Mike Chen", "Sarah Johnson"]
    assert state["selected_ticket"]["customer"] == "Lisa Anderson"
    assert state["theme"] == "dark"
    assert "relative_time" in state["tickets"][0]


def test_theme_cookie_sets_initial_theme(client):
    client.cookies.set("theme", "light")
    with client.websocket_connect("/ws/dashboard") as websocket:
        state = websocket.receive_json()

    assert state["theme"] == "light"


def test_set_filter(client):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()
        websocket.send_json({"action": "set_filter", "filter": "resolved"})

        state = receive_until(websocket, lambda m: is_state(m) and m["active_filter"] == "resolved")

    assert [t["customer"] for t in state["tickets"]] == ["Mike Chen"]


def test_change_status_and_send_response(client, seeded_repo):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()
        websocket.send_json({"action": "change_status", "ticket_id": "ticket-000001", "status": "resolved"})
        receive_until(websocket, lambda m: is_state(m) and any(
            t["id"] == "ticket-000001" and t["status"] == "resolved" for t in m["tickets"]
        ))

        websocket.send_json({"action": "set_draft", "text": "All sorted"})
        receive_until(websocket, lambda m: is_state(m) and m["custom_response"] == "All sorted")

        websocket.send_json({"action": "send_response", "ticket_id": "ticket-000001"})
        notice = receive_until(websocket, lambda m: m["type"] == "notice")

    assert notice["message"] == "Response sent successfully!"
    row = seeded_repo.rows["ticket-000001"]
    assert row["status"] == "in-progress"
    assert row["responses_sent"][0]["response"] == "All sorted"


def test_select_and_search(client):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()
        websocket.send_json({"action": "select", "ticket_id": "ticket-000002"})
        state = receive_until(websocket, is_state)
        assert state["selected_ticket"]["customer"] == "Mike Chen"

        websocket.send_json({"action": "search", "term": "billing"})
        state = receive_until(websocket, lambda m: is_state(m) and m["is_searching"])
        assert [t["customer"] for t in state["tickets"]] == ["Sarah Johnson"]

        websocket.send_json({"action": "clear_search"})
        state = receive_until(websocket, lambda m: is_state(m) and not m["is_searching"])
        assert len(state["tickets"]) == 3


def test_export_and_toggle_theme(client):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()
        websocket.send_json({"action": "export"})
        export = receive_until(websocket, lambda m: m["type"] == "export")

        websocket.send_json({"action": "toggle_theme"})
        state = receive_until(websocket, is_state)

    assert export["filename"].startswith("support-tickets-")
    assert len(export["content"].split("\n")) == 4
    assert state["theme"] == "light"


def test_errors_are_reported_without_closing(client):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()

        websocket.send_json({"action": "dance"})
        unknown = websocket.receive_json()

        websocket.send_json({"action": "select", "ticket_id": "nope"})
        missing = websocket.receive_json()

        websocket.send_json({"action": "set_filter", "filter": "archived"})
        invalid = websocket.receive_json()

        websocket.send_json({"action": "toggle_theme"})
        state = receive_until(websocket, is_state)

    assert unknown == {"type": "error", "message": "Unknown action: dance"}
    assert missing["type"] == "error"
    assert "nope" in missing["message"]
    assert invalid["type"] == "error"
    assert state["theme"] == "light"


def test_disconnect_drops_subscription(client, store):
    with client.websocket_connect("/ws/dashboard") as websocket:
        websocket.receive_json()
        assert store.subscription_count == 1

    websocket_closed = store.subscription_count
    assert websocket_closed == 0
