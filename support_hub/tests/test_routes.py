"""
API route tests

Routes run against the in-memory ticket store and a mocked analysis
proxy through FastAPI dependency overrides.
"""
import json

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from support_hub.config import get_settings
from support_hub.dependencies import get_analysis_proxy, get_ticket_store
from support_hub.main import app
from support_hub.models.schemas import StatusFilter
from support_hub.routes.tickets import sse_generator, ticket_event_stream


@pytest.fixture
def client(store, analyzer):
    analyzer.forward = AsyncMock(return_value=(200, {"sentiment": "positive"}))
    app.dependency_overrides[get_ticket_store] = lambda: store
    app.dependency_overrides[get_analysis_proxy] = lambda: analyzer
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRoot:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Support Hub API", "version": "1.0.0"}


class TestAnalyzeRoute:

    def test_forwards_body(self, client, analyzer):
        response = client.post("/api/analyze-ticket", json={
            "ticket": "urgent outage",
            "customerId": "A",
            "subject": "Down",
        })

        assert response.status_code == 200
        assert response.json() == {"sentiment": "positive"}
        request = analyzer.forward.await_args[0][0]
        assert request.to_webhook_payload() == {
            "ticket": "urgent outage",
            "customerId": "A",
            "subject": "Down",
        }

    def test_failure_is_500_with_error_object(self, client, analyzer):
        analyzer.forward.return_value = (500, {"error": "Failed to analyze ticket"})

        response = client.post("/api/analyze-ticket", json={"ticket": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to analyze ticket"}


class TestSubmitTicket:

    def test_submit_saves_analyzed_ticket(self, client, store, memory_repo):
        response = client.post("/api/tickets", json={
            "customer": "Sarah Johnson",
            "subject": "Payment charged twice",
            "message": "I was charged twice",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["save_status"] == "saved"
        assert data["analysis"]["category"] == "billing"
        ticket = data["ticket"]
        assert ticket["id"] == data["id"]
        assert ticket["priority"] == "high"
        assert ticket["sentiment"] == "negative"
        assert ticket["suggested_response"] == "We are refunding the duplicate charge."
        assert data["id"] in memory_repo.rows

    def test_missing_fields_is_422(self, client, memory_repo):
        response = client.post("/api/tickets", json={"customer": "A", "subject": "Down"})

        assert response.status_code == 422
        assert "message" in response.json()["detail"]
        assert memory_repo.rows == {}

    def test_analysis_transport_error_is_502(self, client, analyzer):
        analyzer.analyze = AsyncMock(side_effect=ConnectionError("offline"))

        response = client.post("/api/tickets", json={"customer": "A", "subject": "B", "message": "C"})

        assert response.status_code == 502

    def test_save_error_is_500(self, client, memory_repo, store_error):
        memory_repo.fail_next = store_error

        response = client.post("/api/tickets", json={"customer": "A", "subject": "B", "message": "C"})

        assert response.status_code == 500


class TestListAndGet:

    def test_list_newest_first(self, client, seeded_repo):
        response = client.get("/api/tickets")

        assert response.status_code == 200
        assert [t["customer"] for t in response.json()] == ["Lisa Anderson", "Mike Chen", "Sarah Johnson"]

    def test_list_with_status_filter(self, client, seeded_repo):
        response = client.get("/api/tickets", params={"status": "in-progress"})

        assert [t["customer"] for t in response.json()] == ["Lisa Anderson"]

    def test_list_invalid_status_is_422(self, client, seeded_repo):
        assert client.get("/api/tickets", params={"status": "archived"}).status_code == 422

    def test_list_store_failure_is_500(self, client, seeded_repo, store_error):
        seeded_repo.fail_next = store_error

        assert client.get("/api/tickets").status_code == 500

    def test_get_ticket(self, client, seeded_repo):
        response = client.get("/api/tickets/ticket-000002")

        assert response.status_code == 200
        assert response.json()["customer"] == "Mike Chen"

    def test_get_missing_ticket_is_404(self, client, seeded_repo):
        assert client.get("/api/tickets/nope").status_code == 404


class TestTicketActions:

    def test_change_status(self, client, seeded_repo):
        response = client.patch("/api/tickets/ticket-000001/status", json={"status": "resolved"})

        assert response.status_code == 200
        assert response.json() == {"id": "ticket-000001", "status": "resolved"}
        assert seeded_repo.rows["ticket-000001"]["status"] == "resolved"

    def test_change_status_invalid_value(self, client, seeded_repo):
        response = client.patch("/api/tickets/ticket-000001/status", json={"status": "closed"})

        assert response.status_code == 422

    def test_change_status_unknown_ticket(self, client, seeded_repo):
        response = client.patch("/api/tickets/nope/status", json={"status": "resolved"})

        assert response.status_code == 404

    def test_send_response(self, client, seeded_repo):
        response = client.post("/api/tickets/ticket-000002/responses", json={"response": "Thanks!"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "in-progress"
        assert len(data["responses_sent"]) == 1
        assert data["responses_sent"][0]["response"] == "Thanks!"
        assert data["responses_sent"][0]["sent_by"] == "AI Assistant"
        row = seeded_repo.rows["ticket-000002"]
        assert row["status"] == "in-progress"
        assert len(row["responses_sent"]) == 1

    def test_send_blank_response(self, client, seeded_repo):
        assert client.post("/api/tickets/ticket-000002/responses", json={"response": ""}).status_code == 422
        assert client.post("/api/tickets/ticket-000002/responses", json={"response": "  "}).status_code == 422

    def test_send_response_unknown_ticket(self, client, seeded_repo):
        response = client.post("/api/tickets/nope/responses", json={"response": "hi"})

        assert response.status_code == 404


class TestSearchExportDemo:

    def test_search(self, client, seeded_repo):
        response = client.get("/api/tickets/search", params={"q": "slack"})

        assert response.status_code == 200
        assert [t["customer"] for t in response.json()] == ["Mike Chen"]

    def test_search_short_term_is_empty(self, client, seeded_repo):
        assert client.get("/api/tickets/search", params={"q": "s"}).json() == []

    def test_search_failure_is_500(self, client, seeded_repo, store_error):
        seeded_repo.fail_next = store_error

        assert client.get("/api/tickets/search", params={"q": "slack"}).status_code == 500

    def test_export_filtered(self, client, seeded_repo):
        response = client.get("/api/tickets/export", params={"status": "resolved"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert response.headers["content-disposition"].startswith('attachment; filename="support-tickets-')
        lines = response.text.split("\n")
        assert lines[0] == "ID,Customer,Subject,Status,Priority,Sentiment,Category,Created At"
        assert len(lines) == 2
        assert '"Mike Chen"' in lines[1]

    def test_export_search_results(self, client, seeded_repo):
        response = client.get("/api/tickets/export", params={"q": "sarah"})

        lines = response.text.split("\n")
        assert len(lines) == 2
        assert '"Sarah Johnson"' in lines[1]

    def test_demo(self, client, store, memory_repo, monkeypatch):
        monkeypatch.setattr(get_settings(), "demo_seed_delay_seconds", 0)

        response = client.post("/api/tickets/demo")

        assert response.status_code == 201
        assert len(response.json()["created"]) == 5
        assert len(memory_repo.rows) == 5

    def test_demo_failure_is_502(self, client, analyzer, monkeypatch):
        monkeypatch.setattr(get_settings(), "demo_seed_delay_seconds", 0)
        analyzer.analyze = AsyncMock(side_effect=ConnectionError("offline"))

        response = client.post("/api/tickets/demo")

        assert response.status_code == 502
        assert "analysis webhook" in response.json()["detail"]


class TestAnalyticsAndPreferences:

    def test_analytics(self, client, seeded_repo):
        response = client.get("/api/analytics")

        assert response.status_code == 200
        data = response.json()
        assert data["total_tickets"] == 3
        assert data["resolved_tickets"] == 1
        assert len(data["daily_tickets"]) == 7
        assert [p["name"] for p in data["sentiment_breakdown"]] == ["Positive", "Neutral", "Negative"]

    def test_analytics_failure_is_500(self, client, seeded_repo, store_error):
        seeded_repo.fail_next = store_error

        assert client.get("/api/analytics").status_code == 500

    def test_theme_defaults_to_dark(self, client):
        assert client.get("/api/preferences/theme").json() == {"theme": "dark"}

    def test_theme_cookie_round_trip(self, client):
        response = client.put("/api/preferences/theme", json={"theme": "light"})

        assert response.status_code == 200
        assert "theme=light" in response.headers["set-cookie"]
        assert client.get("/api/preferences/theme").json() == {"theme": "light"}

    def test_invalid_theme_rejected(self, client):
        assert client.put("/api/preferences/theme", json={"theme": "blue"}).status_code == 422


class TestTicketEventStream:
    """Live list events behind GET /api/tickets/stream"""

    @pytest.mark.asyncio
    async def test_initial_delivery_then_change(self, store, seeded_repo):
        events = ticket_event_stream(store, StatusFilter.NEW, heartbeat_seconds=5, max_events=2)

        first = await events.__anext__()
        assert first["type"] == "tickets"
        assert first["filter"] == "new"
        assert [t["customer"] for t in first["tickets"]] == ["Sarah Johnson"]

        await store.create({"customer": "Zoe", "status": "new"})
        second = await events.__anext__()
        assert [t["customer"] for t in second["tickets"]] == ["Zoe", "Sarah Johnson"]

        with pytest.raises(StopAsyncIteration):
            await events.__anext__()
        assert store.subscription_count == 0

    @pytest.mark.asyncio
    async def test_slow_consumer_gets_latest_snapshot_only(self, store, seeded_repo):
        events = ticket_event_stream(store, StatusFilter.ALL, heartbeat_seconds=0.01, max_events=3)
        await events.__anext__()

        for name in ("Zoe", "Yann", "Xena"):
            await store.create({"customer": name, "status": "new"})
        latest = await events.__anext__()
        after = await events.__anext__()

        assert latest["type"] == "tickets"
        assert [t["customer"] for t in latest["tickets"]][:3] == ["Xena", "Yann", "Zoe"]
        assert len(latest["tickets"]) == 6
        assert after["type"] == "heartbeat"
        await events.aclose()
        assert store.subscription_count == 0

    @pytest.mark.asyncio
    async def test_heartbeat_when_idle(self, store, seeded_repo):
        events = ticket_event_stream(store, StatusFilter.ALL, heartbeat_seconds=0.01, max_events=2)

        received = [event async for event in events]

        assert [e["type"] for e in received] == ["tickets", "heartbeat"]

    @pytest.mark.asyncio
    async def test_query_error_event(self, store, seeded_repo, store_error):
        events = ticket_event_stream(store, StatusFilter.ALL, heartbeat_seconds=5, max_events=2)
        await events.__anext__()

        seeded_repo.fail_next = store_error
        await store.publish_change()
        event = await events.__anext__()

        assert event == {"type": "error", "message": "connection reset", "recoverable": True}
        await events.aclose()

    @pytest.mark.asyncio
    async def test_sse_format_and_cleanup(self, store, seeded_repo):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)
        events = ticket_event_stream(store, StatusFilter.ALL, heartbeat_seconds=5, max_events=1)

        chunks = [chunk async for chunk in sse_generator(request, events)]

        assert len(chunks) == 1
        assert chunks[0].startswith("data: ")
        assert chunks[0].endswith("\n\n")
        payload = json.loads(chunks[0][len("data: "):])
        assert payload["type"] == "tickets"
        assert len(payload["tickets"]) == 3
        assert store.subscription_count == 0

    @pytest.mark.asyncio
    async def test_sse_stops_on_disconnect(self, store, seeded_repo):
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=True)
        events = ticket_event_stream(store, StatusFilter.ALL, heartbeat_seconds=5)

        chunks = [chunk async for chunk in sse_generator(request, events)]

        assert chunks == []
        assert store.subscription_count == 0
