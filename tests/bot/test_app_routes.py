"""
FastAPI Route Tests

Bot status routes plus the dashboard API with a MasterControl stand-in.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from legacy_ops.api.routes import dashboard as dashboard_routes
from legacy_ops.main import app, build_assistant, conversations
from legacy_ops.models import DashboardStats


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def control(monkeypatch):
    fake = MagicMock()
    fake.apis = {"slack": object(), "github": object()}
    fake.connected_count.return_value = 1
    fake.status_rows.return_value = [
        {"api": "Slack", "status": "✅ Connected", "last_check": "10:00:00", "endpoint": "slack.com"},
        {"api": "GitHub", "status": "❌ Disconnected", "last_check": "Never", "endpoint": "api.github.com"},
    ]
    fake.stats = DashboardStats(total_requests=2, successful=1, failed=1)
    fake.test_connections = AsyncMock(return_value={"slack": True, "github": False})
    fake.sync_all_systems = AsyncMock(return_value={"Slack channels": 4})
    fake.generate_report = AsyncMock(return_value={"path": "reports/report-1.json", "report": {}})
    monkeypatch.setattr(dashboard_routes, "_control", fake)
    return fake


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert body["bot"] == "Claude 24/7 Slack Bot"
    assert body["uptime"] >= 0


def test_health_reports_conversation_count(client):
    conversations.clear()
    conversations.append("U1-C1", "user", "hi")

    response = client.get("/health")

    assert response.json() == {"healthy": True, "conversation_count": 1}
    conversations.clear()


def test_health_counts_conversations_handled_by_the_bot(client):
    conversations.clear()
    assistant = build_assistant()
    assistant._client = MagicMock()
    assistant._client.messages.create.return_value = SimpleNamespace(
        content=[SimpleNamespace(type="text", text="Welcome in!")]
    )

    assistant.respond("U1", "C1", "hello there")

    assert client.get("/health").json()["conversation_count"] == 1
    assert conversations.history("U1-C1")[-1] == {"role": "assistant", "content": "Welcome in!"}
    conversations.clear()


def test_dashboard_status(client, control):
    response = client.get("/api/dashboard/status")

    assert response.status_code == 200
    body = response.json()
    assert (body["connected"], body["total"]) == (1, 2)
    assert body["rows"][1]["last_check"] == "Never"
    assert body["stats"]["failed"] == 1
    control.test_connections.assert_not_called()


def test_dashboard_test_checks_vendors(client, control):
    response = client.post("/api/dashboard/test")

    assert response.status_code == 200
    control.test_connections.assert_awaited_once()


def test_dashboard_sync(client, control):
    assert client.post("/api/dashboard/sync").json() == {"Slack channels": 4}


def test_dashboard_report(client, control):
    assert client.post("/api/dashboard/report").json() == {"status": "success", "path": "reports/report-1.json"}


def test_dashboard_errors_become_500(client, control):
    control.sync_all_systems.side_effect = RuntimeError("vendor exploded")

    response = client.post("/api/dashboard/sync")

    assert response.status_code == 500
    assert response.json()["detail"] == "vendor exploded"
