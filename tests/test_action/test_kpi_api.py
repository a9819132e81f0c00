"""Tests for the KPI and alert HTTP endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from kpi_pulse.action.api import app
from kpi_pulse.action.dependencies import get_kpi_store, get_metrics_provider
from kpi_pulse.db.connection import get_session
from kpi_pulse.errors import NotFoundError, PersistenceError, UpstreamDataError
from kpi_pulse.evaluation.kpi_types import AlertMetadata, CalculationResult, KPIAlert
from kpi_pulse.memory.kpi_store import SqlKPIStore

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _mock_session_override():
    session = AsyncMock()
    yield session


def _alert(alert_id="alert_1", acknowledged=False) -> KPIAlert:
    return KPIAlert(
        id=alert_id,
        user_id="user-1",
        kpi_id="kpi-1",
        kpi_name="Monthly sessions",
        type="warning",
        level="medium",
        title="Needs attention",
        message="Monthly sessions is at 60.0% of its target.",
        created_at=NOW,
        metadata=AlertMetadata(current=600, target=1000, progress=60.0, status="at_risk", gap=400),
        suggestions=["Review traffic sources"],
        action_required=True,
        acknowledged=acknowledged,
    )


@pytest.fixture()
def store():
    fake = MagicMock()
    fake.load_kpi = AsyncMock()
    fake.create_kpi = AsyncMock(side_effect=lambda kpi: kpi)
    return fake


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_session] = _mock_session_override
    app.dependency_overrides[get_kpi_store] = lambda: store
    app.dependency_overrides[get_metrics_provider] = lambda: MagicMock()

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": "1.0.0"}


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


class TestKPIEndpoints:
    def test_create_fills_catalogue_defaults(self, client, store):
        resp = client.post("/users/user-1/kpis", json={
            "name": "Monthly sessions",
            "metric_type": "ga4_sessions",
            "target": 10000,
            "ga4_property_id": "properties/123",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "created"
        kpi = data["kpi"]
        assert kpi["user_id"] == "user-1"
        assert kpi["metric"]["source"] == "analytics"
        assert kpi["alerts"]["thresholds"] == {"warning": 70.0, "critical": 50.0}
        assert kpi["current"] is None
        store.create_kpi.assert_awaited_once()

    def test_create_invalid_thresholds_returns_422(self, client):
        app.dependency_overrides[get_kpi_store] = lambda: SqlKPIStore(AsyncMock())

        resp = client.post("/users/user-1/kpis", json={
            "name": "Bounce",
            "metric_type": "ga4_bounce_rate",
            "target": 40,
            "warning_threshold": 40,
            "critical_threshold": 60,
        })
        assert resp.status_code == 422
        data = resp.json()
        assert data["error"] == "KPIValidationError"
        assert data["status"] == "failed"
        assert data["details"]

    def test_get_missing_kpi_returns_404(self, client, store):
        store.load_kpi.side_effect = NotFoundError("KPI not found: nope")

        resp = client.get("/users/user-1/kpis/nope")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "KPI not found: nope"

    def test_get_kpi(self, client, store, make_kpi):
        store.load_kpi.return_value = make_kpi()

        resp = client.get("/users/user-1/kpis/kpi-1")
        assert resp.status_code == 200
        assert resp.json()["goal"]["target"] == 1000.0

    @patch("kpi_pulse.action.routers.kpis.recompute", new_callable=AsyncMock)
    def test_recompute(self, mock_recompute, client):
        mock_recompute.return_value = CalculationResult(
            kpi_id="kpi-1",
            value=8000.0,
            previous_value=5500.0,
            change=2500.0,
            change_percent=45.45,
            progress=80.0,
            status="on_track",
            calculated_at=NOW,
            data_points=4,
            confidence="high",
        )

        resp = client.post("/users/user-1/kpis/kpi-1/recompute")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "on_track"
        assert data["progress"] == 80.0
        assert data["alert"] is None
        assert mock_recompute.await_args.kwargs["history_limit"] == 100

    @patch("kpi_pulse.action.routers.kpis.recompute", new_callable=AsyncMock)
    def test_recompute_upstream_failure_returns_502(self, mock_recompute, client):
        mock_recompute.side_effect = UpstreamDataError("fetchGA4Data request failed")

        resp = client.post("/users/user-1/kpis/kpi-1/recompute")
        assert resp.status_code == 502
        assert resp.json()["error"] == "UpstreamDataError"

    @patch("kpi_pulse.action.routers.kpis.recompute", new_callable=AsyncMock)
    def test_recompute_persistence_failure_returns_503(self, mock_recompute, client):
        mock_recompute.side_effect = PersistenceError("Failed to update KPI kpi-1")

        resp = client.post("/users/user-1/kpis/kpi-1/recompute")
        assert resp.status_code == 503

    @patch("kpi_pulse.memory.alert_store.get_alerts_for_kpi", new_callable=AsyncMock)
    def test_kpi_alerts(self, mock_get, client):
        mock_get.return_value = [_alert()]

        resp = client.get("/users/user-1/kpis/kpi-1/alerts")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 1
        assert data[0]["metadata"]["gap"] == 400


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


class TestAlertEndpoints:
    @patch("kpi_pulse.memory.alert_store.list_alerts", new_callable=AsyncMock)
    def test_list_alerts(self, mock_list, client):
        mock_list.return_value = [_alert("alert_2"), _alert("alert_1")]

        resp = client.get("/users/user-1/alerts?unacknowledged_only=true&limit=5")
        assert resp.status_code == 200
        assert [a["id"] for a in resp.json()] == ["alert_2", "alert_1"]
        args = mock_list.await_args.args
        assert args[1:] == ("user-1", True, 5)

    @patch("kpi_pulse.memory.alert_store.unacknowledged_count", new_callable=AsyncMock)
    def test_count(self, mock_count, client):
        mock_count.return_value = 3

        resp = client.get("/users/user-1/alerts/count")
        assert resp.status_code == 200
        assert resp.json() == {"unacknowledged": 3}

    @patch("kpi_pulse.memory.alert_store.acknowledge_alert", new_callable=AsyncMock)
    def test_acknowledge_one(self, mock_ack, client):
        mock_ack.return_value = _alert(acknowledged=True)

        resp = client.post("/users/user-1/alerts/alert_1/acknowledge")
        assert resp.status_code == 200
        assert resp.json()["acknowledged"] is True

    @patch("kpi_pulse.memory.alert_store.acknowledge_alert", new_callable=AsyncMock)
    def test_acknowledge_missing_returns_404(self, mock_ack, client):
        mock_ack.side_effect = NotFoundError("Alert not found: nope")

        resp = client.post("/users/user-1/alerts/nope/acknowledge")
        assert resp.status_code == 404

    @patch("kpi_pulse.memory.alert_store.acknowledge_alerts", new_callable=AsyncMock)
    def test_acknowledge_many(self, mock_ack, client):
        mock_ack.return_value = 2

        resp = client.post("/users/user-1/alerts/acknowledge", json={"alert_ids": ["a", "b"]})
        assert resp.status_code == 200
        assert resp.json() == {"status": "acknowledged", "updated": 2}
        assert mock_ack.await_args.args[2] == ["a", "b"]

    @patch("kpi_pulse.memory.alert_store.acknowledge_alerts", new_callable=AsyncMock)
    def test_acknowledge_many_database_failure_returns_503(self, mock_ack, client):
        mock_ack.side_effect = PersistenceError("Failed to acknowledge alerts for user user-1")

        resp = client.post("/users/user-1/alerts/acknowledge", json={"alert_ids": ["a"]})
        assert resp.status_code == 503
        data = resp.json()
        assert data["error"] == "PersistenceError"
        assert data["status"] == "failed"
