"""
HTTP surface tests for alerts, incidents, threats and dashboard endpoints
"""
import pytest
from httpx import AsyncClient
from slowapi import Limiter
from slowapi.util import get_remote_address

from socdash.api.v1.schemas.auth import Principal
from socdash.db.models.enums import UserRole
from socdash.main import app


@pytest.fixture
def live_session(registry):
    return registry.connect(Principal(subject="watcher", role=UserRole.SOC_ANALYST))


async def post_alert(client, headers, draft, **extra_headers):
    return await client.post("/api/v1/alerts/", json=draft, headers={**headers, **extra_headers})


class TestAlertIngestion:

    async def test_post_alert_stores_and_broadcasts(self, client: AsyncClient, analyst_headers, alert_draft,
                                                    live_session):
        response = await post_alert(client, analyst_headers, alert_draft)

        assert response.status_code == 201
        data = response.json()
        assert data["id"] >= 1
        assert data["status"] == "New"
        assert data["duplicate"] is False

        message = live_session.queue.get_nowait()
        assert message["event"] == "new-alert"
        assert message["data"]["id"] == data["id"]
        assert message["data"]["severity"] == "High"

    async def test_idempotency_header_prevents_duplicates(self, client: AsyncClient, analyst_headers,
                                                          alert_draft, live_session):
        first = await post_alert(client, analyst_headers, alert_draft, **{"Idempotency-Key": "evt-1"})
        second = await post_alert(client, analyst_headers, alert_draft, **{"Idempotency-Key": "evt-1"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["duplicate"] is True
        assert second.json()["id"] == first.json()["id"]
        assert live_session.queue.qsize() == 1

    async def test_invalid_severity_is_422(self, client: AsyncClient, analyst_headers, alert_draft):
        alert_draft["severity"] = "Severe"
        response = await post_alert(client, analyst_headers, alert_draft)

        assert response.status_code == 422
        assert response.json()["errors"]

    async def test_get_unknown_alert_is_404(self, client: AsyncClient, analyst_headers):
        response = await client.get("/api/v1/alerts/12345", headers=analyst_headers)
        assert response.status_code == 404
        assert response.json()["error_type"] == "NotFoundError"


class TestAlertListing:

    async def test_filters_and_envelope(self, client: AsyncClient, analyst_headers, alert_draft):
        for severity in ["Critical", "High", "Critical", "Low"]:
            await post_alert(client, analyst_headers, {**alert_draft, "severity": severity})

        response = await client.get(
            "/api/v1/alerts/", params={"severity": "Critical", "limit": 1, "page": 2}, headers=analyst_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert data["page"] == 2
        assert data["limit"] == 1
        assert len(data["items"]) == 1
        assert data["items"][0]["severity"] == "Critical"

    async def test_camel_case_query_parameters(self, client: AsyncClient, analyst_headers, alert_draft):
        await post_alert(client, analyst_headers, alert_draft)
        await post_alert(client, analyst_headers, {**alert_draft, "source_ip": "198.51.100.9",
                                                   "alert_type": "Failed Login"})

        by_type = await client.get("/api/v1/alerts/", params={"alertType": "Failed Login"}, headers=analyst_headers)
        by_ip = await client.get("/api/v1/alerts/", params={"sourceIp": "203.0.113"}, headers=analyst_headers)
        recent = await client.get("/api/v1/alerts/", params={"timeRange": 1}, headers=analyst_headers)

        assert by_type.json()["total"] == 1
        assert by_ip.json()["total"] == 1
        assert recent.json()["total"] == 2

    async def test_unknown_status_filter_is_422(self, client: AsyncClient, analyst_headers):
        response = await client.get("/api/v1/alerts/", params={"status": "Done"}, headers=analyst_headers)
        assert response.status_code == 422


class TestAlertStatusEndpoint:

    async def test_status_flow(self, client: AsyncClient, analyst_headers, alert_draft, analyst_user):
        alert_id = (await post_alert(client, analyst_headers, alert_draft)).json()["id"]

        blocked = await client.post(
            f"/api/v1/alerts/{alert_id}/status", json={"status": "Resolved"}, headers=analyst_headers
        )
        assigned = await client.post(
            f"/api/v1/alerts/{alert_id}/status",
            json={"status": "Assigned", "assigned_to": analyst_user.id},
            headers=analyst_headers,
        )
        resolved = await client.post(
            f"/api/v1/alerts/{alert_id}/status", json={"status": "Resolved"}, headers=analyst_headers
        )

        assert blocked.status_code == 409
        assert blocked.json()["error_type"] == "InvalidTransitionError"
        assert assigned.status_code == 200
        assert assigned.json()["assigned_to"] == analyst_user.id
        assert resolved.status_code == 200
        assert resolved.json()["resolved_at"] is not None


class TestIncidentEndpoints:

    async def test_incident_workflow(self, client: AsyncClient, analyst_headers, alert_draft, analyst_user):
        alert_id = (await post_alert(client, analyst_headers, alert_draft)).json()["id"]

        created = await client.post(
            "/api/v1/incidents/", json={"title": "Scan campaign", "severity": "High"}, headers=analyst_headers
        )
        assert created.status_code == 201
        incident_id = created.json()["id"]
        assert created.json()["alert_count"] == 0
        assert created.json()["reporter_id"] == analyst_user.id

        first = await client.post(
            f"/api/v1/incidents/{incident_id}/attach", json={"alert_id": alert_id}, headers=analyst_headers
        )
        again = await client.post(
            f"/api/v1/incidents/{incident_id}/attach", json={"alert_id": alert_id}, headers=analyst_headers
        )
        assert first.json() == {"incident_id": incident_id, "alert_id": alert_id, "changed": True, "alert_count": 1}
        assert again.json()["changed"] is False
        assert again.json()["alert_count"] == 1

        detail = await client.get(f"/api/v1/incidents/{incident_id}", headers=analyst_headers)
        assert detail.json()["alert_ids"] == [alert_id]

        closed = await client.post(
            f"/api/v1/incidents/{incident_id}/transition",
            json={"status": "Closed", "root_cause": "Misconfigured firewall"},
            headers=analyst_headers,
        )
        assert closed.status_code == 200
        assert closed.json()["status"] == "Closed"
        assert closed.json()["resolved_at"] is not None

        reopen = await client.post(
            f"/api/v1/incidents/{incident_id}/transition", json={"status": "New"}, headers=analyst_headers
        )
        assert reopen.status_code == 409

        comment = await client.post(
            f"/api/v1/incidents/{incident_id}/comments", json={"comment": "Lessons learned"}, headers=analyst_headers
        )
        assert comment.status_code == 201
        assert comment.json()["author"] == "analyst"

        listing = await client.get("/api/v1/incidents/", params={"status": "Closed"}, headers=analyst_headers)
        assert listing.json()["total"] == 1

    async def test_attach_unknown_alert_is_404(self, client: AsyncClient, analyst_headers):
        created = await client.post(
            "/api/v1/incidents/", json={"title": "Empty", "severity": "Low"}, headers=analyst_headers
        )
        response = await client.post(
            f"/api/v1/incidents/{created.json()['id']}/attach", json={"alert_id": 999}, headers=analyst_headers
        )
        assert response.status_code == 404


class TestAnalyticsEndpoints:

    async def test_geographic_and_threat_level(self, client: AsyncClient, analyst_headers, alert_draft):
        for _ in range(6):
            await post_alert(client, analyst_headers, {**alert_draft, "severity": "Critical"})

        geo = await client.get("/api/v1/threats/geographic", params={"windowHours": 24}, headers=analyst_headers)
        level = await client.get("/api/v1/threats/level", headers=analyst_headers)

        assert geo.status_code == 200
        clusters = geo.json()
        assert len(clusters) == 1
        assert clusters[0]["country_code"] == "CN"
        assert clusters[0]["alert_count"] == 6
        assert clusters[0]["max_severity"] == "Critical"
        assert level.json() == {"threat_level": "Yellow", "high_severity_count": 6, "window_minutes": 60}

    async def test_dashboard_overview_shape(self, client: AsyncClient, analyst_headers, alert_draft):
        await post_alert(client, analyst_headers, alert_draft)

        response = await client.get("/api/v1/dashboard/overview", headers=analyst_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["metrics"] == {"alerts24h": 1, "alerts7d": 1, "alerts30d": 1, "threatLevel": "Green"}
        assert set(data["severityBreakdown"]) == {"Critical", "High", "Medium", "Low", "Informational"}
        assert data["severityBreakdown"]["High"] == 1
        assert data["topAlertTypes"] == [{"alert_type": "Port Scan", "count": 1}]
        assert set(data["incidentStatus"]) == {"New", "Assigned", "In Progress", "Resolved", "Closed"}

    async def test_alerts_timeline(self, client: AsyncClient, analyst_headers, alert_draft):
        await post_alert(client, analyst_headers, alert_draft)

        response = await client.get("/api/v1/dashboard/alerts-timeline", params={"days": 7}, headers=analyst_headers)

        assert response.status_code == 200
        points = response.json()
        assert len(points) == 1
        assert points[0]["severity"] == "High"
        assert points[0]["count"] == 1


class TestSystemEndpoints:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == "connected"
        assert "x-trace-id" in response.headers


class TestRateLimiting:

    async def test_default_limit_applies_to_undecorated_routes(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(app.state, "limiter", Limiter(key_func=get_remote_address, default_limits=["2/minute"]))

        statuses = [(await client.get("/")).status_code for _ in range(3)]
        blocked = await client.get("/")

        assert statuses == [200, 200, 429]
        assert blocked.json()["error_type"] == "RateLimitExceeded"
        assert blocked.headers["retry-after"] == "60"
