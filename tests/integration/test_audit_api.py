"""
Integration tests for the audit control API.

Drives the FastAPI app end to end over ASGITransport, with the audit
session wired to an in-memory page and a scripted classifier.
"""

import threading

import pytest

from comment_detox.credentials import InMemoryCredentialStore
from comment_detox.version import API_VERSION, FLAGGING_POLICY_VERSION


pytestmark = pytest.mark.integration


async def run_audit(async_client, audit_session, mode="single_pass"):
    response = await async_client.post("/api/v1/audit/start", json={"mode": mode})
    assert response.status_code == 202
    audit_session.wait(timeout=5)
    return (await async_client.get("/api/v1/audit")).json()


class TestHealthAndVersion:
    async def test_health(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == API_VERSION
        assert data["audit_running"] is False
        assert "X-Process-Time" in response.headers

    async def test_version(self, async_client):
        response = await async_client.get("/api/v1/version")

        assert response.status_code == 200
        data = response.json()
        assert data["api_version"] == API_VERSION
        assert data["components"]["flagging_policy_version"] == FLAGGING_POLICY_VERSION

    async def test_unhandled_error_returns_json_500(self, app, async_client):
        @app.get("/boom")
        async def boom():
            raise RuntimeError("page crashed")

        response = await async_client.get("/boom")

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Internal server error"
        assert "page crashed" not in data["detail"]


class TestAuditLifecycle:
    async def test_idle_snapshot(self, async_client):
        response = await async_client.get("/api/v1/audit")

        assert response.status_code == 200
        data = response.json()
        assert data["phase"] == "idle"
        assert data["running"] is False
        assert data["flagged_items"] == []

    async def test_single_pass_audit(self, async_client, audit_session):
        data = await run_audit(async_client, audit_session)

        assert data["phase"] == "idle"
        assert data["status"] == "pass complete"
        assert data["scanned_count"] == 2
        assert data["flagged_count"] == 1
        item = data["flagged_items"][0]
        assert item["text"] == "you are an idiot"
        assert item["labels"] == ["HATE", "INSULT", "TOXIC"]
        assert item["score"]["toxicity"] == pytest.approx(0.95)

    async def test_invalid_mode_rejected(self, async_client):
        response = await async_client.post("/api/v1/audit/start", json={"mode": "forever"})
        assert response.status_code == 422

    async def test_stop_when_idle_is_harmless(self, async_client):
        response = await async_client.post("/api/v1/audit/stop")

        assert response.status_code == 200
        assert response.json()["running"] is False

    async def test_delete_flagged_item(self, async_client, audit_session, fake_page):
        data = await run_audit(async_client, audit_session)
        item_id = data["flagged_items"][0]["item_id"]

        response = await async_client.post(f"/api/v1/audit/items/{item_id}/delete")

        assert response.status_code == 200
        assert response.json()["flagged_items"] == []
        audit_session.close()
        assert fake_page.buttons[0].clicks == 1

    async def test_ignore_flagged_item(self, async_client, audit_session, fake_page):
        data = await run_audit(async_client, audit_session)
        item_id = data["flagged_items"][0]["item_id"]

        response = await async_client.post(f"/api/v1/audit/items/{item_id}/ignore")

        assert response.status_code == 200
        assert response.json()["flagged_items"] == []
        assert fake_page.buttons[0].clicks == 0

    @pytest.mark.parametrize("action", ["delete", "ignore"])
    async def test_unknown_item_404(self, async_client, action):
        response = await async_client.post(f"/api/v1/audit/items/item-0-0-0/{action}")

        assert response.status_code == 404
        assert "item-0-0-0" in response.json()["detail"]


class TestStartErrors:
    async def test_missing_credential_400(self, async_client, credential_store):
        credential_store._credential = None

        response = await async_client.post("/api/v1/audit/start", json={"mode": "single_pass"})

        assert response.status_code == 400
        assert "API key" in response.json()["detail"]

    async def test_already_running_409(self, async_client, audit_session, scripted_client):
        gate = threading.Event()
        entered = threading.Event()

        def block(text):
            entered.set()
            gate.wait(5)

        scripted_client.on_call = block
        try:
            first = await async_client.post("/api/v1/audit/start", json={})
            assert first.status_code == 202
            assert entered.wait(5)

            second = await async_client.post("/api/v1/audit/start", json={})
            assert second.status_code == 409

            status = (await async_client.get("/api/v1/audit")).json()
            assert status["running"] is True

            health = (await async_client.get("/health")).json()
            assert health["audit_running"] is True
        finally:
            gate.set()
            audit_session.wait(timeout=5)


class TestCredentialApi:
    async def test_status_reports_configured(self, async_client):
        response = await async_client.get("/api/v1/credential")

        assert response.status_code == 200
        assert response.json() == {"configured": True}

    async def test_save_key(self, async_client, credential_store):
        credential_store._credential = None

        response = await async_client.put("/api/v1/credential", json={"api_key": "  AIza-new  "})

        assert response.status_code == 200
        assert response.json() == {"configured": True}
        assert credential_store.get() == "AIza-new"

    async def test_key_never_returned(self, async_client):
        response = await async_client.get("/api/v1/credential")
        assert "test-key" not in response.text

    @pytest.mark.parametrize("body", [{"api_key": ""}, {"api_key": "   "}, {}])
    async def test_blank_key_rejected(self, async_client, body):
        response = await async_client.put("/api/v1/credential", json=body)
        assert response.status_code == 422

    async def test_unconfigured(self, audit_session):
        from httpx import ASGITransport, AsyncClient
        from comment_detox.api.app import create_app

        app = create_app(session=audit_session, credential_store=InMemoryCredentialStore())
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/api/v1/credential")

        assert response.json() == {"configured": False}
