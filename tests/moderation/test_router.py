"""API tests for the moderation dashboard endpoints."""

import logging

import httpx
import pytest
import pytest_asyncio

from kickbot.core.database import get_session
from kickbot.core.logging import CorrelationIdFilter
from kickbot.main import app

BASE = "/api/v1/moderation/1"


class _RecordCapture(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []
        self.addFilter(CorrelationIdFilter())

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
        assert "X-Correlation-ID" in response.headers

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client) -> None:
        response = await client.get("/health", headers={"X-Correlation-ID": "dash-1"})

        assert response.headers["X-Correlation-ID"] == "dash-1"

    @pytest.mark.asyncio
    async def test_request_log_carries_correlation_id(self, client) -> None:
        request_logger = logging.getLogger("kickbot.requests")
        capture = _RecordCapture()
        request_logger.addHandler(capture)
        previous_level = request_logger.level
        request_logger.setLevel(logging.INFO)
        try:
            await client.get("/health", headers={"X-Correlation-ID": "dash-2"})
        finally:
            request_logger.removeHandler(capture)
            request_logger.setLevel(previous_level)

        handled = [r for r in capture.records if r.getMessage() == "Request handled"]
        assert len(handled) == 1
        assert handled[0].correlation_id == "dash-2"
        assert handled[0].status_code == 200


class TestSettingsEndpoints:

    @pytest.mark.asyncio
    async def test_get_creates_defaults(self, client) -> None:
        response = await client.get(f"{BASE}/settings")

        assert response.status_code == 200
        body = response.json()
        assert body["account_id"] == 1
        assert body["banned_words_enabled"] is True
        assert body["caps_threshold"] == 70

    @pytest.mark.asyncio
    async def test_patch_updates_only_given_fields(self, client) -> None:
        response = await client.patch(
            f"{BASE}/settings",
            json={"caps_filter_enabled": True, "caps_permit_level": "vip"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["caps_filter_enabled"] is True
        assert body["caps_permit_level"] == "vip"
        assert body["link_filter_enabled"] is False

    @pytest.mark.asyncio
    async def test_patch_rejects_unknown_level(self, client) -> None:
        response = await client.patch(
            f"{BASE}/settings", json={"caps_permit_level": "admin"}
        )

        assert response.status_code == 422


class TestBannedWordEndpoints:

    @pytest.mark.asyncio
    async def test_crud(self, client) -> None:
        created = await client.post(
            f"{BASE}/banned-words", json={"word": "scam", "action": "ban"}
        )
        assert created.status_code == 201
        word_id = created.json()["id"]

        listed = await client.get(f"{BASE}/banned-words")
        assert [w["word"] for w in listed.json()] == ["scam"]

        updated = await client.patch(
            f"{BASE}/banned-words/{word_id}", json={"enabled": False}
        )
        assert updated.status_code == 200
        assert updated.json()["enabled"] is False

        deleted = await client.delete(f"{BASE}/banned-words/{word_id}")
        assert deleted.status_code == 204

        missing = await client.delete(f"{BASE}/banned-words/{word_id}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_word_is_rejected(self, client) -> None:
        response = await client.post(f"{BASE}/banned-words", json={"word": "  "})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_missing_word(self, client) -> None:
        response = await client.patch(
            f"{BASE}/banned-words/999", json={"enabled": False}
        )

        assert response.status_code == 404


class TestCheckAndPermitEndpoints:

    @pytest.mark.asyncio
    async def test_check_link_then_permit(self, client) -> None:
        await client.patch(f"{BASE}/settings", json={"link_filter_enabled": True})
        payload = {
            "content": "check out http://spam.example.com now",
            "user": {"id": 42, "username": "viewer", "level": "follower"},
        }

        before = await client.post(f"{BASE}/check", json=payload)
        assert before.json()["should_act"] is True
        assert before.json()["filter_type"] == "link"

        permit = await client.post(
            f"{BASE}/permits",
            json={"user_id": 42, "username": "viewer", "granted_by": "mod"},
        )
        assert permit.status_code == 201
        assert permit.json()["permit_type"] == "link"

        after = await client.post(f"{BASE}/check", json=payload)
        assert after.json()["should_act"] is False

    @pytest.mark.asyncio
    async def test_logs_empty(self, client) -> None:
        response = await client.get(f"{BASE}/logs", params={"limit": 10})

        assert response.status_code == 200
        assert response.json() == []
