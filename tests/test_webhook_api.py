"""
HTTP tests for /api/webhook and /health with injected store and messenger.
"""
import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import RecordingMessenger, text_event
from empbot.api import webhook
from empbot.api.main import app
from empbot.core import config
from empbot.core.messaging import LineMessagingClient
from empbot.core.schema import EMPLOYEES, USER_MAP
from empbot.core.signature import compute_signature

WEBHOOK_URL = "/api/webhook"


@pytest.fixture
def client(store, messenger):
    app.dependency_overrides[webhook.get_store] = lambda: store
    app.dependency_overrides[webhook.get_messenger] = lambda: messenger
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def body_for(*events):
    return json.dumps({"destination": "Ubot", "events": list(events)}).encode("utf-8")


class TestWebhookMethods:

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    def test_non_post_is_rejected(self, client, messenger, method):
        response = client.request(method, WEBHOOK_URL)

        assert response.status_code == 405
        assert response.content == b""
        assert messenger.sent == []


class TestWebhookProcessing:

    def test_batch_of_text_events_returns_ok(self, client, messenger, store):
        events = [text_event(user_id=f"U{i}", text="1234", reply_token=f"rt-{i}") for i in range(3)]

        response = client.post(WEBHOOK_URL, content=body_for(*events),
                               headers={"Content-Type": "application/json", "X-Line-Signature": "unchecked"})

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert len(messenger.sent) == 3
        for i in range(3):
            assert asyncio.run(store.get(USER_MAP, f"U{i}"))["lastEmpId"] == "1234"

    def test_empty_batch_returns_ok(self, client, messenger):
        response = client.post(WEBHOOK_URL, content=body_for())

        assert response.status_code == 200
        assert messenger.sent == []

    def test_non_text_events_get_no_reply(self, client, messenger):
        sticker = {
            "type": "message",
            "replyToken": "rt-s",
            "source": {"type": "user", "userId": "U1"},
            "message": {"id": "9", "type": "sticker", "packageId": "1", "stickerId": "2"},
        }

        response = client.post(WEBHOOK_URL, content=body_for(sticker))

        assert response.status_code == 200
        assert messenger.sent == []

    def test_one_failing_event_fails_the_request(self, client, store):
        failing = RecordingMessenger(fail_tokens={"rt-1"})
        app.dependency_overrides[webhook.get_messenger] = lambda: failing
        events = [text_event(user_id=f"U{i}", reply_token=f"rt-{i}") for i in range(3)]

        response = client.post(WEBHOOK_URL, content=body_for(*events))

        assert response.status_code == 500
        assert response.content == b""
        # The other events were still answered
        assert sorted(token for token, _ in failing.sent) == ["rt-0", "rt-2"]

    @pytest.mark.parametrize("raw", [b"not json", b"{}", b'{"events": "nope"}'])
    def test_malformed_payload_returns_500(self, client, messenger, raw):
        response = client.post(WEBHOOK_URL, content=raw)

        assert response.status_code == 500
        assert response.content == b""
        assert messenger.sent == []

    def test_profile_request_end_to_end(self, client, messenger, store):
        asyncio.run(store.set(EMPLOYEES, "12345", {
            "name": "Malee", "empId": "12345", "department": "QA",
            "status": "Active", "safetyPatrolRecord": "clean", "photoUrl": "",
        }))
        asyncio.run(store.set(USER_MAP, "U1", {"lastEmpId": "12345"}))

        response = client.post(WEBHOOK_URL, content=body_for(text_event(text="photo")))

        assert response.status_code == 200
        token, reply = messenger.sent[0]
        assert token == "rt-1"
        assert reply.model_dump(by_alias=True) == {
            "type": "image",
            "originalContentUrl": "https://placehold.co/1200x780",
            "previewImageUrl": "https://placehold.co/1200x780",
        }


class TestSignatureValidation:

    @pytest.fixture(autouse=True)
    def strict_mode(self, monkeypatch):
        monkeypatch.setenv("SIGNATURE_VALIDATION_STRICT", "true")
        monkeypatch.setattr(config, "LINE_CHANNEL_SECRET", "channel-secret")

    def test_valid_signature_is_processed(self, client, messenger):
        body = body_for(text_event())

        response = client.post(WEBHOOK_URL, content=body,
                               headers={"X-Line-Signature": compute_signature("channel-secret", body)})

        assert response.status_code == 200
        assert len(messenger.sent) == 1

    @pytest.mark.parametrize("headers", [{}, {"X-Line-Signature": "forged"}])
    def test_invalid_signature_is_rejected(self, client, messenger, headers):
        response = client.post(WEBHOOK_URL, content=body_for(text_event()), headers=headers)

        assert response.status_code == 400
        assert response.content == b""
        assert messenger.sent == []

    def test_validation_disabled_ignores_signature(self, client, messenger, monkeypatch):
        monkeypatch.setenv("SIGNATURE_VALIDATION_STRICT", "false")

        response = client.post(WEBHOOK_URL, content=body_for(text_event()),
                               headers={"X-Line-Signature": "forged"})

        assert response.status_code == 200
        assert len(messenger.sent) == 1


def test_health_endpoint(client, store):
    asyncio.run(store.set(USER_MAP, "U1", {"lastEmpId": "1234"}))

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["db_health"] is True
    assert data["store_project_id"] == "test-project"
    assert data["document_counts"] == {"userMap": 1, "employees": 0, "messages": 0}
    assert "version" in data


def test_default_providers_are_singletons(monkeypatch, tmp_path):
    monkeypatch.setattr(webhook, "_store", None)
    monkeypatch.setattr(webhook, "_messenger", None)
    monkeypatch.setattr(config, "DB_PATH", str(tmp_path / "lazy.db"))

    assert webhook.get_store() is webhook.get_store()
    assert webhook.get_messenger() is webhook.get_messenger()
    assert webhook.get_store().db_path == str(tmp_path / "lazy.db")


class TestStoreUnavailable:

    @pytest.fixture
    def broken_client(self, messenger):
        def unavailable_store():
            raise RuntimeError("store unavailable")

        app.dependency_overrides[webhook.get_store] = unavailable_store
        app.dependency_overrides[webhook.get_messenger] = lambda: messenger
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    def test_post_returns_empty_500(self, broken_client, messenger):
        response = broken_client.post(WEBHOOK_URL, content=body_for(text_event()))

        assert response.status_code == 500
        assert response.content == b""
        assert messenger.sent == []

    @pytest.mark.parametrize("method", ["GET", "PUT"])
    def test_other_methods_still_return_405(self, broken_client, method):
        response = broken_client.request(method, WEBHOOK_URL)

        assert response.status_code == 405
        assert response.content == b""


def test_shutdown_closes_shared_messenger(monkeypatch):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    monkeypatch.setattr(webhook, "_messenger", LineMessagingClient(channel_access_token="t", client=http_client))

    with TestClient(app):
        pass

    assert webhook._messenger is None
    assert http_client.is_closed


def test_close_messenger_without_client_is_noop(monkeypatch):
    monkeypatch.setattr(webhook, "_messenger", None)

    asyncio.run(webhook.close_messenger())

    assert webhook._messenger is None
