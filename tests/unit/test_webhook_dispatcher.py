"""Tests for signed webhook delivery."""

import hashlib
import hmac
import json

import httpx
import pytest

from src.core.config import WebhookConfig
from src.domain.events import FieldChange, WebhookEventData, WebhookEventType
from src.interface.webhook_dispatcher import (
    EVENT_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    create_webhook_payload,
    dispatch_webhook,
    generate_signature,
)
from tests.unit.mocks import NOW, make_task


def payload_for(event: WebhookEventType = WebhookEventType.COMPLETED, **data):
    return create_webhook_payload(
        event,
        "sk_test_subscriber_0001",
        WebhookEventData(task=make_task("t1", text="Buy milk", completed=True), **data),
        NOW,
    )


def client_with(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestGenerateSignature:
    def test_matches_hmac_sha256(self) -> None:
        body = b'{"event":"task.completed"}'
        expected = hmac.new(b"secret", body, hashlib.sha256).hexdigest()

        assert generate_signature(body, "secret") == f"sha256={expected}"

    def test_different_secrets_differ(self) -> None:
        assert generate_signature(b"{}", "a") != generate_signature(b"{}", "b")


@pytest.mark.unit
class TestPayload:
    def test_wire_format(self) -> None:
        payload = payload_for(
            WebhookEventType.UPDATED,
            changes={"dueDate": FieldChange(old=None, new="2025-01-10")},
        )

        body = json.loads(payload.model_dump_json(by_alias=True))

        assert body["event"] == "task.updated"
        assert body["timestamp"] == "2025-01-08T12:00:00.000Z"
        assert body["apiKey"] == "sk_test_subscriber_0001"
        assert body["data"]["task"]["_id"] == "t1"
        assert body["data"]["changes"] == {"dueDate": {"old": None, "new": "2025-01-10"}}


@pytest.mark.unit
class TestDispatchWebhook:
    async def test_successful_delivery_is_signed(self, webhook_config: WebhookConfig) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, text="ok")

        payload = payload_for()
        async with client_with(handler) as client:
            result = await dispatch_webhook(webhook_config, payload, client=client)

        assert result.success is True
        assert result.status_code == 200
        assert result.error is None
        assert result.duration >= 0

        (request,) = captured
        assert str(request.url) == webhook_config.url
        assert request.method == "POST"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers[EVENT_HEADER] == "task.completed"
        assert request.headers[TIMESTAMP_HEADER] == payload.timestamp
        assert request.headers["User-Agent"].startswith("taskhook-webhook/")
        assert request.headers[SIGNATURE_HEADER] == generate_signature(request.content, webhook_config.secret)

    async def test_absent_changes_are_omitted_from_body(self, webhook_config: WebhookConfig) -> None:
        captured: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request.content)
            return httpx.Response(204)

        async with client_with(handler) as client:
            await dispatch_webhook(webhook_config, payload_for(), client=client)

        body = json.loads(captured[0])
        assert "changes" not in body["data"]
        assert body["data"]["task"]["completed"] is True

    async def test_filtered_event_is_not_sent(self, webhook_config: WebhookConfig) -> None:
        config = webhook_config.model_copy(update={"events": [WebhookEventType.UPDATED]})
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with client_with(handler) as client:
            result = await dispatch_webhook(config, payload_for(WebhookEventType.COMPLETED), client=client)

        assert result.success is True
        assert result.status_code is None
        assert calls == []

    async def test_allowed_event_is_sent(self, webhook_config: WebhookConfig) -> None:
        config = webhook_config.model_copy(update={"events": [WebhookEventType.COMPLETED]})

        async with client_with(lambda request: httpx.Response(202)) as client:
            result = await dispatch_webhook(config, payload_for(WebhookEventType.COMPLETED), client=client)

        assert result.success is True
        assert result.status_code == 202

    async def test_non_2xx_is_failure_with_truncated_error(self, webhook_config: WebhookConfig) -> None:
        async with client_with(lambda request: httpx.Response(500, text="x" * 2000)) as client:
            result = await dispatch_webhook(webhook_config, payload_for(), client=client)

        assert result.success is False
        assert result.status_code == 500
        assert result.error == "x" * 500

    async def test_empty_error_body(self, webhook_config: WebhookConfig) -> None:
        async with client_with(lambda request: httpx.Response(404)) as client:
            result = await dispatch_webhook(webhook_config, payload_for(), client=client)

        assert result.success is False
        assert result.error == "Unknown error"

    async def test_transport_error_is_failure(self, webhook_config: WebhookConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with client_with(handler) as client:
            result = await dispatch_webhook(webhook_config, payload_for(), client=client)

        assert result.success is False
        assert result.status_code is None
        assert "connection refused" in result.error

    async def test_url_rejected_by_client_is_failure(self, webhook_config: WebhookConfig) -> None:
        config = webhook_config.model_copy(update={"url": "https://hooks.example.com:abc/tasks"})

        async with client_with(lambda request: httpx.Response(200)) as client:
            result = await dispatch_webhook(config, payload_for(), client=client)

        assert result.success is False
        assert result.status_code is None
        assert "port" in result.error

    async def test_deleted_event_without_task(self, webhook_config: WebhookConfig) -> None:
        payload = create_webhook_payload(
            WebhookEventType.DELETED, "sk_test_subscriber_0001", WebhookEventData(task=None), NOW
        )

        async with client_with(lambda request: httpx.Response(200)) as client:
            result = await dispatch_webhook(webhook_config, payload, client=client)

        assert result.success is True
