"""Webhook dispatcher: sign and POST event payloads to the subscriber endpoint."""

import hashlib
import hmac
import logging
import time
from datetime import datetime

import httpx

from src.core.clock import isoformat_utc
from src.core.config import Constants, WebhookConfig
from src.domain.events import DeliveryResult, WebhookEventData, WebhookEventType, WebhookPayload


logger = logging.getLogger(__name__)


SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"


def generate_signature(body: bytes, secret: str) -> str:
    """HMAC-SHA256 signature over the exact body bytes, as ``sha256=<hex>``."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def serialize_payload(payload: WebhookPayload) -> bytes:
    """Serialize a payload deterministically; unset optional fields are omitted."""
    return payload.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def create_webhook_payload(
    event: WebhookEventType,
    subscriber: str,
    data: WebhookEventData,
    now: datetime,
) -> WebhookPayload:
    """Create a webhook payload stamped with the emission time."""
    return WebhookPayload(event=event, timestamp=isoformat_utc(now), api_key=subscriber, data=data)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


async def dispatch_webhook(
    config: WebhookConfig,
    payload: WebhookPayload,
    *,
    client: httpx.AsyncClient | None = None,
) -> DeliveryResult:
    """Send one webhook to the configured URL.

    Events excluded by a non-empty allow-list are skipped and reported as success.
    Delivery is attempted once; any non-2xx response or transport error is a
    failed result, never an exception.

    Args:
        config: Webhook configuration (URL, secret, allow-list, timeout)
        payload: Event payload
        client: Optional shared HTTP client; a short-lived one is used otherwise

    Returns:
        DeliveryResult with status code, truncated error and duration in ms
    """
    start = time.perf_counter()

    if config.events and payload.event not in config.events:
        return DeliveryResult(success=True, duration=_elapsed_ms(start))

    body = serialize_payload(payload)
    headers = {
        "Content-Type": "application/json",
        SIGNATURE_HEADER: generate_signature(body, config.secret),
        EVENT_HEADER: payload.event.value,
        TIMESTAMP_HEADER: payload.timestamp,
        "User-Agent": Constants.WEBHOOK_USER_AGENT,
    }
    task_ref = payload.data.task.id if payload.data.task else "deleted"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=config.timeout_seconds) as owned_client:
                response = await owned_client.post(config.url, content=body, headers=headers)
        else:
            response = await client.post(config.url, content=body, headers=headers, timeout=config.timeout_seconds)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        duration = _elapsed_ms(start)
        error_message = str(e) or type(e).__name__
        logger.error(
            "Webhook error: %s - %s",
            payload.event.value,
            error_message[: Constants.WEBHOOK_LOG_ERROR_MAX_CHARS],
            extra={"event": payload.event.value, "task_id": task_ref, "duration_ms": duration},
        )
        return DeliveryResult(
            success=False,
            error=error_message[: Constants.WEBHOOK_RESULT_ERROR_MAX_CHARS],
            duration=duration,
        )

    duration = _elapsed_ms(start)

    if response.is_success:
        logger.info("Webhook delivered: %s for task %s (%.0fms)", payload.event.value, task_ref, duration)
        return DeliveryResult(success=True, status_code=response.status_code, duration=duration)

    error_text = response.text or "Unknown error"
    logger.error(
        "Webhook failed: %s - HTTP %d: %s",
        payload.event.value,
        response.status_code,
        error_text[: Constants.WEBHOOK_LOG_ERROR_MAX_CHARS],
        extra={"event": payload.event.value, "task_id": task_ref, "status_code": response.status_code},
    )
    return DeliveryResult(
        success=False,
        status_code=response.status_code,
        error=error_text[: Constants.WEBHOOK_RESULT_ERROR_MAX_CHARS],
        duration=duration,
    )
