"""Receiver-side webhook verification (signature and replay window)."""

import hmac
import logging
from datetime import UTC, datetime
from typing import NamedTuple

from src.core.config import constants
from src.interface.webhook_dispatcher import generate_signature


logger = logging.getLogger(__name__)


class WebhookSecurityResult(NamedTuple):
    """Result of webhook security validation."""

    is_valid: bool
    error_message: str | None
    http_status_code: int | None


def verify_webhook_signature(*, raw_body: bytes, signature: str | None, secret: str) -> WebhookSecurityResult:
    """Recompute the HMAC over the raw body and compare it to the signature header.

    Args:
        raw_body: Request body exactly as received
        signature: Value of the X-Webhook-Signature header (``sha256=<hex>``)
        secret: Shared signing secret

    Returns:
        WebhookSecurityResult indicating if the signature is valid
    """
    if not signature:
        logger.warning("Missing webhook signature")
        return WebhookSecurityResult(
            is_valid=False,
            error_message="Missing webhook signature",
            http_status_code=401,
        )

    expected = generate_signature(raw_body, secret)
    if not hmac.compare_digest(signature, expected):
        logger.warning("Invalid webhook signature")
        return WebhookSecurityResult(
            is_valid=False,
            error_message="Invalid webhook signature",
            http_status_code=401,
        )

    return WebhookSecurityResult(is_valid=True, error_message=None, http_status_code=None)


def validate_webhook_timestamp(timestamp_str: str, *, now: datetime | None = None) -> WebhookSecurityResult:
    """Validate the X-Webhook-Timestamp header is within the accepted age.

    Args:
        timestamp_str: ISO-8601 emission timestamp
        now: Reference time (defaults to the current UTC time)

    Returns:
        WebhookSecurityResult indicating if timestamp is valid
    """
    try:
        emitted = datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        logger.warning("Invalid timestamp format: %s", timestamp_str)
        return WebhookSecurityResult(
            is_valid=False,
            error_message="Invalid timestamp format",
            http_status_code=400,
        )

    if emitted.tzinfo is None:
        emitted = emitted.replace(tzinfo=UTC)

    age_seconds = ((now or datetime.now(UTC)) - emitted).total_seconds()

    if age_seconds < -constants.WEBHOOK_CLOCK_SKEW_SECONDS:
        logger.warning("Webhook timestamp in future: %s", timestamp_str)
        return WebhookSecurityResult(
            is_valid=False,
            error_message="Timestamp is in the future",
            http_status_code=400,
        )

    if age_seconds > constants.WEBHOOK_MAX_AGE_SECONDS:
        logger.warning(
            "Webhook expired (age: %ds, max: %ds)",
            age_seconds,
            constants.WEBHOOK_MAX_AGE_SECONDS,
            extra={"webhook_age_seconds": age_seconds, "max_age_seconds": constants.WEBHOOK_MAX_AGE_SECONDS},
        )
        return WebhookSecurityResult(
            is_valid=False,
            error_message=f"Webhook expired (age: {int(age_seconds)}s)",
            http_status_code=400,
        )

    return WebhookSecurityResult(is_valid=True, error_message=None, http_status_code=None)


def verify_webhook_security(
    *,
    raw_body: bytes,
    signature: str | None,
    timestamp_str: str,
    secret: str,
    now: datetime | None = None,
) -> WebhookSecurityResult:
    """Perform all receiver-side validations: signature first, then replay window."""
    signature_result = verify_webhook_signature(raw_body=raw_body, signature=signature, secret=secret)
    if not signature_result.is_valid:
        return signature_result

    return validate_webhook_timestamp(timestamp_str, now=now)
