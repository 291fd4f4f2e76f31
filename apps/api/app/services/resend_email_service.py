"""Resend Email Service.

Sends transactional emails via the Resend API with idempotency and retries.
Without RESEND_API_KEY every send is a logged dry run.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

import httpx

from app.core.config import settings
from app.services.http_service import DEFAULT_RETRY_STATUSES, request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0


class SendResult(NamedTuple):
    success: bool
    message_id: str | None = None
    error: str | None = None


def _html_to_text(content: str) -> str:
    """Convert HTML into readable text (deliverability + inbox previews)."""
    import html as html_module

    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return html_module.unescape(text)


def _error_detail(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        return data.get("message") or data.get("error")
    return None


async def send_email(
    to_email: str,
    subject: str,
    html: str,
    idempotency_key: str,
    to_name: str | None = None,
) -> SendResult:
    """
    Send one email via Resend.

    A 409 means Resend already accepted this idempotency key, which counts
    as sent.
    """
    if not settings.RESEND_API_KEY:
        logger.info("[DRY RUN] Email send skipped key=%s subject=%r", idempotency_key, subject)
        return SendResult(success=True)

    payload: dict[str, object] = {
        "from": settings.EMAIL_FROM,
        "to": [f"{to_name} <{to_email}>" if to_name else to_email],
        "subject": subject,
        "html": html,
    }
    text = _html_to_text(html)
    if text:
        payload["text"] = text
    if settings.EMAIL_REPLY_TO:
        payload["reply_to"] = settings.EMAIL_REPLY_TO

    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
        "Idempotency-Key": idempotency_key,
    }

    try:
        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await request_with_retries(
                request_fn,
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                retry_statuses=DEFAULT_RETRY_STATUSES,
            )
    except httpx.TimeoutException:
        logger.warning("Resend timeout for key %s", idempotency_key)
        return SendResult(success=False, error="Connection timeout")
    except httpx.HTTPError as e:
        logger.exception("Resend connection error for key %s", idempotency_key)
        return SendResult(success=False, error=f"Connection error: {e.__class__.__name__}")

    if 200 <= response.status_code < 300:
        message_id = response.json().get("id")
        logger.info("Email sent key=%s message_id=%s", idempotency_key, message_id)
        return SendResult(success=True, message_id=message_id)

    if response.status_code == 409:
        logger.info("Email already sent (409) key=%s", idempotency_key)
        return SendResult(success=True)

    error_msg = f"Resend API error: {response.status_code}"
    detail = _error_detail(response)
    if detail:
        error_msg = f"{error_msg} ({detail})"
    logger.warning("Resend rejected key=%s: %s", idempotency_key, error_msg)
    return SendResult(success=False, error=error_msg)
