from typing import Optional

import httpx

from app.config import settings
from app.logging_config import get_logger
from app.services.result import Result

logger = get_logger("whatsapp_service")


def is_configured() -> bool:
    return bool(settings.whatsapp_token and settings.phone_number_id)


def build_messages_url() -> str:
    base = settings.graph_api_base_url.rstrip("/")
    return f"{base}/{settings.graph_api_version}/{settings.phone_number_id}/messages"


def build_text_payload(to: str, text: str) -> dict:
    return {
        "messaging_product": "whatsapp",
        "recipient_type": "individual",
        "to": to,
        "type": "text",
        "text": {"body": text},
    }


def send_text(to: str, text: str, *, timeout_seconds: Optional[float] = None) -> Result[dict]:
    """Send a text message via the WhatsApp Cloud API."""
    if not is_configured():
        logger.error("WhatsApp credentials missing (WHATSAPP_TOKEN / PHONE_NUMBER_ID not set)")
        return Result.failure("WhatsApp transport is not configured", "not_configured")

    if not to or not text:
        logger.warning(f"send_text: missing recipient or text (to={to!r})")
        return Result.failure("Recipient and text are required", "invalid_request")

    timeout = timeout_seconds if timeout_seconds is not None else settings.send_timeout_seconds
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                build_messages_url(),
                headers={"Authorization": f"Bearer {settings.whatsapp_token}"},
                json=build_text_payload(to, text),
            )
    except httpx.HTTPError as e:
        logger.error(f"Error sending WhatsApp message: {e}", extra={"context": {"to": to}})
        return Result.failure(str(e), "transport_error")

    logger.info(f"WhatsApp response: status={response.status_code}, to={to}, body={response.text[:200]}")
    if response.status_code >= 300:
        return Result.failure(f"WhatsApp API returned {response.status_code}", "send_failed")

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    return Result.success(payload)
