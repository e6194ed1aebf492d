from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.logging_config import get_logger
from app.schemas.webhook import WebhookResponse, WhatsAppWebhookPayload
from app.services.conversation_service import get_assistant
from app.services.message_service import append_incoming

logger = get_logger("webhook")

router = APIRouter()


@router.get("/webhook", response_class=PlainTextResponse)
def verify_webhook(
    mode: Optional[str] = Query(default=None, alias="hub.mode"),
    token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
):
    """WhatsApp webhook subscription handshake."""
    if not mode or not token or not challenge:
        logger.warning("Webhook verification missing parameters")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing verification parameters")

    if mode == "subscribe" and settings.webhook_verify_token and token == settings.webhook_verify_token:
        logger.info("Webhook verified")
        return challenge

    logger.warning(
        "Webhook verification failed",
        extra={"context": {"mode_match": mode == "subscribe", "token_configured": bool(settings.webhook_verify_token)}},
    )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@router.post("/webhook", response_model=WebhookResponse)
async def receive_webhook(request: Request, db: Session = Depends(get_db)):
    """Store inbound WhatsApp messages and answer them (push path).

    Always acknowledges with 200 so the provider does not keep retrying a
    payload we cannot use.
    """
    try:
        raw = await request.json()
        payload = WhatsAppWebhookPayload.model_validate(raw)
    except (ValueError, ValidationError) as exc:
        logger.warning("Webhook payload validation failed", extra={"context": {"error": str(exc)}})
        return WebhookResponse(success=False, message="Invalid webhook payload")

    stored = []
    for inbound in payload.iter_messages():
        if inbound.type != "text":
            logger.info(
                "Skipping non-text message",
                extra={"context": {"external_id": inbound.id, "type": inbound.type}},
            )
            continue
        message = append_incoming(db, inbound.from_number, inbound.body, external_id=inbound.id)
        stored.append(message)
    db.commit()

    if not stored:
        return WebhookResponse(success=True, message="No text messages")

    if not settings.process_on_webhook:
        return WebhookResponse(success=True, message=f"Stored {len(stored)} message(s)")

    assistant = get_assistant()
    processed = []
    for message in stored:
        result = assistant.handle_incoming(db, message.counterpart, message.content, message.public_id)
        db.commit()
        outcome = result.value.to_dict() if result.value else {"message_id": message.public_id}
        if not result.ok:
            outcome["error"] = result.error
        processed.append(outcome)

    return WebhookResponse(success=True, message=f"Processed {len(processed)} message(s)", processed=processed)
