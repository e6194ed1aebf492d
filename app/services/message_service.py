from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import INCOMING, OUTGOING, ChatMessage

logger = get_logger("message_service")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 watermark. Returns None for empty input, raises ValueError if malformed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def find_by_external_id(db: Session, external_id: str) -> Optional[ChatMessage]:
    return db.query(ChatMessage).filter(ChatMessage.external_id == external_id).first()


def append_incoming(
    db: Session,
    counterpart: str,
    content: str,
    external_id: Optional[str] = None,
) -> ChatMessage:
    """Store an inbound message. Redelivery of the same provider id returns the stored row."""
    if external_id:
        existing = find_by_external_id(db, external_id)
        if existing:
            logger.info(
                "Inbound message already stored",
                extra={"context": {"external_id": external_id, "message_id": existing.public_id}},
            )
            return existing

    message = ChatMessage(
        direction=INCOMING,
        counterpart=counterpart,
        content=content or "",
        external_id=external_id or None,
        status="received",
        created_at=datetime.now(timezone.utc),
    )
    db.add(message)
    db.flush()
    return message


def append_outgoing(db: Session, counterpart: str, content: str) -> ChatMessage:
    message = ChatMessage(
        direction=OUTGOING,
        counterpart=counterpart,
        content=content or "",
        status="sent",
        created_at=datetime.now(timezone.utc),
    )
    db.add(message)
    db.flush()
    return message


def all_since(db: Session, since: Optional[datetime]) -> tuple[list[ChatMessage], list[ChatMessage]]:
    """Return (incoming, outgoing) stored strictly after `since`, each in insertion order."""
    query = db.query(ChatMessage)
    if since is not None:
        query = query.filter(ChatMessage.created_at > as_utc(since))
    rows = query.order_by(ChatMessage.id).all()
    incoming = [row for row in rows if row.direction == INCOMING]
    outgoing = [row for row in rows if row.direction == OUTGOING]
    return incoming, outgoing


def clear_messages(db: Session) -> int:
    deleted = db.query(ChatMessage).delete()
    db.flush()
    return deleted
