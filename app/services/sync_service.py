"""Chronological view over the incoming and outgoing message streams.

Ordering across the two streams comes only from timestamps, so the
watermark is the timestamp of the newest entry already returned.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.models import INCOMING, ChatMessage
from app.services.message_service import all_since, as_utc


@dataclass(frozen=True)
class SyncedMessage:
    id: str
    direction: str
    counterpart: str
    content: str
    timestamp: datetime
    status: Optional[str] = None

    @property
    def is_incoming(self) -> bool:
        return self.direction == INCOMING

    def to_dict(self) -> dict:
        """Fields for SyncedMessageItem, which renders `sender` as "from"."""
        return {
            "id": self.id,
            "direction": self.direction,
            "counterpart": self.counterpart,
            "sender": self.counterpart if self.is_incoming else None,
            "to": None if self.is_incoming else self.counterpart,
            "content": self.content,
            "timestamp": self.timestamp,
            "status": self.status,
        }


def from_row(row: ChatMessage) -> SyncedMessage:
    return SyncedMessage(
        id=row.public_id,
        direction=row.direction,
        counterpart=row.counterpart,
        content=row.content,
        timestamp=as_utc(row.created_at),
        status=row.status,
    )


def messages_since(
    incoming: Iterable[SyncedMessage],
    outgoing: Iterable[SyncedMessage],
    watermark: Optional[datetime],
) -> list[SyncedMessage]:
    """Union of both streams newer than `watermark`, oldest first."""
    merged = [
        message
        for stream in (incoming, outgoing)
        for message in stream
        if watermark is None or message.timestamp > watermark
    ]
    # sorted() is stable: equal timestamps keep incoming-before-outgoing order
    return sorted(merged, key=lambda message: message.timestamp)


def advance(messages: list[SyncedMessage], watermark: Optional[datetime]) -> Optional[datetime]:
    if not messages:
        return watermark
    return messages[-1].timestamp


class SyncCursor:
    """Watermark that only moves forward as polls return new activity."""

    def __init__(self, watermark: Optional[datetime] = None):
        self.watermark = as_utc(watermark)

    def poll(self, db: Session) -> list[SyncedMessage]:
        incoming_rows, outgoing_rows = all_since(db, self.watermark)
        messages = messages_since(
            [from_row(row) for row in incoming_rows],
            [from_row(row) for row in outgoing_rows],
            self.watermark,
        )
        self.watermark = advance(messages, self.watermark)
        return messages
