from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.logging_config import get_logger
from app.services.catalog_service import Catalog, get_catalog
from app.services.command_service import interpret
from app.services.dedup_service import Deduplicator
from app.services.message_service import append_outgoing
from app.services.result import Result
from app.services.state_machine import SessionRegistry
from app.services.sync_service import SyncCursor
from app.services.ticket_service import append_if_absent
from app.services.whatsapp_service import send_text

logger = get_logger("conversation_service")

ACTION_DUPLICATE_ID = "duplicate_id"
ACTION_DUPLICATE_CONTENT = "duplicate_content"
ACTION_IGNORED = "ignored"
ACTION_REPLIED = "replied"
ACTION_SEND_FAILED = "send_failed"


@dataclass
class InboundOutcome:
    action: str
    sender: str
    message_id: Optional[str] = None
    rule: Optional[str] = None
    intent: Optional[str] = None
    state: Optional[str] = None
    reply: Optional[str] = None
    ticket_number: Optional[str] = None
    ticket_created: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class SupportAssistant:
    """Dedup -> interpret -> persist ticket -> reply, for one inbound message at a time."""

    def __init__(
        self,
        catalog: Catalog,
        *,
        sessions: Optional[SessionRegistry] = None,
        deduplicator: Optional[Deduplicator] = None,
        send: Callable[[str, str], Result] = send_text,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.catalog = catalog
        self.sessions = sessions or SessionRegistry()
        self.deduplicator = deduplicator or Deduplicator()
        self.send = send
        self.clock = clock

    def handle_incoming(
        self,
        db: Session,
        sender: str,
        content: str,
        message_id: Optional[str] = None,
    ) -> Result[InboundOutcome]:
        if not self.deduplicator.should_process_by_id(message_id):
            return Result.success(InboundOutcome(action=ACTION_DUPLICATE_ID, sender=sender, message_id=message_id))

        if not self.deduplicator.should_process_by_content(content, sender=sender):
            return Result.success(
                InboundOutcome(action=ACTION_DUPLICATE_CONTENT, sender=sender, message_id=message_id)
            )

        session = self.sessions.get(sender)
        decision = interpret(session, content, self.catalog, clock=self.clock)
        self.sessions.save(decision.session)

        outcome = InboundOutcome(
            action=ACTION_IGNORED,
            sender=sender,
            message_id=message_id,
            rule=decision.rule,
            intent=decision.intent.value,
            state=decision.session.state.value,
            reply=decision.reply,
        )

        if decision.ticket is not None:
            outcome.ticket_number = decision.ticket.ticket_number
            outcome.ticket_created = append_if_absent(db, decision.ticket)

        logger.info(
            "Inbound message interpreted",
            extra={
                "context": {
                    "sender": sender,
                    "message_id": message_id,
                    "rule": decision.rule,
                    "intent": outcome.intent,
                    "state": outcome.state,
                    "ticket_number": outcome.ticket_number,
                }
            },
        )

        if decision.reply is None:
            return Result.success(outcome)

        sent = self.send(sender, decision.reply)
        if not sent.ok:
            # Session and ticket are already updated; delivery is at-least-once, not exactly-once.
            outcome.action = ACTION_SEND_FAILED
            logger.warning(
                f"Reply not delivered: to={sender}, error={sent.error}",
                extra={"context": {"message_id": message_id, "error_code": sent.error_code}},
            )
            return Result.failure(sent.error or "send failed", sent.error_code or "send_failed", value=outcome)

        append_outgoing(db, sender, decision.reply)
        outcome.action = ACTION_REPLIED
        return Result.success(outcome)

    def poll_inbound(self, db: Session, cursor: SyncCursor) -> list[Result[InboundOutcome]]:
        """Pull path: process incoming messages newer than the cursor and advance it."""
        results = []
        for message in cursor.poll(db):
            if not message.is_incoming:
                continue
            results.append(self.handle_incoming(db, message.counterpart, message.content, message.id))
        return results


_assistant: Optional[SupportAssistant] = None
_poll_cursor: Optional[SyncCursor] = None


def get_assistant() -> SupportAssistant:
    global _assistant
    if _assistant is None:
        _assistant = SupportAssistant(
            get_catalog(),
            deduplicator=Deduplicator(
                id_capacity=settings.dedup_id_capacity,
                content_window_seconds=settings.dedup_content_window_seconds,
                content_capacity=settings.dedup_content_capacity,
            ),
        )
    return _assistant


def get_poll_cursor() -> SyncCursor:
    """Cursor for the pull path; starts at first use so history is not replayed."""
    global _poll_cursor
    if _poll_cursor is None:
        _poll_cursor = SyncCursor(datetime.now(timezone.utc))
    return _poll_cursor


def reset_assistant(assistant: Optional[SupportAssistant] = None, cursor: Optional[SyncCursor] = None) -> None:
    global _assistant, _poll_cursor
    _assistant = assistant
    _poll_cursor = cursor
