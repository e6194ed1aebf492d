"""Admin API endpoints for operating the support assistant."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.logging_config import get_logger
from app.services.conversation_service import get_assistant, get_poll_cursor
from app.services.message_service import clear_messages
from app.services.ticket_service import clear_tickets, describe_selection

logger = get_logger("admin")

router = APIRouter(prefix="/admin", tags=["admin"])


# === SCHEMAS ===


class ClearResponse(BaseModel):
    success: bool
    deleted: int


class PollResponse(BaseModel):
    success: bool
    processed: list[dict]
    watermark: Optional[str] = None


class SessionItem(BaseModel):
    sender: str
    state: str
    pending_issue: Optional[str] = None


class SessionsResponse(BaseModel):
    sessions: list[SessionItem]


def _require_admin_token(provided: Optional[str]) -> None:
    expected = settings.admin_token
    if not expected:
        raise HTTPException(status_code=500, detail="ADMIN_TOKEN not configured")
    if not provided or provided != expected:
        raise HTTPException(status_code=401, detail="Invalid admin token")


# === ENDPOINTS ===


@router.delete("/messages", response_model=ClearResponse)
def delete_messages(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    db: Session = Depends(get_db),
):
    """Remove every stored message in both directions."""
    _require_admin_token(x_admin_token)
    deleted = clear_messages(db)
    db.commit()
    logger.info("Messages cleared", extra={"context": {"deleted": deleted}})
    return ClearResponse(success=True, deleted=deleted)


@router.delete("/tickets", response_model=ClearResponse)
def delete_tickets(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    db: Session = Depends(get_db),
):
    _require_admin_token(x_admin_token)
    deleted = clear_tickets(db)
    db.commit()
    logger.info("Tickets cleared", extra={"context": {"deleted": deleted}})
    return ClearResponse(success=True, deleted=deleted)


@router.post("/poll", response_model=PollResponse)
async def poll_now(
    x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
    db: Session = Depends(get_db),
):
    """Run one pull-path tick immediately, same as the background worker."""
    _require_admin_token(x_admin_token)
    cursor = get_poll_cursor()
    results = get_assistant().poll_inbound(db, cursor)
    db.commit()
    processed = []
    for result in results:
        outcome = result.value.to_dict() if result.value else {}
        if not result.ok:
            outcome["error"] = result.error
        processed.append(outcome)
    return PollResponse(
        success=True,
        processed=processed,
        watermark=cursor.watermark.isoformat() if cursor.watermark else None,
    )


@router.get("/sessions", response_model=SessionsResponse)
def list_sessions(x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token")):
    _require_admin_token(x_admin_token)
    sessions = [
        SessionItem(
            sender=session.sender,
            state=session.state.value,
            pending_issue=describe_selection(session.pending_issue) if session.pending_issue is not None else None,
        )
        for session in get_assistant().sessions.all()
    ]
    return SessionsResponse(sessions=sessions)
