from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.logging_config import get_logger
from app.schemas.message import MessagesResponse, SendMessageRequest, SendMessageResponse, SyncedMessageItem
from app.schemas.ticket import TicketItem, TicketsResponse
from app.services.message_service import append_outgoing, parse_timestamp
from app.services.sync_service import SyncCursor
from app.services.ticket_service import list_tickets
from app.services.whatsapp_service import send_text

logger = get_logger("message_router")

router = APIRouter()


@router.get("/messages", response_model=MessagesResponse)
def get_messages(since: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    """Both message streams newer than `since`, oldest first, with the next watermark."""
    try:
        watermark = parse_timestamp(since)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'since' must be an ISO-8601 timestamp")

    cursor = SyncCursor(watermark)
    messages = cursor.poll(db)
    return MessagesResponse(
        messages=[SyncedMessageItem(**message.to_dict()) for message in messages],
        watermark=cursor.watermark,
    )


@router.post("/send-message", response_model=SendMessageResponse)
def send_message(request: SendMessageRequest, db: Session = Depends(get_db)):
    """Send an operator message through WhatsApp and record it as outgoing."""
    result = send_text(request.to, request.message)
    if not result.ok:
        logger.warning(
            "Operator message not delivered",
            extra={"context": {"to": request.to, "error_code": result.error_code}},
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": result.error, "error_code": result.error_code},
        )

    message = append_outgoing(db, request.to, request.message)
    db.commit()
    return SendMessageResponse(success=True, message_id=message.public_id, data=result.value)


@router.get("/tickets", response_model=TicketsResponse)
def get_tickets(db: Session = Depends(get_db)):
    return TicketsResponse(tickets=[TicketItem.model_validate(ticket) for ticket in list_tickets(db)])
