from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SyncedMessageItem(BaseModel):
    id: str
    direction: str
    counterpart: str
    sender: Optional[str] = Field(default=None, serialization_alias="from")  # incoming only
    to: Optional[str] = None  # outgoing only
    content: str
    timestamp: datetime
    status: Optional[str] = None


class MessagesResponse(BaseModel):
    messages: list[SyncedMessageItem]
    watermark: Optional[datetime] = None


class SendMessageRequest(BaseModel):
    to: str = Field(min_length=1)
    message: str = Field(min_length=1)


class SendMessageResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None
    data: Optional[dict] = None
