from app.schemas.message import MessagesResponse, SendMessageRequest, SendMessageResponse, SyncedMessageItem
from app.schemas.ticket import TicketItem, TicketsResponse
from app.schemas.webhook import WebhookResponse, WhatsAppWebhookPayload

__all__ = [
    "MessagesResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    "SyncedMessageItem",
    "TicketItem",
    "TicketsResponse",
    "WebhookResponse",
    "WhatsAppWebhookPayload",
]
