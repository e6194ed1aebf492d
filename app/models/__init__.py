from app.models.chat_message import INCOMING, OUTGOING, ChatMessage
from app.models.ticket import Ticket

__all__ = [
    "ChatMessage",
    "Ticket",
    "INCOMING",
    "OUTGOING",
]
