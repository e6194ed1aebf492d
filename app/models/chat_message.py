from sqlalchemy import Column, DateTime, Integer, Text

from app.database import Base

INCOMING = "incoming"
OUTGOING = "outgoing"

_ID_PREFIXES = {INCOMING: "msg_in_", OUTGOING: "msg_out_"}


class ChatMessage(Base):
    __tablename__ = "chat_messages"
    # Ids are never handed out twice, even after the table is cleared.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    direction = Column(Text, nullable=False)  # incoming, outgoing
    counterpart = Column(Text, nullable=False)  # sender for incoming, recipient for outgoing
    content = Column(Text, nullable=False, default="")
    external_id = Column(Text, unique=True)  # provider message id (wamid.*)
    status = Column(Text, nullable=False)  # received, sent
    created_at = Column(DateTime(timezone=True), nullable=False)

    @property
    def public_id(self) -> str:
        return f"{_ID_PREFIXES.get(self.direction, 'msg_')}{self.id}"
