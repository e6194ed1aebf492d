from sqlalchemy import Column, DateTime, Integer, Text

from app.database import Base


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticket_number = Column(Text, nullable=False, unique=True)
    issue = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="Open")
    created_at = Column(DateTime(timezone=True), nullable=False)
    customer_phone = Column(Text, nullable=False)
