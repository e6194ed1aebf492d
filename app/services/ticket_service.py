from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.logging_config import get_logger
from app.models import Ticket
from app.services.catalog_service import Issue
from app.services.state_machine import PendingIssue

logger = get_logger("ticket_service")

OTHER_ISSUE_TEXT = "None Specified"
DEFAULT_STATUS = "Open"

TICKET_PREFIXES = {
    "C": "CLD",  # Cloud
    "I": "INF",  # Infrastructure
    "N": "NET",  # Network and Security
    "S": "SFT",  # Software
    "P": "PRT",  # Printing
    "W": "WRT",  # Warranty
}
OTHER_PREFIX = "OTR"


def ticket_prefix(selection: PendingIssue) -> str:
    if isinstance(selection, Issue):
        return TICKET_PREFIXES.get(selection.department_code, OTHER_PREFIX)
    return OTHER_PREFIX


def generate_ticket_number(selection: PendingIssue, now: Optional[datetime] = None) -> str:
    """
    Build PREFIX-HHMMSS-DDMM from local wall-clock time.

    Not unique by construction: two tickets for the same department in the
    same second (or the same second/day of another year) get the same number.
    The ticket store keeps the first and treats the rest as already saved.
    """
    now = now or datetime.now()
    return f"{ticket_prefix(selection)}-{now:%H%M%S}-{now:%d%m}"


def describe_selection(selection: PendingIssue) -> str:
    if isinstance(selection, Issue):
        return selection.label
    return OTHER_ISSUE_TEXT


def build_ticket(
    selection: PendingIssue,
    customer_phone: str,
    clock: Callable[[], datetime] = datetime.now,
) -> Ticket:
    now = clock()
    created_at = now if now.tzinfo else now.astimezone()
    return Ticket(
        ticket_number=generate_ticket_number(selection, now),
        issue=describe_selection(selection),
        status=DEFAULT_STATUS,
        created_at=created_at.astimezone(timezone.utc),
        customer_phone=customer_phone,
    )


def list_tickets(db: Session) -> list[Ticket]:
    return db.query(Ticket).order_by(Ticket.id).all()


def find_ticket(db: Session, ticket_number: str) -> Optional[Ticket]:
    return db.query(Ticket).filter(Ticket.ticket_number == ticket_number).first()


def append_if_absent(db: Session, ticket: Ticket) -> bool:
    """Insert ticket unless its number is already stored. Returns True if inserted."""
    if find_ticket(db, ticket.ticket_number):
        logger.info(
            "Duplicate ticket number, keeping existing ticket",
            extra={"context": {"ticket_number": ticket.ticket_number}},
        )
        return False

    savepoint = db.begin_nested()
    try:
        db.add(ticket)
        db.flush()
    except IntegrityError:
        savepoint.rollback()
        logger.info(
            "Duplicate ticket number (concurrent insert)",
            extra={"context": {"ticket_number": ticket.ticket_number}},
        )
        return False
    savepoint.commit()

    logger.info(
        "Ticket created",
        extra={"context": {"ticket_number": ticket.ticket_number, "customer_phone": ticket.customer_phone}},
    )
    return True


def clear_tickets(db: Session) -> int:
    deleted = db.query(Ticket).delete()
    db.flush()
    return deleted
