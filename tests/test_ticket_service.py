import re
from datetime import datetime, timezone

from app.models import Ticket
from app.services.catalog_service import Issue
from app.services.state_machine import OTHER_SELECTION
from app.services.ticket_service import (
    append_if_absent,
    build_ticket,
    clear_tickets,
    generate_ticket_number,
    list_tickets,
    ticket_prefix,
)

TICKET_NUMBER_PATTERN = re.compile(r"^(CLD|INF|NET|SFT|PRT|WRT|OTR)-\d{6}-\d{4}$")
NOW = datetime(2026, 3, 14, 9, 26, 53)


def _issue(code: str, number: int = 1) -> Issue:
    return Issue(department_code=code, number=number, description="Something broke")


class TestTicketNumber:
    def test_prefixes(self):
        expected = {"C": "CLD", "I": "INF", "N": "NET", "S": "SFT", "P": "PRT", "W": "WRT"}
        for code, prefix in expected.items():
            assert ticket_prefix(_issue(code)) == prefix
        assert ticket_prefix(OTHER_SELECTION) == "OTR"

    def test_format(self):
        assert generate_ticket_number(_issue("N"), NOW) == "NET-092653-1403"

    def test_defaults_to_current_time(self):
        assert TICKET_NUMBER_PATTERN.match(generate_ticket_number(_issue("W")))

    def test_same_second_collides(self):
        assert generate_ticket_number(_issue("C", 1), NOW) == generate_ticket_number(_issue("C", 2), NOW)


class TestBuildTicket:
    def test_build_from_issue(self):
        ticket = build_ticket(_issue("S", 4), "27820000000", clock=lambda: NOW)
        assert ticket.ticket_number == "SFT-092653-1403"
        assert ticket.issue == "S4 - Something broke"
        assert ticket.status == "Open"
        assert ticket.customer_phone == "27820000000"
        assert ticket.created_at.tzinfo == timezone.utc

    def test_build_other(self):
        ticket = build_ticket(OTHER_SELECTION, "27820000000", clock=lambda: NOW)
        assert ticket.ticket_number.startswith("OTR-")
        assert ticket.issue == "None Specified"


class TestTicketStore:
    def test_append_and_list(self, db_session):
        assert append_if_absent(db_session, build_ticket(_issue("C"), "1", clock=lambda: NOW)) is True
        assert append_if_absent(db_session, build_ticket(_issue("I"), "2", clock=lambda: NOW)) is True
        db_session.commit()
        assert [ticket.ticket_number[:3] for ticket in list_tickets(db_session)] == ["CLD", "INF"]

    def test_duplicate_number_keeps_first(self, db_session):
        append_if_absent(db_session, build_ticket(_issue("C", 1), "first", clock=lambda: NOW))
        inserted = append_if_absent(db_session, build_ticket(_issue("C", 2), "second", clock=lambda: NOW))
        db_session.commit()

        assert inserted is False
        tickets = list_tickets(db_session)
        assert len(tickets) == 1
        assert tickets[0].customer_phone == "first"

    def test_clear(self, db_session):
        append_if_absent(db_session, build_ticket(_issue("P"), "1", clock=lambda: NOW))
        assert clear_tickets(db_session) == 1
        assert db_session.query(Ticket).count() == 0
