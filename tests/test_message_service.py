from datetime import datetime, timedelta, timezone

import pytest

from app.models import INCOMING, OUTGOING, ChatMessage
from app.services.message_service import (
    all_since,
    append_incoming,
    append_outgoing,
    as_utc,
    clear_messages,
    parse_timestamp,
)


class TestTimestamps:
    def test_parse_zulu(self):
        assert parse_timestamp("2026-03-14T09:26:53Z") == datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)

    def test_parse_offset_converts_to_utc(self):
        parsed = parse_timestamp("2026-03-14T11:26:53+02:00")
        assert parsed == datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)

    def test_parse_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_as_utc_attaches_zone_to_naive(self):
        assert as_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc


class TestMessageStore:
    def test_append_incoming(self, db_session):
        message = append_incoming(db_session, "27820000000", "#sprout", external_id="wamid.1")
        assert message.direction == INCOMING
        assert message.status == "received"
        assert message.public_id == f"msg_in_{message.id}"

    def test_redelivery_returns_stored_row(self, db_session):
        first = append_incoming(db_session, "27820000000", "#sprout", external_id="wamid.1")
        second = append_incoming(db_session, "27820000000", "#sprout", external_id="wamid.1")
        assert first.id == second.id
        assert db_session.query(ChatMessage).count() == 1

    def test_without_external_id_always_appends(self, db_session):
        append_incoming(db_session, "1", "hi")
        append_incoming(db_session, "1", "hi")
        assert db_session.query(ChatMessage).count() == 2

    def test_append_outgoing(self, db_session):
        message = append_outgoing(db_session, "27820000000", "Hello")
        assert message.direction == OUTGOING
        assert message.public_id.startswith("msg_out_")

    def test_all_since_is_strict(self, db_session):
        base = datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)
        for offset, direction in [(1, INCOMING), (2, OUTGOING), (3, INCOMING)]:
            db_session.add(
                ChatMessage(
                    direction=direction,
                    counterpart="1",
                    content=f"m{offset}",
                    status="received",
                    created_at=base + timedelta(seconds=offset),
                )
            )
        db_session.flush()

        incoming, outgoing = all_since(db_session, base + timedelta(seconds=1))
        assert [row.content for row in incoming] == ["m3"]
        assert [row.content for row in outgoing] == ["m2"]

        incoming, outgoing = all_since(db_session, None)
        assert len(incoming) + len(outgoing) == 3

    def test_clear(self, db_session):
        append_incoming(db_session, "1", "hi")
        append_outgoing(db_session, "1", "hello")
        assert clear_messages(db_session) == 2
        assert all_since(db_session, None) == ([], [])

    def test_ids_not_reused_after_clear(self, db_session):
        first = append_incoming(db_session, "1", "hi")
        clear_messages(db_session)
        second = append_incoming(db_session, "1", "hi again")
        assert second.id > first.id
        assert second.public_id != first.public_id
