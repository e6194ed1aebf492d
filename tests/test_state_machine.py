import pytest

from app.services.catalog_service import Issue
from app.services.state_machine import (
    OTHER_SELECTION,
    ChatSession,
    InvalidTransitionError,
    SessionRegistry,
    SessionState,
    can_transition,
    confirm,
    reset,
    select_issue,
    transition,
)

ISSUE = Issue(department_code="I", number=3, description="Server hardware failure")


class TestTransitions:
    def test_idle_to_awaiting(self):
        assert transition(SessionState.IDLE, SessionState.AWAITING_CONFIRMATION) == SessionState.AWAITING_CONFIRMATION

    def test_awaiting_to_idle(self):
        assert transition(SessionState.AWAITING_CONFIRMATION, SessionState.IDLE) == SessionState.IDLE

    def test_reselect_while_awaiting(self):
        assert can_transition(SessionState.AWAITING_CONFIRMATION, SessionState.AWAITING_CONFIRMATION)


class TestSessionHelpers:
    def test_new_session_is_idle(self):
        session = ChatSession(sender="1")
        assert session.state == SessionState.IDLE
        assert session.pending_issue is None

    def test_select_issue(self):
        session = select_issue(ChatSession(sender="1"), ISSUE)
        assert session.state == SessionState.AWAITING_CONFIRMATION
        assert session.pending_issue == ISSUE

    def test_select_other(self):
        session = select_issue(ChatSession(sender="1"), OTHER_SELECTION)
        assert session.pending_issue == OTHER_SELECTION

    def test_select_unknown_string_fails(self):
        with pytest.raises(ValueError):
            select_issue(ChatSession(sender="1"), "printer")

    def test_reset(self):
        session = select_issue(ChatSession(sender="1"), ISSUE)
        assert reset(session) == ChatSession(sender="1")

    def test_reset_idle_returns_same_session(self):
        session = ChatSession(sender="1")
        assert reset(session) is session

    def test_confirm(self):
        selection, session = confirm(select_issue(ChatSession(sender="1"), ISSUE))
        assert selection == ISSUE
        assert session.state == SessionState.IDLE

    def test_confirm_from_idle_fails(self):
        with pytest.raises(InvalidTransitionError):
            confirm(ChatSession(sender="1"))


class TestSessionRegistry:
    def test_get_creates_idle_session(self):
        registry = SessionRegistry()
        assert registry.get("1") == ChatSession(sender="1")
        assert len(registry) == 1

    def test_save_replaces_session(self):
        registry = SessionRegistry()
        registry.save(select_issue(registry.get("1"), ISSUE))
        assert registry.get("1").pending_issue == ISSUE

    def test_sessions_are_per_sender(self):
        registry = SessionRegistry()
        registry.save(select_issue(registry.get("1"), ISSUE))
        assert registry.get("2").pending_issue is None
        assert len(registry.all()) == 2

    def test_clear(self):
        registry = SessionRegistry()
        registry.get("1")
        registry.clear()
        assert len(registry) == 0
