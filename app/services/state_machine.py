from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from app.services.catalog_service import Issue

OTHER_SELECTION = "other"

PendingIssue = Union[Issue, str]


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


VALID_TRANSITIONS = {
    SessionState.IDLE: [SessionState.IDLE, SessionState.AWAITING_CONFIRMATION],
    SessionState.AWAITING_CONFIRMATION: [SessionState.IDLE, SessionState.AWAITING_CONFIRMATION],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: SessionState, to_state: SessionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


@dataclass(frozen=True)
class ChatSession:
    """Per-sender conversation state. Immutable: transitions return a new session."""

    sender: str
    pending_issue: Optional[PendingIssue] = None

    @property
    def state(self) -> SessionState:
        if self.pending_issue is None:
            return SessionState.IDLE
        return SessionState.AWAITING_CONFIRMATION


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: SessionState, to_state: SessionState) -> SessionState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def select_issue(session: ChatSession, issue: PendingIssue) -> ChatSession:
    """Remember an issue (or the "other" sentinel) until the user confirms."""
    if isinstance(issue, str) and issue != OTHER_SELECTION:
        raise ValueError(f"Unknown pending selection: {issue!r}")
    transition(session.state, SessionState.AWAITING_CONFIRMATION)
    return ChatSession(sender=session.sender, pending_issue=issue)


def reset(session: ChatSession) -> ChatSession:
    """Drop any pending selection."""
    transition(session.state, SessionState.IDLE)
    if session.pending_issue is None:
        return session
    return ChatSession(sender=session.sender)


def confirm(session: ChatSession) -> tuple[PendingIssue, ChatSession]:
    """Consume the pending selection. Only valid while awaiting confirmation."""
    if session.state != SessionState.AWAITING_CONFIRMATION:
        raise InvalidTransitionError(session.state, SessionState.IDLE)
    return session.pending_issue, ChatSession(sender=session.sender)


class SessionRegistry:
    """One ChatSession per sender, created lazily and kept for the process lifetime."""

    def __init__(self):
        self._sessions: dict[str, ChatSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, sender: str) -> ChatSession:
        session = self._sessions.get(sender)
        if session is None:
            session = ChatSession(sender=sender)
            self._sessions[sender] = session
        return session

    def save(self, session: ChatSession) -> None:
        self._sessions[session.sender] = session

    def clear(self) -> None:
        self._sessions.clear()

    def all(self) -> list[ChatSession]:
        return list(self._sessions.values())
