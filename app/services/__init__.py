from app.services.command_service import (
    Decision,
    interpret,
)
from app.services.conversation_service import (
    SupportAssistant,
    get_assistant,
)
from app.services.dedup_service import Deduplicator
from app.services.state_machine import (
    ChatSession,
    InvalidTransitionError,
    SessionState,
    can_transition,
    confirm,
    reset,
    select_issue,
    transition,
)
from app.services.sync_service import SyncCursor
