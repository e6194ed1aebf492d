import re
from enum import Enum
from typing import Optional

MENU_COMMAND = "#sprout"
CONFIRMATION_WORD = "yes"


class Intent(str, Enum):
    SUPPORT_GREETING = "support_greeting"  # Greeting that also asks for help
    GREETING = "greeting"  # Greeting only
    SUPPORT_REQUEST = "support_request"  # Mentions a support keyword
    CONFIRMATION = "confirmation"  # "yes" to a pending ticket
    FAREWELL = "farewell"  # Goodbye / thanks
    MENU = "menu"  # #sprout command
    OTHER = "other"  # Ignored


# Exact greetings and their replies.
GREETING_RESPONSES = {
    "hi": "Hi there! 👋 Type #sprout to open the support menu.",
    "hello": "Hello! 👋 Type #sprout to open the support menu.",
    "hey": "Hey! 👋 Type #sprout to open the support menu.",
    "good morning": "Good morning! ☀️ Type #sprout to open the support menu.",
    "good afternoon": "Good afternoon! Type #sprout to open the support menu.",
    "good evening": "Good evening! 🌙 Type #sprout to open the support menu.",
    "greetings": "Greetings! Type #sprout to open the support menu.",
}

GREETING_STARTERS = (
    "hi",
    "hello",
    "hey",
    "good morning",
    "good afternoon",
    "good evening",
    "greetings",
    "howzit",
)

SUPPORT_KEYWORDS = (
    "help",
    "support",
    "issue",
    "problem",
    "assist",
    "not working",
    "broken",
    "error",
    "fault",
    "ticket",
)

FAREWELL_RESPONSES = {
    "bye": "Goodbye! Type #sprout whenever you need support.",
    "goodbye": "Goodbye! Type #sprout whenever you need support.",
    "see you": "See you! Type #sprout whenever you need support.",
    "thanks": "You're welcome! Type #sprout whenever you need support.",
    "thank you": "You're welcome! Type #sprout whenever you need support.",
    "cheers": "Cheers! Type #sprout whenever you need support.",
}

SUPPORT_GREETING_RESPONSE = (
    "Hello! 👋 Sorry to hear you need help. I can log a support ticket for you.\n\n"
    "Type #sprout to see our departments and pick the issue you are experiencing."
)
GREETING_NUDGE_RESPONSE = "Hello! 👋 Type #sprout to see how we can help you."

_GREETING_START_PATTERN = re.compile(
    r"^(?:" + "|".join(re.escape(starter) for starter in GREETING_STARTERS) + r")\b"
)
_SUPPORT_KEYWORD_PATTERNS = tuple(re.compile(rf"\b{re.escape(keyword)}") for keyword in SUPPORT_KEYWORDS)


def normalize_command(text: str) -> str:
    """Trim and lowercase; keeps '#' and other punctuation intact."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text.strip().lower())


def normalize_for_matching(text: str) -> str:
    """Normalize text for matching short phrases (casefold + trim punctuation)."""
    if not text:
        return ""

    normalized = text.strip().casefold()
    normalized = re.sub(r"\s+", " ", normalized)
    # "hi!" -> "hi", "bye." -> "bye"
    normalized = re.sub(r"^[^\w]+|[^\w]+$", "", normalized)
    return normalized


def is_menu_command(text: str) -> bool:
    return normalize_command(text).startswith(MENU_COMMAND)


def starts_with_greeting(text: str) -> bool:
    return bool(_GREETING_START_PATTERN.match(normalize_for_matching(text)))


def is_greeting_message(text: str) -> bool:
    return normalize_for_matching(text) in GREETING_RESPONSES


def greeting_response(text: str) -> Optional[str]:
    return GREETING_RESPONSES.get(normalize_for_matching(text))


def contains_support_keyword(text: str) -> bool:
    normalized = normalize_for_matching(text)
    if not normalized:
        return False
    return any(pattern.search(normalized) for pattern in _SUPPORT_KEYWORD_PATTERNS)


def is_support_greeting(text: str) -> bool:
    return (is_greeting_message(text) or starts_with_greeting(text)) and contains_support_keyword(text)


def is_confirmation(text: str) -> bool:
    return normalize_command(text) == CONFIRMATION_WORD


def farewell_response(text: str) -> Optional[str]:
    return FAREWELL_RESPONSES.get(normalize_for_matching(text))