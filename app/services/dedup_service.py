"""In-memory suppression of repeated inbound messages.

Two independent bounded caches:
- message ids already handled (exact, oldest evicted first once over capacity);
- recently seen message content per sender (time window, guards double taps).

Both are advisory: a miss only leads to a duplicate reply.
"""

import time
from collections import OrderedDict
from typing import Callable, Optional

from app.logging_config import get_logger

logger = get_logger("dedup_service")

DEFAULT_ID_CAPACITY = 1000
DEFAULT_CONTENT_WINDOW_SECONDS = 10.0
DEFAULT_CONTENT_CAPACITY = 1000


def normalize_content(content: str) -> str:
    return (content or "").strip().lower()


class SeenIdCache:
    """Insertion-ordered set of message ids capped at `capacity`."""

    def __init__(self, capacity: int = DEFAULT_ID_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._ids: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, message_id: str) -> bool:
        """Record id. Returns False if it was already present."""
        if message_id in self._ids:
            return False
        self._ids[message_id] = None
        while len(self._ids) > self.capacity:
            self._ids.popitem(last=False)
        return True


class RecentContentCache:
    """Maps content keys to the time they were last accepted, within `window_seconds`."""

    def __init__(self, window_seconds: float = DEFAULT_CONTENT_WINDOW_SECONDS, capacity: int = DEFAULT_CONTENT_CAPACITY):
        self.window_seconds = window_seconds
        self.capacity = capacity
        self._seen: OrderedDict[str, float] = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def purge(self, now: float) -> None:
        expired = [key for key, seen_at in self._seen.items() if now - seen_at > self.window_seconds]
        for key in expired:
            self._seen.pop(key, None)

    def check_and_record(self, key: str, now: float) -> bool:
        self.purge(now)
        seen_at = self._seen.get(key)
        if seen_at is not None and now - seen_at <= self.window_seconds:
            return False
        self._seen.pop(key, None)
        self._seen[key] = now
        while len(self._seen) > self.capacity:
            self._seen.popitem(last=False)
        return True


class Deduplicator:
    def __init__(
        self,
        *,
        id_capacity: int = DEFAULT_ID_CAPACITY,
        content_window_seconds: float = DEFAULT_CONTENT_WINDOW_SECONDS,
        content_capacity: int = DEFAULT_CONTENT_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.seen_ids = SeenIdCache(id_capacity)
        self.recent_content = RecentContentCache(content_window_seconds, content_capacity)
        self._clock = clock

    def should_process_by_id(self, message_id: Optional[str]) -> bool:
        if not message_id:
            return True
        accepted = self.seen_ids.add(message_id)
        if not accepted:
            logger.info("Duplicate message id suppressed", extra={"context": {"message_id": message_id}})
        return accepted

    def should_process_by_content(self, content: str, now: Optional[float] = None, *, sender: str = "") -> bool:
        normalized = normalize_content(content)
        key = f"{sender}\x00{normalized}" if sender else normalized
        now = self._clock() if now is None else now
        accepted = self.recent_content.check_and_record(key, now)
        if not accepted:
            logger.info(
                "Repeated content suppressed",
                extra={"context": {"sender": sender, "window_seconds": self.recent_content.window_seconds}},
            )
        return accepted
