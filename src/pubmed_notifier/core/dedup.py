"""Dedup policies deciding which feed items are new."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pubmed_notifier.core.entities import FeedItem


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DedupPolicy(ABC):
    """Persisted novelty state and the rule applied to it."""

    name: str = ""
    advance_on_empty: bool = False

    @abstractmethod
    def parse(self, raw: str) -> Any:
        """Decode the state stored in the subscription row."""
        pass

    @abstractmethod
    def serialize(self, state: Any) -> str:
        """Encode state for the subscription row."""
        pass

    @abstractmethod
    def filter_new(self, items: list[FeedItem], state: Any) -> tuple[list[FeedItem], Any]:
        """Split off new items.

        Returns:
            Tuple of (new_items, updated_state)
        """
        pass


class SeenIdsPolicy(DedupPolicy):
    """Track the exact ids that were already notified.

    State is an ordered list of ids, stored comma-separated with commas
    and backslashes inside an id escaped by a backslash.
    """

    name = "seen_ids"

    def __init__(self, max_ids: Optional[int] = None) -> None:
        if max_ids is not None and max_ids < 1:
            raise ValueError("max_ids must be positive")
        self.max_ids = max_ids

    def parse(self, raw: str) -> list[str]:
        ids: list[str] = []
        for part in self._split(raw or ""):
            part = part.strip()
            if part and part not in ids:
                ids.append(part)
        return ids

    def serialize(self, state: list[str]) -> str:
        return ",".join(item_id.replace("\\", "\\\\").replace(",", "\\,") for item_id in state)

    def _split(self, raw: str) -> list[str]:
        """Split on unescaped commas, undoing ``\\,`` and ``\\\\``."""
        parts = []
        current = []
        escaped = False
        for char in raw:
            if escaped:
                current.append(char)
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == ",":
                parts.append("".join(current))
                current = []
            else:
                current.append(char)
        parts.append("".join(current))
        return parts

    def filter_new(
        self, items: list[FeedItem], state: list[str]
    ) -> tuple[list[FeedItem], list[str]]:
        seen = set(state)
        updated = list(state)
        new_items = []

        for item in items:
            if item.id in seen:
                continue
            # Recorded at once so a repeated id in the same pull counts once
            seen.add(item.id)
            updated.append(item.id)
            new_items.append(item)

        if self.max_ids is not None and len(updated) > self.max_ids:
            updated = updated[-self.max_ids:]

        return new_items, updated


class WatermarkPolicy(DedupPolicy):
    """Treat anything published after the last check as new.

    State is a timezone-aware datetime, stored as ISO-8601. Items that share
    a timestamp or are republished with a new one cannot be told apart.
    """

    name = "watermark"

    def __init__(
        self,
        advance_on_empty: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.advance_on_empty = advance_on_empty
        self.clock = clock

    def parse(self, raw: str) -> Optional[datetime]:
        raw = (raw or "").strip()
        if not raw:
            return None
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            print(f"  ⚠️  Unreadable watermark '{raw}', treating every item as new")
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value

    def serialize(self, state: Optional[datetime]) -> str:
        return state.isoformat() if state else ""

    def filter_new(
        self, items: list[FeedItem], state: Optional[datetime]
    ) -> tuple[list[FeedItem], datetime]:
        if state is None:
            new_items = list(items)
        else:
            new_items = [item for item in items if item.published_at > state]
        return new_items, self.clock()


def build_policy(name: str, max_ids: Optional[int] = None, advance_on_empty: bool = False) -> DedupPolicy:
    """Create a dedup policy from its configured name."""
    if name == SeenIdsPolicy.name:
        return SeenIdsPolicy(max_ids=max_ids)
    if name == WatermarkPolicy.name:
        return WatermarkPolicy(advance_on_empty=advance_on_empty)
    raise ValueError(f"Unknown dedup policy: {name}")
