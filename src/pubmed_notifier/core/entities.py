"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class FeedItem:
    """Single article parsed from a PubMed RSS feed."""

    id: str
    title: str
    published_at: datetime
    authors: tuple[str, ...] = ()
    source_name: str = ""
    source_date: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Item id cannot be empty")


@dataclass
class Subscription:
    """One monitored feed and its notification target."""

    keyword: str
    feed_url: str
    target_id: str
    dedup_state: str = ""
    row_index: int = 0


@dataclass
class MessageBatch:
    """Group of formatted fragments delivered as one outbound message."""

    sections: list[str] = field(default_factory=list)
    title: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(self.sections)


class OutcomeStatus(str, Enum):
    """Result of processing a single subscription."""

    DELIVERED = "delivered"
    NO_NEW_ITEMS = "no_new_items"
    MISSING_CREDENTIAL = "missing_credential"
    FETCH_FAILED = "fetch_failed"
    TRANSLATION_FAILED = "translation_failed"
    DELIVERY_FAILED = "delivery_failed"
    DRY_RUN = "dry_run"
    ERROR = "error"


@dataclass
class SubscriptionOutcome:
    """What happened to one subscription during a run."""

    subscription: Subscription
    status: OutcomeStatus
    new_items: int = 0
    batches_sent: int = 0
    state_committed: bool = False
    detail: str = ""


@dataclass
class RunReport:
    """Outcomes of a whole multi-subscription run."""

    outcomes: list[SubscriptionOutcome] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.DELIVERED)

    @property
    def failed(self) -> int:
        failures = {
            OutcomeStatus.FETCH_FAILED,
            OutcomeStatus.TRANSLATION_FAILED,
            OutcomeStatus.DELIVERY_FAILED,
            OutcomeStatus.ERROR,
        }
        return sum(1 for o in self.outcomes if o.status in failures)
