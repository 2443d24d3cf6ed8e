"""Core interfaces for adapters."""

from abc import ABC, abstractmethod

from pubmed_notifier.core.entities import FeedItem, MessageBatch, Subscription


class FeedSource(ABC):
    """Interface for fetching items from an RSS feed."""

    @abstractmethod
    async def fetch(self, feed_url: str) -> list[FeedItem]:
        """Fetch items ordered oldest to newest."""
        pass


class Translator(ABC):
    """Interface for machine translation."""

    @abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text between languages."""
        pass


class Escaper(ABC):
    """Markup convention of a notification destination."""

    emphasis: str = ""

    @abstractmethod
    def escape(self, text: str) -> str:
        """Adapt &, < and > to the destination's markup."""
        pass


class Batcher(ABC):
    """Interface for packing fragments into message batches."""

    @abstractmethod
    def pack(self, header: str, fragments: list[str]) -> list[MessageBatch]:
        """Pack fragments into ordered batches."""
        pass


class NotificationProvider(ABC):
    """Destination capability: escaping, batching and transport."""

    name: str = ""
    escaper: Escaper
    batcher: Batcher

    @abstractmethod
    def build_header(self, keyword: str, count: int) -> str:
        """Build the heading carried by the first batch."""
        pass

    @abstractmethod
    def render_fragment(
        self,
        link: str,
        title: str,
        translation: str,
        credit: str,
        source_name: str,
        source_date: str,
    ) -> str:
        """Lay out one item's already escaped fields."""
        pass

    def build_batches(self, keyword: str, fragments: list[str]) -> list[MessageBatch]:
        """Pack fragments behind this provider's header."""
        return self.batcher.pack(self.build_header(keyword, len(fragments)), fragments)

    @abstractmethod
    async def send(self, batch: MessageBatch, credential: str, *, first: bool) -> bool:
        """Deliver one batch. Returns True iff the destination answered 200."""
        pass


class SubscriptionStore(ABC):
    """Interface for the subscription table."""

    @abstractmethod
    def load(self) -> list[Subscription]:
        """Load all subscriptions."""
        pass

    @abstractmethod
    def save(self, subscriptions: list[Subscription]) -> None:
        """Write every subscription's dedup state back."""
        pass


class CredentialStore(ABC):
    """Interface for the target credential table."""

    @abstractmethod
    def load(self) -> dict[str, str]:
        """Load target id to credential mapping."""
        pass
