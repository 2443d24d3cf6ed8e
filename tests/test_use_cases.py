"""Tests for the notification run service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import make_item
from pubmed_notifier.adapters.formatting import ItemFormatter, LineEscaper
from pubmed_notifier.adapters.notifications import GroupedSectionBatcher
from pubmed_notifier.core import (
    CredentialStore,
    FeedHTTPStatusError,
    FeedItem,
    FeedSource,
    MessageBatch,
    NotificationProvider,
    OutcomeStatus,
    SeenIdsPolicy,
    Subscription,
    SubscriptionStore,
    TranslationError,
    Translator,
    WatermarkPolicy,
)
from pubmed_notifier.use_cases import NotificationRunService

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


class MemorySubscriptionStore(SubscriptionStore):
    """Subscription table kept in a list of rows."""

    def __init__(self, rows: list[list[str]]) -> None:
        self.rows = rows
        self.loads = 0
        self.saves = 0

    def load(self) -> list[Subscription]:
        self.loads += 1
        return [
            Subscription(keyword=k, feed_url=u, target_id=t, dedup_state=s, row_index=i)
            for i, (k, u, t, s) in enumerate(self.rows)
        ]

    def save(self, subscriptions: list[Subscription]) -> None:
        self.saves += 1
        for subscription in subscriptions:
            self.rows[subscription.row_index][3] = subscription.dedup_state

    def state(self, index: int = 0) -> str:
        return self.rows[index][3]


class MemoryCredentialStore(CredentialStore):
    def __init__(self, credentials: dict[str, str]) -> None:
        self.credentials = credentials

    def load(self) -> dict[str, str]:
        return dict(self.credentials)


class StaticSource(FeedSource):
    """Feed source serving fixed items per URL."""

    def __init__(self, feeds: dict[str, list[FeedItem]]) -> None:
        self.feeds = feeds
        self.fetched: list[str] = []

    async def fetch(self, feed_url: str) -> list[FeedItem]:
        self.fetched.append(feed_url)
        items = self.feeds.get(feed_url)
        if items is None:
            raise FeedHTTPStatusError(feed_url, 500)
        return list(items)


class RecordingProvider(NotificationProvider):
    """One item per batch; records every send and answers from a script."""

    name = "recording"

    def __init__(self, results: list[bool] | None = None) -> None:
        self.escaper = LineEscaper()
        self.batcher = GroupedSectionBatcher(group_size=1, max_sections=1)
        self.results = list(results or [])
        self.sent: list[tuple[MessageBatch, str, bool]] = []

    def build_header(self, keyword: str, count: int) -> str:
        return f"{keyword}:{count}"

    def render_fragment(self, link, title, translation, credit, source_name, source_date) -> str:
        return title

    async def send(self, batch: MessageBatch, credential: str, *, first: bool) -> bool:
        self.sent.append((batch, credential, first))
        return self.results.pop(0) if self.results else True

    def sent_titles(self) -> list[str]:
        return [batch.text for batch, _, _ in self.sent]


def _items(*ids: str) -> list[FeedItem]:
    return [make_item(item_id, day, title=item_id) for day, item_id in enumerate(ids, 1)]


def _service(store, source, provider, credentials=None, dedup=None, formatter=None, dry_run=False):
    return NotificationRunService(
        subscription_store=store,
        credential_store=MemoryCredentialStore(credentials if credentials is not None else {"lab": "secret"}),
        source=source,
        dedup=dedup or SeenIdsPolicy(),
        formatter=formatter or ItemFormatter(provider),
        provider=provider,
        dry_run=dry_run,
    )


@pytest.mark.asyncio
async def test_delivers_new_items_oldest_first_and_commits() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "A,B"]])
    source = StaticSource({"feed": _items("A", "B", "C", "D", "E")})
    provider = RecordingProvider()

    report = await _service(store, source, provider).run()

    assert provider.sent_titles() == ["C", "D", "E"]
    assert [first for _, _, first in provider.sent] == [True, False, False]
    assert all(credential == "secret" for _, credential, _ in provider.sent)
    assert provider.sent[0][0].title == "BRCA1:3"
    assert store.state() == "A,B,C,D,E"

    outcome = report.outcomes[0]
    assert outcome.status == OutcomeStatus.DELIVERED
    assert outcome.new_items == 3
    assert outcome.batches_sent == 3
    assert outcome.state_committed is True


@pytest.mark.asyncio
async def test_failed_batch_leaves_state_unchanged() -> None:
    """Batch 2 of 3 fails: seen set stays {A,B} and batch 3 is not sent."""
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "A,B"]])
    source = StaticSource({"feed": _items("A", "B", "C", "D", "E")})
    provider = RecordingProvider(results=[True, False, True])

    report = await _service(store, source, provider).run()

    assert provider.sent_titles() == ["C", "D"]
    assert store.state() == "A,B"
    outcome = report.outcomes[0]
    assert outcome.status == OutcomeStatus.DELIVERY_FAILED
    assert outcome.batches_sent == 1
    assert outcome.state_committed is False


@pytest.mark.asyncio
async def test_failed_items_are_retried_next_run() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "A,B"]])
    source = StaticSource({"feed": _items("A", "B", "C", "D")})

    await _service(store, source, RecordingProvider(results=[False])).run()
    retry = RecordingProvider()
    await _service(store, source, retry).run()

    assert retry.sent_titles() == ["C", "D"]
    assert store.state() == "A,B,C,D"


@pytest.mark.asyncio
async def test_rerun_with_unchanged_feed_is_idempotent() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "A,B,C"]])
    source = StaticSource({"feed": _items("A", "B", "C")})
    provider = RecordingProvider()

    report = await _service(store, source, provider).run()

    assert provider.sent == []
    assert store.state() == "A,B,C"
    assert report.outcomes[0].status == OutcomeStatus.NO_NEW_ITEMS


@pytest.mark.asyncio
async def test_no_item_is_notified_twice_across_runs() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", ""]])
    provider = RecordingProvider()

    await _service(store, StaticSource({"feed": _items("A", "B")}), provider).run()
    await _service(store, StaticSource({"feed": _items("A", "B")}), provider).run()
    await _service(store, StaticSource({"feed": _items("A", "B", "C")}), provider).run()

    titles = provider.sent_titles()
    assert titles == ["A", "B", "C"]
    assert len(titles) == len(set(titles))


@pytest.mark.asyncio
async def test_missing_credential_skips_without_http() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "unknown", "A"]])
    source = StaticSource({"feed": _items("A", "B")})
    provider = RecordingProvider()

    report = await _service(store, source, provider).run()

    assert source.fetched == []
    assert provider.sent == []
    assert store.state() == "A"
    assert report.outcomes[0].status == OutcomeStatus.MISSING_CREDENTIAL


@pytest.mark.asyncio
async def test_fetch_failure_is_isolated() -> None:
    """A broken feed is skipped and the next subscription still runs."""
    store = MemorySubscriptionStore([
        ["broken", "missing-feed", "lab", "X"],
        ["BRCA1", "feed", "lab", ""],
    ])
    source = StaticSource({"feed": _items("A")})
    provider = RecordingProvider()

    report = await _service(store, source, provider).run()

    assert [o.status for o in report.outcomes] == [
        OutcomeStatus.FETCH_FAILED,
        OutcomeStatus.DELIVERED,
    ]
    assert store.state(0) == "X"
    assert store.state(1) == "A"
    assert report.failed == 1 and report.delivered == 1


class BrokenUrlSource(StaticSource):
    """Feed source whose client blows up on one URL with a non-fetch error."""

    def __init__(self, feeds: dict[str, list[FeedItem]], broken_url: str) -> None:
        super().__init__(feeds)
        self.broken_url = broken_url

    async def fetch(self, feed_url: str) -> list[FeedItem]:
        if feed_url == self.broken_url:
            raise ValueError(f"cannot build request for {feed_url}")
        return await super().fetch(feed_url)


@pytest.mark.asyncio
async def test_unexpected_error_keeps_other_rows_committed() -> None:
    """A row that raises is reported and the earlier row's state is still saved."""
    store = MemorySubscriptionStore([
        ["ok", "feed", "lab", ""],
        ["bad", "http://[::1/rss", "lab", "X"],
        ["later", "feed", "lab", "A"],
    ])
    source = BrokenUrlSource({"feed": _items("A")}, broken_url="http://[::1/rss")
    provider = RecordingProvider()

    report = await _service(store, source, provider).run()

    assert [o.status for o in report.outcomes] == [
        OutcomeStatus.DELIVERED,
        OutcomeStatus.ERROR,
        OutcomeStatus.NO_NEW_ITEMS,
    ]
    assert "cannot build request" in report.outcomes[1].detail
    assert provider.sent_titles() == ["A"]
    assert store.saves == 1
    assert store.state(0) == "A"
    assert store.state(1) == "X"
    assert report.failed == 1


@pytest.mark.asyncio
async def test_translation_failure_aborts_subscription() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "A"]])
    source = StaticSource({"feed": _items("A", "B")})
    provider = RecordingProvider()
    translator = AsyncMock(spec=Translator)
    translator.translate.side_effect = TranslationError("quota exceeded")
    formatter = ItemFormatter(provider, translator=translator)

    report = await _service(store, source, provider, formatter=formatter).run()

    assert provider.sent == []
    assert store.state() == "A"
    assert report.outcomes[0].status == OutcomeStatus.TRANSLATION_FAILED


@pytest.mark.asyncio
async def test_table_read_once_and_written_once() -> None:
    store = MemorySubscriptionStore([
        ["one", "feed", "lab", ""],
        ["two", "feed", "lab", ""],
    ])
    source = StaticSource({"feed": _items("A")})

    await _service(store, source, RecordingProvider()).run()

    assert store.loads == 1
    assert store.saves == 1


@pytest.mark.asyncio
async def test_dry_run_neither_sends_nor_saves() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", ""]])
    source = StaticSource({"feed": _items("A", "B")})
    provider = RecordingProvider()

    report = await _service(store, source, provider, dry_run=True).run()

    assert provider.sent == []
    assert store.saves == 0
    assert store.state() == ""
    assert report.outcomes[0].status == OutcomeStatus.DRY_RUN
    assert report.outcomes[0].new_items == 2


@pytest.mark.asyncio
async def test_watermark_commits_now_after_delivery() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "2024-01-01T12:00:00+00:00"]])
    source = StaticSource({"feed": _items("A", "B", "C")})
    provider = RecordingProvider()
    dedup = WatermarkPolicy(clock=lambda: NOW)

    await _service(store, source, provider, dedup=dedup).run()

    assert provider.sent_titles() == ["B", "C"]
    assert store.state() == NOW.isoformat()


@pytest.mark.asyncio
async def test_watermark_empty_run_keeps_state_by_default() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "2024-01-05T00:00:00+00:00"]])
    source = StaticSource({"feed": _items("A", "B")})
    dedup = WatermarkPolicy(clock=lambda: NOW)

    report = await _service(store, source, RecordingProvider(), dedup=dedup).run()

    assert store.state() == "2024-01-05T00:00:00+00:00"
    assert report.outcomes[0].state_committed is False


@pytest.mark.asyncio
async def test_watermark_empty_run_advances_when_configured() -> None:
    store = MemorySubscriptionStore([["BRCA1", "feed", "lab", "2024-01-05T00:00:00+00:00"]])
    source = StaticSource({"feed": _items("A", "B")})
    dedup = WatermarkPolicy(advance_on_empty=True, clock=lambda: NOW)

    report = await _service(store, source, RecordingProvider(), dedup=dedup).run()

    assert store.state() == NOW.isoformat()
    assert report.outcomes[0].status == OutcomeStatus.NO_NEW_ITEMS
    assert report.outcomes[0].state_committed is True
