"""Business logic use cases."""

from pubmed_notifier.adapters.formatting import ItemFormatter
from pubmed_notifier.core import (
    CredentialStore,
    DedupPolicy,
    DeliveryError,
    FeedSource,
    FetchError,
    MessageBatch,
    MissingCredentialError,
    NotificationProvider,
    OutcomeStatus,
    RunReport,
    Subscription,
    SubscriptionOutcome,
    SubscriptionStore,
    TranslationError,
)


class NotificationRunService:
    """Check every subscription once and notify about new articles.

    Subscriptions are processed one after another. A subscription's dedup
    state changes only when every batch for it was delivered, so anything
    that failed is retried on the next run. The table is read once at the
    start and written once at the end.
    """

    def __init__(
        self,
        subscription_store: SubscriptionStore,
        credential_store: CredentialStore,
        source: FeedSource,
        dedup: DedupPolicy,
        formatter: ItemFormatter,
        provider: NotificationProvider,
        dry_run: bool = False,
    ) -> None:
        self.subscription_store = subscription_store
        self.credential_store = credential_store
        self.source = source
        self.dedup = dedup
        self.formatter = formatter
        self.provider = provider
        self.dry_run = dry_run

    async def run(self) -> RunReport:
        """Process all subscriptions and persist their dedup state."""
        subscriptions = self.subscription_store.load()
        credentials = self.credential_store.load()

        print(f"\n📡 {len(subscriptions)} subscriptions, provider: {self.provider.name}")

        report = RunReport()
        for subscription in subscriptions:
            try:
                outcome = await self.process(subscription, credentials)
            except Exception as e:
                print(f"  └─ ❌ Unexpected error: {e}")
                outcome = SubscriptionOutcome(subscription, OutcomeStatus.ERROR, detail=str(e))
            report.outcomes.append(outcome)

        if subscriptions and not self.dry_run:
            self.subscription_store.save(subscriptions)

        return report

    async def process(
        self, subscription: Subscription, credentials: dict[str, str]
    ) -> SubscriptionOutcome:
        """Run the check-and-notify pipeline for one subscription.

        The subscription's ``dedup_state`` is replaced only on success.
        """
        print(f"\n🔍 {subscription.keyword or subscription.feed_url} → {subscription.target_id}")

        try:
            credential = self._resolve_credential(subscription, credentials)
        except MissingCredentialError as e:
            print(f"  └─ ⏭️  Skipped: {e}")
            return SubscriptionOutcome(subscription, OutcomeStatus.MISSING_CREDENTIAL, detail=str(e))

        try:
            items = await self.source.fetch(subscription.feed_url)
        except FetchError as e:
            print(f"  └─ ❌ Feed error: {e}")
            return SubscriptionOutcome(subscription, OutcomeStatus.FETCH_FAILED, detail=str(e))

        state = self.dedup.parse(subscription.dedup_state)
        new_items, updated_state = self.dedup.filter_new(items, state)
        print(f"  └─ Items in feed: {len(items)}, new: {len(new_items)}")

        if not new_items:
            committed = False
            if self.dedup.advance_on_empty and not self.dry_run:
                subscription.dedup_state = self.dedup.serialize(updated_state)
                committed = True
            return SubscriptionOutcome(
                subscription, OutcomeStatus.NO_NEW_ITEMS, state_committed=committed
            )

        try:
            fragments = await self.formatter.format_all(new_items)
        except TranslationError as e:
            print(f"  └─ ❌ Translation error: {e}")
            return SubscriptionOutcome(
                subscription,
                OutcomeStatus.TRANSLATION_FAILED,
                new_items=len(new_items),
                detail=str(e),
            )

        batches = self.provider.build_batches(subscription.keyword, fragments)

        if self.dry_run:
            self._print_batches(batches)
            return SubscriptionOutcome(
                subscription, OutcomeStatus.DRY_RUN, new_items=len(new_items)
            )

        try:
            await self._dispatch(batches, credential)
        except DeliveryError as e:
            print(f"  └─ ❌ {e}, state left unchanged")
            return SubscriptionOutcome(
                subscription,
                OutcomeStatus.DELIVERY_FAILED,
                new_items=len(new_items),
                batches_sent=e.batch_index,
                detail=str(e),
            )

        subscription.dedup_state = self.dedup.serialize(updated_state)
        print(f"  └─ ✓ Sent {len(batches)} message(s)")
        return SubscriptionOutcome(
            subscription,
            OutcomeStatus.DELIVERED,
            new_items=len(new_items),
            batches_sent=len(batches),
            state_committed=True,
        )

    def _resolve_credential(self, subscription: Subscription, credentials: dict[str, str]) -> str:
        credential = credentials.get(subscription.target_id)
        if not credential:
            raise MissingCredentialError(subscription.target_id)
        return credential

    async def _dispatch(self, batches: list[MessageBatch], credential: str) -> None:
        """Send batches in order, stopping at the first failure."""
        for index, batch in enumerate(batches):
            delivered = await self.provider.send(batch, credential, first=index == 0)
            if not delivered:
                raise DeliveryError(index, len(batches))

    def _print_batches(self, batches: list[MessageBatch]) -> None:
        for index, batch in enumerate(batches, 1):
            print(f"  ─── message {index}/{len(batches)} " + "─" * 40)
            if batch.title:
                print(f"  {batch.title}")
            print(batch.text)
