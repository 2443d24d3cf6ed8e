"""Core domain layer."""

from pubmed_notifier.core.dedup import DedupPolicy, SeenIdsPolicy, WatermarkPolicy, build_policy
from pubmed_notifier.core.entities import (
    FeedItem,
    MessageBatch,
    OutcomeStatus,
    RunReport,
    Subscription,
    SubscriptionOutcome,
)
from pubmed_notifier.core.errors import (
    ConfigError,
    DeliveryError,
    FeedHTTPStatusError,
    FeedParseError,
    FetchError,
    MissingCredentialError,
    NotifierError,
    TranslationError,
)
from pubmed_notifier.core.interfaces import (
    Batcher,
    CredentialStore,
    Escaper,
    FeedSource,
    NotificationProvider,
    SubscriptionStore,
    Translator,
)

__all__ = [
    "FeedItem",
    "Subscription",
    "MessageBatch",
    "OutcomeStatus",
    "SubscriptionOutcome",
    "RunReport",
    "NotifierError",
    "ConfigError",
    "MissingCredentialError",
    "FetchError",
    "FeedHTTPStatusError",
    "FeedParseError",
    "TranslationError",
    "DeliveryError",
    "FeedSource",
    "Translator",
    "Escaper",
    "Batcher",
    "NotificationProvider",
    "SubscriptionStore",
    "CredentialStore",
    "DedupPolicy",
    "SeenIdsPolicy",
    "WatermarkPolicy",
    "build_policy",
]
