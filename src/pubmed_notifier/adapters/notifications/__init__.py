"""Notification providers and batching strategies."""

from pubmed_notifier.adapters.notifications.batching import GroupedSectionBatcher, SizeBoundedBatcher
from pubmed_notifier.adapters.notifications.line_notifier import LINE_NOTIFY_URL, LineNotifier
from pubmed_notifier.adapters.notifications.slack_notifier import SlackNotifier

__all__ = [
    "GroupedSectionBatcher",
    "SizeBoundedBatcher",
    "SlackNotifier",
    "LineNotifier",
    "LINE_NOTIFY_URL",
]
