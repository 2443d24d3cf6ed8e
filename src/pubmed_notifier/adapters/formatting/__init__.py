"""Fragment formatting adapters."""

from pubmed_notifier.adapters.formatting.item_formatter import (
    ItemFormatter,
    article_link,
    author_credit,
)
from pubmed_notifier.adapters.formatting.markup import LineEscaper, SlackEscaper, clean_title

__all__ = [
    "ItemFormatter",
    "article_link",
    "author_credit",
    "clean_title",
    "SlackEscaper",
    "LineEscaper",
]
