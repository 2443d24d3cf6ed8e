"""Source adapters for fetching feeds."""

from pubmed_notifier.adapters.sources.pubmed_rss_source import PubMedRSSSource

__all__ = ["PubMedRSSSource"]
