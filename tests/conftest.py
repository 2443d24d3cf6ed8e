"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from pubmed_notifier.core import FeedItem

SAMPLE_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss xmlns:dc="http://purl.org/dc/elements/1.1/" version="2.0">
  <channel>
    <title>pubmed: BRCA1</title>
    <link>https://pubmed.ncbi.nlm.nih.gov/rss/search/abc/</link>
    <item>
      <title>&lt;em&gt;BRCA1&lt;/em&gt; variants in &lt;sup&gt;18&lt;/sup&gt;F imaging</title>
      <link>https://pubmed.ncbi.nlm.nih.gov/30000003/?utm_source=rss</link>
      <description>Newest article</description>
      <pubDate>Wed, 03 Jan 2024 06:00:00 -0500</pubDate>
      <dc:creator>Tanaka H</dc:creator>
      <dc:creator>Smith J</dc:creator>
      <dc:date>2024-01-03</dc:date>
      <dc:source>Nat Genet</dc:source>
      <dc:identifier>pmid:30000003</dc:identifier>
      <guid isPermaLink="false">pubmed:30000003</guid>
    </item>
    <item>
      <title>Second article</title>
      <link>https://pubmed.ncbi.nlm.nih.gov/30000002/?utm_source=rss</link>
      <pubDate>Tue, 02 Jan 2024 06:00:00 -0500</pubDate>
      <dc:creator>Doe A</dc:creator>
      <dc:date>2024-01-02</dc:date>
      <dc:source>Cell</dc:source>
      <guid isPermaLink="false">pubmed:30000002</guid>
    </item>
    <item>
      <title>Oldest article</title>
      <link>https://pubmed.ncbi.nlm.nih.gov/30000001/?utm_source=rss</link>
      <pubDate>Mon, 01 Jan 2024 06:00:00 -0500</pubDate>
      <dc:date>2024-01-01</dc:date>
      <dc:source>Science</dc:source>
      <guid isPermaLink="false">pubmed:30000001</guid>
    </item>
  </channel>
</rss>
"""


def make_item(item_id: str, day: int = 1, authors: tuple[str, ...] = ("Doe A",), title: str = "") -> FeedItem:
    """Build a feed item published on the given day of January 2024."""
    return FeedItem(
        id=item_id,
        title=title or f"Article {item_id}",
        published_at=datetime(2024, 1, day, tzinfo=timezone.utc),
        authors=authors,
        source_name="Nature",
        source_date=f"2024-01-{day:02d}",
    )


@pytest.fixture
def sample_feed() -> str:
    return SAMPLE_FEED
