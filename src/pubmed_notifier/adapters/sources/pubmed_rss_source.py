"""PubMed RSS feed source."""

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional
from xml.etree import ElementTree as ET

import httpx

from pubmed_notifier.core import FeedHTTPStatusError, FeedItem, FeedParseError, FeedSource

DC_NS = "http://purl.org/dc/elements/1.1/"
NAMESPACES = {"dc": DC_NS}


class PubMedRSSSource(FeedSource):
    """Fetch and parse PubMed saved-search RSS feeds."""

    emoji = "📚"
    name = "PubMed RSS"

    def __init__(self, timeout: float = 30.0, user_agent: str = "pubmed-notifier") -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    async def fetch(self, feed_url: str) -> list[FeedItem]:
        """Fetch feed items ordered oldest to newest."""
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = await client.get(feed_url, headers={"User-Agent": self.user_agent})
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise FeedHTTPStatusError(feed_url, None, str(e)) from e

        if response.status_code != 200:
            raise FeedHTTPStatusError(feed_url, response.status_code)

        items = self._parse_feed(response.text)

        # PubMed lists the newest article first
        items.reverse()
        return items

    def _parse_feed(self, xml_content: str) -> list[FeedItem]:
        """Parse an RSS 2.0 document in feed order."""
        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            raise FeedParseError(f"Malformed feed XML: {e}") from e

        channel = root.find("channel")
        if channel is None:
            raise FeedParseError("Feed has no <channel> element")

        items = []
        for element in channel.findall("item"):
            item = self._parse_item(element)
            if item is not None:
                items.append(item)

        return items

    def _parse_item(self, element: ET.Element) -> Optional[FeedItem]:
        item_id = self._extract_id(
            self._text(element, "guid"),
            self._text(element, "link"),
        )
        if not item_id:
            return None

        authors = tuple(
            creator.text.strip()
            for creator in element.findall("dc:creator", NAMESPACES)
            if creator.text and creator.text.strip()
        )

        return FeedItem(
            id=item_id,
            title=self._text(element, "title"),
            published_at=self._parse_date(self._text(element, "pubDate")),
            authors=authors,
            source_name=self._text(element, "dc:source"),
            source_date=self._text(element, "dc:date"),
        )

    def _text(self, element: ET.Element, path: str) -> str:
        child = element.find(path, NAMESPACES)
        if child is None or not child.text:
            return ""
        return child.text.strip()

    def _extract_id(self, guid: str, link: str) -> str:
        """Extract the PubMed ID from guid (``pubmed:12345``) or link."""
        match = re.match(r"pubmed:(\d+)", guid)
        if match:
            return match.group(1)

        # Link format: https://pubmed.ncbi.nlm.nih.gov/12345/?utm_source=...
        match = re.search(r"/(\d+)/?(?:\?|$)", link)
        if match:
            return match.group(1)

        return guid

    def _parse_date(self, value: str) -> datetime:
        if value:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                parsed = None
            if parsed is not None:
                if parsed.tzinfo is None:
                    parsed = parsed.replace(tzinfo=timezone.utc)
                return parsed
        return datetime.min.replace(tzinfo=timezone.utc)
