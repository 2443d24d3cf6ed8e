"""Render feed items as notification fragments."""

from typing import Optional

from pubmed_notifier.adapters.formatting.markup import clean_title
from pubmed_notifier.core import FeedItem, NotificationProvider, TranslationError, Translator

PUBMED_BASE_URL = "https://pubmed.ncbi.nlm.nih.gov/"
NO_AUTHORS = "No authors listed"


def author_credit(authors: tuple[str, ...]) -> str:
    """First author, with "et al." when there are more."""
    if not authors:
        return NO_AUTHORS
    if len(authors) > 1:
        return f"{authors[0]} et al."
    return authors[0]


def article_link(item_id: str) -> str:
    return f"{PUBMED_BASE_URL}{item_id}/"


class ItemFormatter:
    """Turn a FeedItem into a fragment for one destination.

    Args:
        provider: Destination whose escaping and layout are used
        translator: Optional translator for the secondary-language title
        source_lang: Language of feed titles
        target_lang: Language to translate into
        fallback_on_error: Use the original title when translation fails
            instead of raising TranslationError
    """

    def __init__(
        self,
        provider: NotificationProvider,
        translator: Optional[Translator] = None,
        source_lang: str = "en",
        target_lang: str = "ja",
        fallback_on_error: bool = False,
    ) -> None:
        self.provider = provider
        self.translator = translator
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.fallback_on_error = fallback_on_error

    async def format(self, item: FeedItem) -> str:
        escaper = self.provider.escaper

        title = escaper.escape(clean_title(item.title, escaper.emphasis))

        translation = ""
        if self.translator is not None:
            plain_title = clean_title(item.title)
            translation = escaper.escape(await self._translate(plain_title))

        return self.provider.render_fragment(
            link=article_link(item.id),
            title=title,
            translation=translation,
            credit=escaper.escape(author_credit(item.authors)),
            source_name=escaper.escape(item.source_name),
            source_date=escaper.escape(item.source_date),
        )

    async def format_all(self, items: list[FeedItem]) -> list[str]:
        """Format items in order; the first failure propagates."""
        fragments = []
        for item in items:
            fragments.append(await self.format(item))
        return fragments

    async def _translate(self, text: str) -> str:
        try:
            return await self.translator.translate(text, self.source_lang, self.target_lang)
        except TranslationError as e:
            if not self.fallback_on_error:
                raise
            print(f"  ⚠️  Translation failed, keeping original title: {e}")
            return text
