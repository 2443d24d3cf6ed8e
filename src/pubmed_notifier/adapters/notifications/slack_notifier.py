"""Slack notification adapter."""

from typing import Any

import httpx

from pubmed_notifier.adapters.formatting.markup import SlackEscaper
from pubmed_notifier.adapters.notifications.batching import GroupedSectionBatcher
from pubmed_notifier.core import MessageBatch, NotificationProvider

FALLBACK_TEXT_LENGTH = 150
LABEL_BAR = "¦"


class SlackNotifier(NotificationProvider):
    """Send grouped mrkdwn sections to a Slack incoming webhook.

    The credential passed to ``send`` is the webhook URL of the target
    channel.
    """

    name = "slack"

    def __init__(self, group_size: int = 5, max_blocks: int = 50, timeout: float = 30.0) -> None:
        self.escaper = SlackEscaper()
        self.batcher = GroupedSectionBatcher(group_size=group_size, max_sections=max_blocks)
        self.timeout = timeout

    def build_header(self, keyword: str, count: int) -> str:
        noun = "article" if count == 1 else "articles"
        return f"📚 {count} new PubMed {noun}: *{self.escaper.escape(keyword)}*"

    def render_fragment(
        self,
        link: str,
        title: str,
        translation: str,
        credit: str,
        source_name: str,
        source_date: str,
    ) -> str:
        # mrkdwn has no escape for the label separator inside <link|label>
        label = title.replace("|", LABEL_BAR)
        lines = [f"• <{link}|{label}>"]
        if translation:
            lines.append(f"   {translation}")

        citation = credit
        if source_name:
            citation += f", _{source_name}_"
        if source_date:
            citation += f" ({source_date})"
        lines.append(f"   {citation}")

        return "\n".join(lines) + "\n"

    def _build_payload(self, batch: MessageBatch) -> dict[str, Any]:
        """Build the webhook JSON body.

        Slack requires top-level ``text``; follow-up batches without a title
        use the start of their first section.
        """
        text = batch.title
        if not text:
            text = batch.sections[0][:FALLBACK_TEXT_LENGTH] if batch.sections else ""

        return {
            "text": text,
            "blocks": [
                {"type": "section", "text": {"type": "mrkdwn", "text": section}}
                for section in batch.sections
            ],
        }

    async def send(self, batch: MessageBatch, credential: str, *, first: bool) -> bool:
        """Post one batch to the webhook.

        Args:
            batch: Batch to deliver
            credential: Webhook URL
            first: Whether this is the first batch of the run (unused by Slack)
        """
        payload = self._build_payload(batch)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    credential,
                    json=payload,
                    headers={"Content-type": "application/json"},
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                print(f"  └─ ⚠️  Slack request failed: {e}")
                return False

        if response.status_code != 200:
            print(f"  └─ ⚠️  Slack answered HTTP {response.status_code}")
            return False

        return True
