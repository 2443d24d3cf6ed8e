"""LINE Notify adapter."""

import httpx

from pubmed_notifier.adapters.formatting.markup import LineEscaper
from pubmed_notifier.adapters.notifications.batching import SizeBoundedBatcher
from pubmed_notifier.core import MessageBatch, NotificationProvider

LINE_NOTIFY_URL = "https://notify-api.line.me/api/notify"


class LineNotifier(NotificationProvider):
    """Send plain-text messages through LINE Notify.

    The credential passed to ``send`` is the personal access token of the
    target. LINE Notify caps messages at 1000 characters.
    """

    name = "line"

    def __init__(
        self,
        max_chars: int = 1000,
        silent_after_first: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self.escaper = LineEscaper()
        self.batcher = SizeBoundedBatcher(max_chars=max_chars)
        self.silent_after_first = silent_after_first
        self.timeout = timeout

    def build_header(self, keyword: str, count: int) -> str:
        return f"\n【{keyword}】 {count} new"

    def render_fragment(
        self,
        link: str,
        title: str,
        translation: str,
        credit: str,
        source_name: str,
        source_date: str,
    ) -> str:
        lines = ["", f"■ {title}"]
        if translation:
            lines.append(translation)
        lines.append(credit)
        citation = " ".join(part for part in (source_name, f"({source_date})" if source_date else "") if part)
        if citation:
            lines.append(citation)
        lines.append(link)

        return "\n".join(lines) + "\n"

    async def send(self, batch: MessageBatch, credential: str, *, first: bool) -> bool:
        """Post one batch as a LINE Notify message.

        Args:
            batch: Batch to deliver
            credential: LINE Notify access token
            first: Only the first batch of a run rings when silent_after_first is set
        """
        data = {"message": batch.text}
        if self.silent_after_first and not first:
            data["notificationDisabled"] = "true"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    LINE_NOTIFY_URL,
                    headers={"Authorization": f"Bearer {credential}"},
                    data=data,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                print(f"  └─ ⚠️  LINE Notify request failed: {e}")
                return False

        if response.status_code != 200:
            print(f"  └─ ⚠️  LINE Notify answered HTTP {response.status_code}")
            return False

        return True
