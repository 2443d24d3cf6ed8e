"""Title cleaning and destination markup conventions."""

import re

from pubmed_notifier.core import Escaper

EMPHASIS_TAG = re.compile(r"<\s*/?\s*(?:i|em)\s*>", re.IGNORECASE)
SCRIPT_TAG = re.compile(r"<\s*/?\s*(?:sup|sub)\s*>", re.IGNORECASE)


def clean_title(title: str, emphasis: str = "") -> str:
    """Replace italic tags with ``emphasis`` and drop sup/sub tags.

    >>> clean_title("<em>BRCA1</em> variants in <sup>18</sup>F", "_")
    '_BRCA1_ variants in 18F'
    """
    title = EMPHASIS_TAG.sub(emphasis, title)
    title = SCRIPT_TAG.sub("", title)
    return title.strip()


class SlackEscaper(Escaper):
    """Slack mrkdwn: control characters must be sent as entities."""

    emphasis = "_"

    def escape(self, text: str) -> str:
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


class LineEscaper(Escaper):
    """LINE renders plain text, so entities are turned back into characters."""

    emphasis = ""

    def escape(self, text: str) -> str:
        return text.replace("&lt;", "<").replace("&gt;", ">").replace("&amp;", "&")
