"""Strategies for packing fragments into message batches."""

from pubmed_notifier.core import Batcher, MessageBatch


class SizeBoundedBatcher(Batcher):
    """Concatenate fragments into plain-text messages of bounded length.

    The first batch opens with the header. A fragment that would push the
    current batch past ``max_chars`` starts a new one, so only a fragment
    that is itself over the limit can produce an oversized batch.
    """

    def __init__(self, max_chars: int = 1000) -> None:
        self.max_chars = max_chars

    def pack(self, header: str, fragments: list[str]) -> list[MessageBatch]:
        batches = [MessageBatch(sections=[header])]

        for fragment in fragments:
            current = batches[-1]
            if len(current.text) + len(fragment) > self.max_chars:
                batches.append(MessageBatch(sections=[fragment]))
            else:
                current.sections.append(fragment)

        return batches


class GroupedSectionBatcher(Batcher):
    """Group fragments into fixed-size sections under a title.

    Item ordinals 0, group_size, 2 * group_size, ... open a new section.
    A message holds at most ``max_sections`` sections; the rest spill into
    untitled follow-up batches.
    """

    def __init__(self, group_size: int = 5, max_sections: int = 50) -> None:
        if group_size < 1 or max_sections < 1:
            raise ValueError("group_size and max_sections must be positive")
        self.group_size = group_size
        self.max_sections = max_sections

    def group(self, fragments: list[str]) -> list[str]:
        """Join fragments into section bodies."""
        sections: list[str] = []
        for index, fragment in enumerate(fragments):
            if index % self.group_size == 0:
                sections.append(fragment)
            else:
                sections[-1] += fragment
        return sections

    def pack(self, header: str, fragments: list[str]) -> list[MessageBatch]:
        sections = self.group(fragments)

        batches = []
        for start in range(0, len(sections), self.max_sections):
            batches.append(MessageBatch(sections=sections[start:start + self.max_sections]))

        if not batches:
            batches.append(MessageBatch())
        batches[0].title = header

        return batches
