"""Text accumulation and report rendering."""

from src.linebatch.core.models import Summary


class TextBuffer:
    """
    Growable text buffer.

    Parts are collected and joined once in :meth:`getvalue`, so building
    a string from N parts costs O(total length) instead of the O(N^2)
    copying of repeated ``+=`` on an immutable string.
    """

    def __init__(self, separator: str = ""):
        self.separator = separator
        self._parts: list[str] = []
        self._length = 0

    def append(self, text: str) -> "TextBuffer":
        if self._parts and self.separator:
            self._length += len(self.separator)
        self._parts.append(text)
        self._length += len(text)
        return self

    def extend(self, texts) -> "TextBuffer":
        for text in texts:
            self.append(text)
        return self

    def line(self, text: str = "") -> "TextBuffer":
        """Append ``text`` followed by a newline."""
        return self.append(text + "\n")

    def getvalue(self) -> str:
        value = self.separator.join(self._parts)
        # Keep a single part so repeated calls do not re-join; an empty
        # value still counts as a part for the next separator.
        self._parts = [value] if self._parts else []
        return value

    def clear(self) -> None:
        self._parts = []
        self._length = 0

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return self.getvalue()


def render_summary(summary: Summary, source: str | None = None) -> str:
    """Render a human readable report for a finished run."""
    buffer = TextBuffer()
    buffer.line("Batch Processing Summary")
    buffer.line("=" * 40)
    if source:
        buffer.line(f"Source: {source}")
    buffer.line(f"Total records: {summary.total}")
    buffer.line(f"Normal: {summary.normal}")
    buffer.line(f"Error markers: {summary.error_markers}")
    buffer.line(f"Malformed: {summary.malformed} ({summary.error_rate:.1f}%)")
    buffer.line(f"Characters: {summary.characters}")
    if summary.stopped_early:
        buffer.line("Stopped early: deadline reached or run cancelled")

    if summary.error_samples:
        buffer.line("Malformed records:")
        for sample in summary.error_samples:
            buffer.line(f"  - line {sample.index + 1}: {sample.error_type}: {sample.reason}")

    return buffer.getvalue()
