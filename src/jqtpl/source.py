"""Source text representation and span tracking for diagnostics."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A half-open range ``[start, end)`` of string offsets into a template.

    Offsets index the decoded ``str``, so they count code points, not
    UTF-8 bytes. Use ``SourceText.position(..., utf16=True)`` for LSP columns.
    """

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"

    def text(self, source: str) -> str:
        """Extract the text covered by this span."""
        return source[self.start:self.end]


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


class SourceText:
    """Template text with line access and offset/position conversion.

    Lines and columns are 0-indexed. Columns count code points unless
    ``utf16=True`` is passed, in which case they count UTF-16 code units
    the way LSP clients do.
    """

    def __init__(self, text: str, name: str = "<stdin>") -> None:
        self.text = text
        self.name = name
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    @classmethod
    def from_path(cls, path: Path) -> SourceText:
        return cls(path.read_text(encoding="utf-8"), str(path))

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_at(self, n: int) -> str:
        """Return the 0-indexed line without its newline, or '' if out of range."""
        if not 0 <= n < len(self._line_starts):
            return ""
        start = self._line_starts[n]
        if n + 1 < len(self._line_starts):
            end = self._line_starts[n + 1] - 1
        else:
            end = len(self.text)
        line = self.text[start:end]
        return line[:-1] if line.endswith("\r") else line

    def position(self, offset: int, *, utf16: bool = False) -> tuple[int, int]:
        """Map a string offset to a (line, column) pair."""
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_starts, offset) - 1
        start = self._line_starts[line]
        if utf16:
            return line, _utf16_len(self.text[start:offset])
        return line, offset - start

    def offset(self, line: int, column: int, *, utf16: bool = False) -> int:
        """Map a (line, column) pair back to a string offset, clamped to the line."""
        if line < 0:
            return 0
        if line >= len(self._line_starts):
            return len(self.text)
        start = self._line_starts[line]
        text = self.line_at(line)
        if not utf16:
            return start + max(0, min(column, len(text)))
        units = 0
        for i, ch in enumerate(text):
            if units >= column:
                return start + i
            units += 2 if ord(ch) > 0xFFFF else 1
        return start + len(text)

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        return span.text(self.text)
