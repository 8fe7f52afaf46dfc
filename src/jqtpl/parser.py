"""Statement parser for jqtpl templates.

Splits template source into literal content runs and ``{{ ... }}``
directives, classifying each directive by its leading keyword. Parsing
is total: every string yields a statement list whose spans cover the
input exactly, so it can run on every keystroke of a half-typed
document.
"""

from __future__ import annotations

from jqtpl.source import Span
from jqtpl.tokens import DIRECTIVES, SpannedStmt, Stmt, StmtKind

OPEN = "{{"
CLOSE = "}}"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def recognize(body: str) -> Stmt:
    """Classify the text between ``{{`` and ``}}``.

    Keywords are tried in ``DIRECTIVES`` order. A keyword that ends in an
    identifier character must not run into another identifier character,
    and keywords that take an expression need at least one character after
    them. Anything else is kept verbatim as an UNKNOWN statement.
    """
    for directive in DIRECTIVES:
        if not body.startswith(directive.keyword):
            continue
        rest = body[len(directive.keyword):]
        if directive.needs_boundary and rest and _is_ident_char(rest[0]):
            continue
        if directive.needs_body and not rest:
            continue
        return Stmt(directive.kind)
    return Stmt.unknown(body)


class Parser:
    """Turns jqtpl source into an ordered list of spanned statements."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.statements: list[SpannedStmt] = []
        # Offset of the first "}}" at or after the last search start,
        # or -1 once no terminator remains.
        self._close: int | None = None

    def parse(self) -> list[SpannedStmt]:
        """Scan the entire source and return the statement list."""
        while self.pos < len(self.source):
            if not self._parse_directive():
                self._scan_content()
        return self.statements

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return "\0"

    def _at(self, idx: int, pair: str) -> bool:
        return self.source[idx:idx + 2] == pair

    def _emit(self, stmt: Stmt, start: int) -> SpannedStmt:
        spanned = SpannedStmt(stmt, Span(start, self.pos))
        self.statements.append(spanned)
        return spanned

    def _find_close(self, start: int) -> int:
        """Return the offset of the first ``}}`` at or after ``start``, or -1.

        A ``}`` not followed by another ``}`` is body text. Results are
        cached so the tail after an unterminated ``{{`` is scanned once.
        """
        if self._close is not None and (self._close == -1 or self._close >= start):
            return self._close
        idx = start
        end = len(self.source) - 1
        while idx < end:
            if self.source[idx] == "}" and self.source[idx + 1] == "}":
                self._close = idx
                return idx
            idx += 1
        self._close = -1
        return -1

    def _opens_directive(self, idx: int) -> bool:
        return self._at(idx, OPEN) and self._find_close(idx + 2) != -1

    # ── Directives ───────────────────────────────────────────────

    def _parse_directive(self) -> bool:
        if not (self._peek() == "{" and self._peek(1) == "{"):
            return False
        body_start = self.pos + 2
        close = self._find_close(body_start)
        if close == -1:
            # Unterminated: the content scanner takes it as literal text.
            return False
        start = self.pos
        self.pos = close + 2
        self._emit(recognize(self.source[body_start:close]), start)
        return True

    # ── Content ──────────────────────────────────────────────────

    def _scan_content(self) -> None:
        start = self.pos
        # Always take one character so the driver makes progress.
        self.pos += 1
        while self.pos < len(self.source):
            if self._peek() == "{" and self._peek(1) == "{" and self._opens_directive(self.pos):
                break
            self.pos += 1
        self._emit(Stmt(StmtKind.CONTENT), start)


def parse(source: str) -> list[SpannedStmt]:
    """Parse template source into spanned statements. Never raises."""
    return Parser(source).parse()
