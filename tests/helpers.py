"""Shared test helpers for the jqtpl test suite."""

from __future__ import annotations

from jqtpl.parser import parse
from jqtpl.tokens import SpannedStmt, StmtKind


def kinds(source: str) -> list[StmtKind]:
    """Parse source and return just the statement kinds."""
    return [st.kind for st in parse(source)]


def pieces(source: str) -> list[tuple[StmtKind, str]]:
    """Parse source and return (kind, covered text) pairs."""
    return [(st.kind, st.span.text(source)) for st in parse(source)]


def assert_covers(source: str, statements: list[SpannedStmt]) -> None:
    """Assert spans are non-empty, contiguous and rebuild the source."""
    pos = 0
    for st in statements:
        assert st.span.start == pos, f"gap or overlap at {pos}: {st}"
        assert st.span.end > st.span.start, f"empty span: {st}"
        pos = st.span.end
    assert pos == len(source)
    assert "".join(st.span.text(source) for st in statements) == source
