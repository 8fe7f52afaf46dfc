"""Statement kinds and statement representation for the jqtpl parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jqtpl.source import Span


class StmtKind(Enum):
    # Literal text
    CONTENT = auto()

    # Directives
    COMMENT = auto()
    EACH = auto()
    EACH_END = auto()
    ELSE = auto()
    HTML = auto()
    IF = auto()
    IF_END = auto()
    PRINT = auto()
    TMPL = auto()
    VAR = auto()

    # Fallback
    UNKNOWN = auto()


@dataclass(frozen=True)
class Stmt:
    kind: StmtKind
    body: str | None = None

    @classmethod
    def unknown(cls, body: str) -> Stmt:
        return cls(StmtKind.UNKNOWN, body)

    def __str__(self) -> str:
        if self.kind is StmtKind.UNKNOWN:
            return f"UNKNOWN({self.body!r})"
        return self.kind.name


@dataclass(frozen=True)
class SpannedStmt:
    stmt: Stmt
    span: Span

    @property
    def kind(self) -> StmtKind:
        return self.stmt.kind


@dataclass(frozen=True)
class Directive:
    """One entry of the ordered keyword table."""

    keyword: str
    kind: StmtKind
    needs_body: bool

    @property
    def needs_boundary(self) -> bool:
        last = self.keyword[-1]
        return last.isalnum() or last == "_"


# Closing tags come before the opening keywords they share a prefix with.
# Order matters: the first matching entry wins.
DIRECTIVES: tuple[Directive, ...] = (
    Directive("/each", StmtKind.EACH_END, needs_body=False),
    Directive("/if", StmtKind.IF_END, needs_body=False),
    Directive("each", StmtKind.EACH, needs_body=True),
    Directive("else", StmtKind.ELSE, needs_body=False),
    Directive("html", StmtKind.HTML, needs_body=True),
    Directive("if", StmtKind.IF, needs_body=True),
    Directive("tmpl", StmtKind.TMPL, needs_body=True),
    Directive("var", StmtKind.VAR, needs_body=True),
    Directive("=", StmtKind.PRINT, needs_body=True),
    Directive("!", StmtKind.COMMENT, needs_body=False),
)

KEYWORDS: dict[str, StmtKind] = {d.keyword: d.kind for d in DIRECTIVES}

BLOCK_OPENERS: dict[StmtKind, StmtKind] = {
    StmtKind.IF: StmtKind.IF_END,
    StmtKind.EACH: StmtKind.EACH_END,
}
