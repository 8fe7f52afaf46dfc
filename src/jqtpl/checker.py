"""Structural checks over a parsed jqtpl statement stream.

The parser accepts everything; this pass decides what is worth reporting.
It reports unrecognized directives and unbalanced ``{{if}}``/``{{each}}``
blocks, and builds the block tree used for document symbols and folding.
"""

from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field

from jqtpl.config import CheckConfig
from jqtpl.errors import Diagnostic, DiagnosticLabel, Severity, Suggestion
from jqtpl.source import Span
from jqtpl.tokens import BLOCK_OPENERS, DIRECTIVES, SpannedStmt, StmtKind

_HEAD = re.compile(r"\s*(/?[A-Za-z_]\w*|=|!)")

_KEYWORD_SET = frozenset(d.keyword for d in DIRECTIVES)
_NEEDS_BODY = frozenset(d.keyword for d in DIRECTIVES if d.needs_body)
_WORD_KEYWORDS = [d.keyword for d in DIRECTIVES if d.needs_boundary]

_CLOSER_NAMES = {
    StmtKind.IF_END: "/if",
    StmtKind.EACH_END: "/each",
}
_OPENER_NAMES = {
    StmtKind.IF: "if",
    StmtKind.EACH: "each",
}
_UNMATCHED_CLOSER = {
    StmtKind.IF_END: "E200",
    StmtKind.EACH_END: "E201",
}
_UNCLOSED = {
    StmtKind.IF: "E202",
    StmtKind.EACH: "E203",
}


def directive_body(source: str, span: Span) -> str:
    """Return the text between the ``{{`` and ``}}`` of a directive span."""
    return source[span.start + 2:span.end - 2]


@dataclass
class Block:
    """An ``{{if}}`` or ``{{each}}`` block and whatever it encloses."""

    opener: SpannedStmt
    closer: SpannedStmt | None = None
    branches: list[SpannedStmt] = field(default_factory=list)
    children: list[Block] = field(default_factory=list)

    @property
    def kind(self) -> StmtKind:
        return self.opener.kind

    @property
    def span(self) -> Span:
        end = self.closer.span.end if self.closer is not None else self.opener.span.end
        return Span(self.opener.span.start, end)


@dataclass
class CheckResult:
    diagnostics: list[Diagnostic] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)

    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)


class Checker:
    """Reports unknown directives and block imbalance for one document."""

    def __init__(self, config: CheckConfig | None = None) -> None:
        self.config = config or CheckConfig()
        self.diagnostics: list[Diagnostic] = []
        self._source = ""

    # ── Public API ──────────────────────────────────────────────

    def check(self, statements: list[SpannedStmt], source: str) -> CheckResult:
        """Check a statement stream. Raises nothing; inspect the result."""
        self.diagnostics = []
        self._source = source
        roots: list[Block] = []
        stack: list[Block] = []

        for st in statements:
            kind = st.kind
            if kind is StmtKind.UNKNOWN:
                self._check_unknown(st)
            elif kind in BLOCK_OPENERS:
                block = Block(st)
                (stack[-1].children if stack else roots).append(block)
                stack.append(block)
            elif kind in _CLOSER_NAMES:
                self._close_block(st, stack)
            elif kind is StmtKind.ELSE:
                self._check_else(st, stack)

        for block in stack:
            name = _OPENER_NAMES[block.kind]
            self._structural(
                _UNCLOSED[block.kind],
                f"'{{{{{name}}}}}' is never closed",
                block.opener.span,
                "opened here",
                suggestion=Suggestion(
                    f"add '{{{{/{name}}}}}'", f"{{{{/{name}}}}}",
                ),
            )

        self.diagnostics.sort(key=lambda d: d.span.start if d.span else 0)
        return CheckResult(diagnostics=self.diagnostics, blocks=roots)

    # ── Unknown directives ──────────────────────────────────────

    def _check_unknown(self, st: SpannedStmt) -> None:
        body = st.stmt.body or ""
        severity = self.config.unknown
        m = _HEAD.match(body)
        if m is None:
            label = "empty directive" if not body.strip() else "not a directive keyword"
            self._report(severity, "E100", f"unknown directive '{{{{{body}}}}}'", st.span, label)
            return

        word = m.group(1)
        if word in _NEEDS_BODY and body == word:
            self._report(
                severity, "E101", f"'{word}' requires an expression", st.span,
                "missing expression",
                suggestion=Suggestion("add an expression", f"{{{{{word} ...}}}}"),
            )
            return

        suggestion = None
        notes: list[str] = []
        if word in _KEYWORD_SET and body[:1].isspace():
            notes.append("directive keywords must directly follow '{{'")
            suggestion = Suggestion("remove the leading whitespace", f"{{{{{body.lstrip()}}}}}")
        else:
            close = difflib.get_close_matches(word, _WORD_KEYWORDS, n=1, cutoff=0.6)
            if close:
                fixed = body.replace(word, close[0], 1)
                suggestion = Suggestion(f"did you mean '{close[0]}'?", f"{{{{{fixed}}}}}")
        self._report(
            severity, "E100", f"unknown directive '{word}'", st.span,
            "not a directive keyword", suggestion=suggestion, notes=notes,
        )

    # ── Blocks ──────────────────────────────────────────────────

    def _close_block(self, st: SpannedStmt, stack: list[Block]) -> None:
        name = _CLOSER_NAMES[st.kind]
        if not stack:
            self._structural(
                _UNMATCHED_CLOSER[st.kind],
                f"'{{{{{name}}}}}' has no matching '{{{{{name[1:]}}}}}'",
                st.span, "nothing to close",
            )
            return
        top = stack[-1]
        if BLOCK_OPENERS[top.kind] is st.kind:
            top.closer = st
            stack.pop()
            return
        open_name = _OPENER_NAMES[top.kind]
        self._structural(
            "E205",
            f"'{{{{{name}}}}}' does not close the open '{{{{{open_name}}}}}'",
            st.span, f"expected '{{{{/{open_name}}}}}'",
            secondary=DiagnosticLabel(top.opener.span, "block opened here", "secondary"),
        )

    def _check_else(self, st: SpannedStmt, stack: list[Block]) -> None:
        if not stack or stack[-1].kind is not StmtKind.IF:
            self._structural(
                "E204", "'{{else}}' outside of an '{{if}}' block", st.span,
                "no enclosing '{{if}}'",
            )
            return
        top = stack[-1]
        plain = [b for b in top.branches if self._is_plain_else(b)]
        if plain and self._is_plain_else(st):
            self._structural(
                "W300", "unreachable '{{else}}' branch", st.span,
                "a previous '{{else}}' already catches everything",
                severity=Severity.WARNING,
                secondary=DiagnosticLabel(plain[0].span, "first '{{else}}' here", "secondary"),
            )
        top.branches.append(st)

    def _is_plain_else(self, st: SpannedStmt) -> bool:
        return not directive_body(self._source, st.span)[len("else"):].strip()

    # ── Reporting ───────────────────────────────────────────────

    def _structural(
        self, code: str, message: str, span: Span, label: str, *,
        severity: Severity = Severity.ERROR,
        suggestion: Suggestion | None = None,
        secondary: DiagnosticLabel | None = None,
    ) -> None:
        if not self.config.structure:
            return
        self._report(severity, code, message, span, label,
                     suggestion=suggestion, secondary=secondary)

    def _report(
        self, severity: Severity, code: str, message: str, span: Span, label: str, *,
        suggestion: Suggestion | None = None,
        secondary: DiagnosticLabel | None = None,
        notes: list[str] | None = None,
    ) -> None:
        labels = [DiagnosticLabel(span=span, message=label)]
        if secondary is not None:
            labels.append(secondary)
        self.diagnostics.append(Diagnostic(
            severity=severity,
            code=code,
            message=message,
            labels=labels,
            suggestions=[suggestion] if suggestion else [],
            notes=notes or [],
        ))


def check(statements: list[SpannedStmt], source: str,
          config: CheckConfig | None = None) -> CheckResult:
    """Run the checker once with the given config."""
    return Checker(config).check(statements, source)
