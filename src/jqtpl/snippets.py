"""Directive snippet catalog for completion."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Snippet:
    label: str
    body: str
    detail: str
    documentation: str


CATALOG: tuple[Snippet, ...] = (
    Snippet(
        "if", "{{if $1}}$2{{/if}}$0",
        "An {{if ...}} directive",
        "Renders its content only when the expression is truthy.",
    ),
    Snippet(
        "if-else", "{{if $1}}$2{{else}}$3{{/if}}$0",
        "An {{if ...}} directive with an {{else}} branch",
        "Renders the first branch when the expression is truthy, the second otherwise.",
    ),
    Snippet(
        "else", "{{else $1}}$0",
        "An {{else}} branch",
        "Starts the fallback branch of the enclosing {{if}}. "
        "With an expression it acts as an else-if.",
    ),
    Snippet(
        "each", "{{each($2) ${1:items}}}$3{{/each}}$0",
        "An {{each ...}} loop",
        "Renders its content once per item; $index and $value are in scope.",
    ),
    Snippet(
        "html", "{{html $1}}$0",
        "An {{html ...}} directive",
        "Inserts the value without HTML encoding.",
    ),
    Snippet(
        "=", "{{= $1}}$0",
        "A {{= ...}} print directive",
        "Inserts the HTML-encoded value of the expression.",
    ),
    Snippet(
        "var", "{{var $1 = $2}}$0",
        "A {{var ...}} binding",
        "Binds a name for the rest of the template.",
    ),
    Snippet(
        "tmpl", "{{tmpl($2) ${1:\"#name\"}}}$0",
        "A {{tmpl ...}} include",
        "Renders a nested template, optionally with its own data.",
    ),
    Snippet(
        "!", "{{! $1}}$0",
        "A {{! ...}} comment",
        "Ignored when rendering.",
    ),
)


def brace_context(line: str, column: int) -> tuple[int, int]:
    """Count '{' just before and '}' just after ``column``, up to two each."""
    column = max(0, min(column, len(line)))
    before = 0
    while before < 2 and column - before > 0 and line[column - before - 1] == "{":
        before += 1
    after = 0
    while after < 2 and column + after < len(line) and line[column + after] == "}":
        after += 1
    return before, after


def replacement_range(line: str, column: int) -> tuple[int, int]:
    """Return the ``[start, end)`` columns a snippet should replace.

    Braces the user already typed, and the ones an editor auto-closed,
    are replaced by the snippet's own braces instead of doubling up.
    """
    column = max(0, min(column, len(line)))
    before, after = brace_context(line, column)
    return column - before, column + after
