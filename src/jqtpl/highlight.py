"""Pygments lexers for jqtpl templates."""

from __future__ import annotations

from collections.abc import Iterator

from pygments.lexer import DelegatingLexer, Lexer
from pygments.lexers.html import HtmlLexer
from pygments.token import (
    Comment,
    Error,
    Keyword,
    Name,
    Operator,
    Other,
    Text,
    _TokenType,
)

from jqtpl.parser import parse
from jqtpl.tokens import DIRECTIVES, StmtKind

_KEYWORD_OF = {d.kind: d.keyword for d in DIRECTIVES}


class JqtplLexer(Lexer):
    """Lexer for the directives of jQuery templates.

    Everything outside ``{{ ... }}`` is yielded as ``Other`` so the lexer
    can sit under a host-language lexer, see ``HtmlJqtplLexer``.
    """

    name = "jQuery template"
    aliases = ["jqtpl", "jquery-tmpl"]
    filenames = ["*.jqtpl"]
    mimetypes = ["text/x-jquery-tmpl"]

    def get_tokens_unprocessed(self, text: str) -> Iterator[tuple[int, _TokenType, str]]:
        for st in parse(text):
            start, end = st.span.start, st.span.end
            if st.kind is StmtKind.CONTENT:
                yield start, Other, text[start:end]
                continue
            if st.kind is StmtKind.COMMENT:
                yield start, Comment.Multiline, text[start:end]
                continue

            yield start, Comment.Preproc, "{{"
            pos = start + 2
            body = text[pos:end - 2]
            if st.kind is StmtKind.UNKNOWN:
                if body:
                    yield pos, Error, body
            else:
                keyword = _KEYWORD_OF[st.kind]
                token = Operator if st.kind is StmtKind.PRINT else Keyword
                yield pos, token, keyword
                pos += len(keyword)
                rest = body[len(keyword):]
                expr = rest.lstrip()
                if len(expr) < len(rest):
                    yield pos, Text.Whitespace, rest[:len(rest) - len(expr)]
                    pos += len(rest) - len(expr)
                if expr:
                    yield pos, Name, expr
            yield end - 2, Comment.Preproc, "}}"


class HtmlJqtplLexer(DelegatingLexer):
    """Highlights HTML with embedded jQuery template directives."""

    name = "HTML+jQuery template"
    aliases = ["html+jqtpl", "html+jquery-tmpl"]
    filenames = ["*.jqtpl", "*.tmpl"]
    mimetypes = ["text/html+jquery-tmpl"]

    def __init__(self, **options: object) -> None:
        super().__init__(HtmlLexer, JqtplLexer, **options)
