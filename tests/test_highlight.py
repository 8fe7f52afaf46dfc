"""Tests for the Pygments lexers."""

from __future__ import annotations

from pygments.token import Comment, Error, Keyword, Name, Operator, Other, Text

from jqtpl.highlight import HtmlJqtplLexer, JqtplLexer


def tokens(source: str) -> list[tuple[object, str]]:
    return [(tok, value) for _, tok, value in JqtplLexer().get_tokens_unprocessed(source)]


class TestJqtplLexer:
    def test_reconstructs_source(self):
        source = "<p>{{if a}}x}{{else}}{{= b}}{{bogus}}{{! c}}{{/if}}{{ "
        parts = list(JqtplLexer().get_tokens_unprocessed(source))
        assert "".join(value for _, _, value in parts) == source
        for offset, _, value in parts:
            assert source[offset:offset + len(value)] == value

    def test_if_directive(self):
        assert tokens("{{if a.b}}") == [
            (Comment.Preproc, "{{"),
            (Keyword, "if"),
            (Text.Whitespace, " "),
            (Name, "a.b"),
            (Comment.Preproc, "}}"),
        ]

    def test_print_directive(self):
        assert tokens("{{=x}}") == [
            (Comment.Preproc, "{{"),
            (Operator, "="),
            (Name, "x"),
            (Comment.Preproc, "}}"),
        ]

    def test_closing_tag(self):
        assert tokens("{{/each}}") == [
            (Comment.Preproc, "{{"),
            (Keyword, "/each"),
            (Comment.Preproc, "}}"),
        ]

    def test_comment_is_one_token(self):
        assert tokens("{{! hi }}") == [(Comment.Multiline, "{{! hi }}")]

    def test_unknown(self):
        assert tokens("{{bogus}}") == [
            (Comment.Preproc, "{{"),
            (Error, "bogus"),
            (Comment.Preproc, "}}"),
        ]

    def test_empty_unknown(self):
        assert tokens("{{}}") == [(Comment.Preproc, "{{"), (Comment.Preproc, "}}")]

    def test_content_is_other(self):
        assert tokens("<b>") == [(Other, "<b>")]


class TestHtmlJqtplLexer:
    def test_delegates_html(self):
        source = "<b>{{= x}}</b>\n"
        toks = list(HtmlJqtplLexer().get_tokens(source))
        assert "".join(value for _, value in toks) == source
        assert (Operator, "=") in toks
        assert any(tok in Name.Tag for tok, _ in toks)
