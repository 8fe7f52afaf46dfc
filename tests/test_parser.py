"""Tests for the jqtpl statement parser."""

from __future__ import annotations

import pytest

from jqtpl import parse, recognize
from jqtpl.parser import Parser
from jqtpl.source import Span
from jqtpl.tokens import DIRECTIVES, SpannedStmt, Stmt, StmtKind
from tests.helpers import assert_covers, kinds, pieces

K = StmtKind


class TestRecognize:
    @pytest.mark.parametrize("keyword, kind", [
        ("if", K.IF),
        ("else", K.ELSE),
        ("/if", K.IF_END),
        ("each", K.EACH),
        ("/each", K.EACH_END),
        ("html", K.HTML),
        ("var", K.VAR),
        ("tmpl", K.TMPL),
        ("=", K.PRINT),
        ("!", K.COMMENT),
    ])
    def test_keyword_with_expression(self, keyword, kind):
        assert recognize(f"{keyword} x") == Stmt(kind)

    @pytest.mark.parametrize("body", ["if", "each", "html", "tmpl", "var", "="])
    def test_keyword_without_expression_is_unknown(self, body):
        assert recognize(body) == Stmt.unknown(body)

    @pytest.mark.parametrize("body, kind", [
        ("else", K.ELSE),
        ("/if", K.IF_END),
        ("/each", K.EACH_END),
        ("!", K.COMMENT),
    ])
    def test_optional_body(self, body, kind):
        assert recognize(body) == Stmt(kind)

    def test_whitespace_counts_as_expression(self):
        assert recognize("if ") == Stmt(K.IF)

    @pytest.mark.parametrize("body", ["ifx y", "elsewhere", "/ifx", "/eachy", "html5 x", "each_item x"])
    def test_keyword_needs_boundary(self, body):
        assert recognize(body).kind is K.UNKNOWN

    def test_punctuation_is_a_boundary(self):
        assert recognize("if(x)") == Stmt(K.IF)
        assert recognize("each(i, v) items") == Stmt(K.EACH)
        assert recognize("tmpl(data) '#row'") == Stmt(K.TMPL)

    def test_symbol_keywords_need_no_boundary(self):
        assert recognize("=name") == Stmt(K.PRINT)
        assert recognize("!note") == Stmt(K.COMMENT)

    def test_leading_whitespace_is_unknown(self):
        assert recognize(" if x") == Stmt.unknown(" if x")

    def test_empty_body(self):
        assert recognize("") == Stmt.unknown("")

    def test_unknown_keeps_body_verbatim(self):
        assert recognize("bogus  stuff ") == Stmt.unknown("bogus  stuff ")

    def test_closing_tags_tried_first(self):
        assert [d.keyword for d in DIRECTIVES[:2]] == ["/each", "/if"]


class TestParseBasic:
    def test_empty_source(self):
        assert parse("") == []

    def test_plain_content(self):
        assert parse("hello") == [SpannedStmt(Stmt(K.CONTENT), Span(0, 5))]

    def test_unknown_directive(self):
        assert parse("{{bogus}}") == [SpannedStmt(Stmt.unknown("bogus"), Span(0, 9))]

    def test_if(self):
        assert parse("{{if }}") == [SpannedStmt(Stmt(K.IF), Span(0, 7))]

    def test_else(self):
        assert parse("{{else}}") == [SpannedStmt(Stmt(K.ELSE), Span(0, 8))]

    def test_lone_end_if_is_not_validated(self):
        assert parse("{{/if}}") == [SpannedStmt(Stmt(K.IF_END), Span(0, 7))]

    @pytest.mark.parametrize("keyword, kind", [
        ("if", K.IF), ("else", K.ELSE), ("/if", K.IF_END),
        ("each", K.EACH), ("/each", K.EACH_END), ("html", K.HTML),
        ("var", K.VAR), ("tmpl", K.TMPL), ("=", K.PRINT), ("!", K.COMMENT),
    ])
    def test_directive_spans_whole_input(self, keyword, kind):
        source = "{{" + keyword + " a.b(c) > 1}}"
        assert parse(source) == [SpannedStmt(Stmt(kind), Span(0, len(source)))]

    def test_if_else(self):
        source = "{{if bla}}\n  hello\n{{else}}\n  goodbye\n{{/if}}"
        assert pieces(source) == [
            (K.IF, "{{if bla}}"),
            (K.CONTENT, "\n  hello\n"),
            (K.ELSE, "{{else}}"),
            (K.CONTENT, "\n  goodbye\n"),
            (K.IF_END, "{{/if}}"),
        ]
        assert parse(source)[-1].span.end == len(source)

    def test_if_else_indented(self):
        source = """{{if bla}}
          hello
        {{else}}
          goodbye
        {{/if}}"""
        assert [(st.kind, st.span) for st in parse(source)] == [
            (K.IF, Span(0, 10)),
            (K.CONTENT, Span(10, 35)),
            (K.ELSE, Span(35, 43)),
            (K.CONTENT, Span(43, 70)),
            (K.IF_END, Span(70, 77)),
        ]

    def test_adjacent_directives(self):
        assert kinds("{{if x}}{{/if}}") == [K.IF, K.IF_END]

    def test_each_loop(self):
        source = "<ul>{{each items}}<li>{{= $value}}</li>{{/each}}</ul>"
        assert kinds(source) == [
            K.CONTENT, K.EACH, K.CONTENT, K.PRINT, K.CONTENT, K.EACH_END, K.CONTENT,
        ]

    def test_multiline_directive_body(self):
        assert parse("{{if a &&\n   b}}") == [SpannedStmt(Stmt(K.IF), Span(0, 16))]

    def test_offsets_count_code_points(self):
        source = "héllo {{= ü}}"
        assert [(st.kind, st.span) for st in parse(source)] == [
            (K.CONTENT, Span(0, 6)),
            (K.PRINT, Span(6, 13)),
        ]


class TestParseEscaping:
    def test_lone_close_brace_in_content(self):
        source = "{{if x}}a}b{{/if}}"
        assert pieces(source) == [
            (K.IF, "{{if x}}"),
            (K.CONTENT, "a}b"),
            (K.IF_END, "{{/if}}"),
        ]

    def test_lone_open_brace_in_content(self):
        assert pieces("a{b") == [(K.CONTENT, "a{b")]

    def test_lone_close_brace_in_body(self):
        assert parse("{{= a}b }}") == [SpannedStmt(Stmt(K.PRINT), Span(0, 10))]

    def test_first_double_close_terminates(self):
        assert pieces("{{if x}}}") == [(K.IF, "{{if x}}"), (K.CONTENT, "}")]

    def test_triple_open(self):
        assert parse("{{{x}}") == [SpannedStmt(Stmt.unknown("{x"), Span(0, 6))]

    def test_empty_directive(self):
        assert parse("{{}}") == [SpannedStmt(Stmt.unknown(""), Span(0, 4))]

    def test_empty_directive_then_brace(self):
        assert pieces("{{}}}") == [(K.UNKNOWN, "{{}}"), (K.CONTENT, "}")]

    def test_close_without_open_is_content(self):
        assert pieces("a}}b") == [(K.CONTENT, "a}}b")]

    def test_open_inside_body(self):
        assert parse("{{if {{x}}") == [SpannedStmt(Stmt(K.IF), Span(0, 10))]


class TestParseTotality:
    def test_unterminated_directive_is_content(self):
        assert pieces("{{if x") == [(K.CONTENT, "{{if x")]

    def test_unterminated_after_content_stays_one_run(self):
        assert pieces("abc{{if x") == [(K.CONTENT, "abc{{if x")]

    def test_trailing_open_after_directive(self):
        assert pieces("{{if x}}{{") == [(K.IF, "{{if x}}"), (K.CONTENT, "{{")]

    def test_single_brace(self):
        assert pieces("{") == [(K.CONTENT, "{")]
        assert pieces("}") == [(K.CONTENT, "}")]

    def test_many_unterminated_opens(self):
        source = "{{" * 5000
        assert parse(source) == [SpannedStmt(Stmt(K.CONTENT), Span(0, len(source)))]

    def test_mid_edit_document(self):
        source = "{{if user}}\n  Hi {{= user.na\n{{/if}}\n{{each"
        result = parse(source)
        assert_covers(source, result)
        assert [st.kind for st in result] == [K.IF, K.CONTENT, K.PRINT, K.CONTENT]

    def test_deterministic(self):
        source = "{{if a}}x{{else}}y{{/if}}{{bogus}}"
        assert parse(source) == parse(source)

    def test_parser_class_matches_function(self):
        source = "a{{= b}}c"
        assert Parser(source).parse() == parse(source)
