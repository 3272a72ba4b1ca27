"""Tests for tick_sml.lexer: tokenize."""
from __future__ import annotations

import pytest

from tick_sml.errors import LexError
from tick_sml.lexer import TokenKind, tokenize


def kinds(source: str) -> list[TokenKind]:
    return [t.kind for t in tokenize(source)]


def values(source: str) -> list[object]:
    return [t.value for t in tokenize(source) if t.kind not in (
        TokenKind.NEWLINE, TokenKind.INDENT, TokenKind.DEDENT, TokenKind.EOF,
    )]


class TestTokens:
    def test_assignment(self) -> None:
        assert values("outputs.bar = inputs.bar + 1") == [
            "outputs", ".", "bar", "=", "inputs", ".", "bar", "+", 1.0,
        ]

    def test_operators_without_whitespace(self) -> None:
        """Longest match makes adjacency unambiguous."""
        assert values("a<=b==c~=d!=e") == [
            "a", "<=", "b", "==", "c", "~=", "d", "!=", "e",
        ]

    def test_logical_operators(self) -> None:
        assert values("!a && b || c") == ["!", "a", "&&", "b", "||", "c"]

    def test_numbers_are_floats(self) -> None:
        toks = tokenize("1 2.5 3e2 4.0E-1")
        nums = [t.value for t in toks if t.kind == TokenKind.NUMBER]
        assert nums == [1.0, 2.5, 300.0, 0.4]
        assert all(isinstance(n, float) for n in nums)

    def test_keywords_and_names(self) -> None:
        toks = tokenize("state idle when changeto foo")
        assert [t.kind for t in toks[:5]] == [
            TokenKind.KEYWORD, TokenKind.NAME, TokenKind.KEYWORD,
            TokenKind.KEYWORD, TokenKind.NAME,
        ]

    def test_store_names_are_plain_names(self) -> None:
        toks = tokenize("inputs outputs globals")
        assert [t.kind for t in toks[:3]] == [TokenKind.NAME] * 3

    def test_booleans(self) -> None:
        toks = tokenize("true false")
        assert [(t.kind, t.value) for t in toks[:2]] == [
            (TokenKind.BOOL, True), (TokenKind.BOOL, False),
        ]

    def test_strings_with_escapes(self) -> None:
        toks = tokenize(r'"1 + \"1\"" ' + r"'it\'s\n'")
        strs = [t.value for t in toks if t.kind == TokenKind.STRING]
        assert strs == ['1 + "1"', "it's\n"]

    def test_comments_produce_no_tokens(self) -> None:
        assert values("# just a comment\nstay # trailing") == ["stay"]

    def test_positions(self) -> None:
        toks = tokenize("state A:\n    stay\n")
        stay = next(t for t in toks if t.value == "stay")
        assert (stay.line, stay.column, stay.offset) == (2, 5, 13)

    def test_ends_with_newline_and_eof(self) -> None:
        assert kinds("stay") == [TokenKind.KEYWORD, TokenKind.NEWLINE, TokenKind.EOF]

    def test_empty_source(self) -> None:
        assert kinds("") == [TokenKind.EOF]


class TestIndentation:
    def test_indent_and_dedent(self) -> None:
        source = "state A:\n    always:\n        stay\nstate B:\n"
        assert kinds(source) == [
            TokenKind.KEYWORD, TokenKind.NAME, TokenKind.COLON, TokenKind.NEWLINE,
            TokenKind.INDENT,
            TokenKind.KEYWORD, TokenKind.COLON, TokenKind.NEWLINE,
            TokenKind.INDENT,
            TokenKind.KEYWORD, TokenKind.NEWLINE,
            TokenKind.DEDENT, TokenKind.DEDENT,
            TokenKind.KEYWORD, TokenKind.NAME, TokenKind.COLON, TokenKind.NEWLINE,
            TokenKind.EOF,
        ]

    def test_dedents_closed_at_end_of_input(self) -> None:
        source = "state A:\n  always:\n    stay"
        result = kinds(source)
        assert result[-4:] == [
            TokenKind.NEWLINE, TokenKind.DEDENT, TokenKind.DEDENT, TokenKind.EOF,
        ]

    def test_blank_and_comment_lines_ignored(self) -> None:
        source = "state A:\n\n    # note\n      \n    stay\n"
        result = kinds(source)
        assert result.count(TokenKind.INDENT) == 1
        assert result.count(TokenKind.NEWLINE) == 2

    def test_tabs_are_consistent_indentation(self) -> None:
        source = "state A:\n\talways:\n\t\tstay\n"
        result = kinds(source)
        assert result.count(TokenKind.INDENT) == 2
        assert result.count(TokenKind.DEDENT) == 2

    def test_newlines_inside_parentheses_are_joined(self) -> None:
        source = "outputs.x = (1 +\n        2)\n"
        result = kinds(source)
        assert TokenKind.INDENT not in result
        assert result.count(TokenKind.NEWLINE) == 1

    def test_inconsistent_dedent(self) -> None:
        source = "state A:\n    always:\n  stay\n"
        with pytest.raises(LexError, match="inconsistent indentation") as info:
            tokenize(source)
        assert info.value.line == 3

    def test_uniform_base_indent(self) -> None:
        """The first line sets the base level; it produces no INDENT."""
        toks = tokenize("\n    state A:\n        stay\n")
        assert [t.kind for t in toks].count(TokenKind.INDENT) == 1
        assert (toks[0].line, toks[0].column, toks[0].offset) == (2, 5, 5)

    def test_line_below_base_indent(self) -> None:
        with pytest.raises(LexError, match="inconsistent indentation"):
            tokenize("  state A:\nstate B:\n")

    def test_mixed_tabs_and_spaces(self) -> None:
        source = "state A:\n\talways:\n    stay\n"
        with pytest.raises(LexError, match="inconsistent indentation"):
            tokenize(source)


class TestLexErrors:
    def test_unrecognized_character(self) -> None:
        with pytest.raises(LexError, match="unrecognized character '@'") as info:
            tokenize("outputs.x = @")
        assert (info.value.line, info.value.column, info.value.offset) == (1, 13, 12)

    def test_single_ampersand(self) -> None:
        with pytest.raises(LexError):
            tokenize("a & b")

    def test_unterminated_string(self) -> None:
        with pytest.raises(LexError, match="unterminated string") as info:
            tokenize('outputs.x = "abc\nstay')
        assert info.value.line == 1

    def test_unterminated_string_at_end(self) -> None:
        with pytest.raises(LexError, match="unterminated string"):
            tokenize("'abc")

    def test_invalid_escape(self) -> None:
        with pytest.raises(LexError, match="invalid escape"):
            tokenize(r'"a\qb"')

    @pytest.mark.parametrize("literal", ["1.", "1.2.3", "12abc", "3e", "1_000"])
    def test_malformed_numbers(self, literal: str) -> None:
        with pytest.raises(LexError, match="malformed number"):
            tokenize(f"outputs.x = {literal}")

    def test_unmatched_close_paren(self) -> None:
        with pytest.raises(LexError, match=r"unmatched '\)'"):
            tokenize("outputs.x = 1)")

    def test_unclosed_paren(self) -> None:
        with pytest.raises(LexError, match="inside parentheses"):
            tokenize("outputs.x = (1 + 2\n")
