"""Source text -> token list, with INDENT/DEDENT markers for the off-side rule."""
from __future__ import annotations

import re
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from tick_sml.errors import LexError


class TokenKind(Enum):
    NAME = auto()
    KEYWORD = auto()
    NUMBER = auto()
    STRING = auto()
    BOOL = auto()
    OP = auto()
    COLON = auto()
    DOT = auto()
    LPAREN = auto()
    RPAREN = auto()
    NEWLINE = auto()
    INDENT = auto()
    DEDENT = auto()
    EOF = auto()


KEYWORDS = frozenset({
    "state", "head", "on_entry", "default",
    "when", "always", "otherwise",
    "changeto", "stay", "end",
})

# Longest first so that ``<=`` wins over ``<``.
OPERATORS = (
    "==", "!=", "~=", "<=", ">=", "&&", "||",
    "+", "-", "*", "/", "^", "<", ">", "=", "!",
)

_PUNCTUATION = {
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
}

_ESCAPES = {"\\": "\\", '"': '"', "'": "'", "n": "\n", "t": "\t"}

_DIGITS = frozenset(string.digits)
_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")

_NUMBER_RE = re.compile(r"[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_LAYOUT_NAMES = {
    TokenKind.NEWLINE: "newline",
    TokenKind.INDENT: "indent",
    TokenKind.DEDENT: "dedent",
    TokenKind.EOF: "end of input",
}


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    value: Any
    line: int
    column: int
    offset: int

    def describe(self) -> str:
        """Human-readable form used in parse error messages."""
        if self.kind in _LAYOUT_NAMES:
            return _LAYOUT_NAMES[self.kind]
        if self.kind == TokenKind.STRING:
            return repr(self.value)
        if self.kind == TokenKind.BOOL:
            return "true" if self.value else "false"
        return str(self.value)


def tokenize(source: str) -> list[Token]:
    """Split ``source`` into tokens. Raises LexError on bad input.

    The indentation of the first non-blank line is the base level, so a
    program may be indented as a whole (e.g. in a triple-quoted string).
    Positions always refer to ``source`` as given.
    """
    return _Lexer(source).run()


class _Lexer:
    def __init__(self, source: str) -> None:
        self._src = source
        self._pos = 0
        self._line = 1
        self._line_start = 0
        # The first content line sets the base level.
        self._indents: list[str] = []
        self._parens = 0
        self._tokens: list[Token] = []

    # --- Helpers ---

    def _column(self, pos: int) -> int:
        return pos - self._line_start + 1

    def _error(self, message: str, pos: int) -> LexError:
        return LexError(message, self._line, self._column(pos), pos)

    def _emit(self, kind: TokenKind, value: Any, pos: int) -> None:
        self._tokens.append(Token(kind, value, self._line, self._column(pos), pos))

    def _newline(self) -> None:
        self._pos += 1
        self._line += 1
        self._line_start = self._pos

    # --- Driver ---

    def run(self) -> list[Token]:
        src = self._src
        at_line_start = True
        while self._pos < len(src):
            if at_line_start and self._parens == 0:
                if self._indentation():
                    continue
                at_line_start = False
            ch = src[self._pos]
            if ch == "\n":
                if self._parens == 0:
                    self._emit(TokenKind.NEWLINE, "\n", self._pos)
                    at_line_start = True
                self._newline()
            elif ch in " \t\r":
                self._pos += 1
            elif ch == "#":
                self._skip_comment()
            elif ch in _DIGITS:
                self._number()
            elif ch in "\"'":
                self._string(ch)
            elif ch in _NAME_START:
                self._word()
            else:
                self._symbol(ch)

        end = len(src)
        if self._parens:
            raise self._error("unexpected end of input inside parentheses", end)
        if self._tokens and self._tokens[-1].kind not in (
            TokenKind.NEWLINE, TokenKind.DEDENT,
        ):
            self._emit(TokenKind.NEWLINE, "\n", end)
        while len(self._indents) > 1:
            self._indents.pop()
            self._emit(TokenKind.DEDENT, None, end)
        self._emit(TokenKind.EOF, None, end)
        return self._tokens

    def _indentation(self) -> bool:
        """Measure leading whitespace, emitting INDENT/DEDENT as needed.

        Returns True when the line is blank or comment-only and was consumed.
        """
        src = self._src
        start = self._pos
        while self._pos < len(src) and src[self._pos] in " \t":
            self._pos += 1
        indent = src[start:self._pos]

        if self._pos >= len(src):
            return True
        if src[self._pos] in "\r\n#":
            self._skip_comment()
            if self._pos < len(src):
                self._newline()
            return True

        if not self._indents:
            self._indents.append(indent)
            return False
        current = self._indents[-1]
        if indent == current:
            return False
        if indent.startswith(current):
            self._indents.append(indent)
            self._emit(TokenKind.INDENT, indent, self._pos)
            return False
        while len(self._indents) > 1 and indent != self._indents[-1]:
            if not self._indents[-1].startswith(indent):
                break
            self._indents.pop()
            self._emit(TokenKind.DEDENT, None, self._pos)
        if indent != self._indents[-1]:
            raise self._error("inconsistent indentation", self._pos)
        return False

    # --- Scanners ---

    def _skip_comment(self) -> None:
        src = self._src
        while self._pos < len(src) and src[self._pos] != "\n":
            self._pos += 1

    def _number(self) -> None:
        start = self._pos
        match = _NUMBER_RE.match(self._src, start)
        assert match is not None
        end = match.end()
        if end < len(self._src):
            nxt = self._src[end]
            if nxt in _NAME_CHARS or nxt == ".":
                raise self._error(
                    f"malformed number literal {self._src[start:end + 1]!r}", start
                )
        self._pos = end
        self._emit(TokenKind.NUMBER, float(match.group()), start)

    def _string(self, quote: str) -> None:
        src = self._src
        start = self._pos
        self._pos += 1
        chars: list[str] = []
        while True:
            if self._pos >= len(src) or src[self._pos] == "\n":
                raise self._error("unterminated string literal", start)
            ch = src[self._pos]
            if ch == quote:
                self._pos += 1
                break
            if ch == "\\":
                esc = src[self._pos + 1] if self._pos + 1 < len(src) else ""
                if esc not in _ESCAPES:
                    raise self._error(f"invalid escape sequence '\\{esc}'", self._pos)
                chars.append(_ESCAPES[esc])
                self._pos += 2
                continue
            chars.append(ch)
            self._pos += 1
        self._emit(TokenKind.STRING, "".join(chars), start)

    def _word(self) -> None:
        start = self._pos
        match = _NAME_RE.match(self._src, start)
        assert match is not None
        word = match.group()
        self._pos = match.end()
        if word in ("true", "false"):
            self._emit(TokenKind.BOOL, word == "true", start)
        elif word in KEYWORDS:
            self._emit(TokenKind.KEYWORD, word, start)
        else:
            self._emit(TokenKind.NAME, word, start)

    def _symbol(self, ch: str) -> None:
        start = self._pos
        if ch in _PUNCTUATION:
            kind = _PUNCTUATION[ch]
            if kind == TokenKind.LPAREN:
                self._parens += 1
            elif kind == TokenKind.RPAREN:
                if self._parens == 0:
                    raise self._error("unmatched ')'", start)
                self._parens -= 1
            self._pos += 1
            self._emit(kind, ch, start)
            return
        for op in OPERATORS:
            if self._src.startswith(op, start):
                self._pos += len(op)
                self._emit(TokenKind.OP, op, start)
                return
        raise self._error(f"unrecognized character {ch!r}", start)
