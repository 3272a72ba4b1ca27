"""Recursive-descent parser: token list -> Program."""
from __future__ import annotations

from tick_sml.errors import ParseError
from tick_sml.lexer import Token, TokenKind
from tick_sml.nodes import (
    TRUE,
    Assignment,
    BinaryOp,
    ChangeTo,
    End,
    Expression,
    Identifier,
    Literal,
    Program,
    Rule,
    State,
    StateOp,
    Stay,
    UnaryOp,
)
from tick_sml.types import Store
from tick_sml.validate import MAX_EXPRESSION_DEPTH, expression_depth

# Binary operator levels, loosest first. Comparisons do not chain.
_OR_OPS = ("||",)
_AND_OPS = ("&&",)
_COMPARE_OPS = ("==", "!=", "~=", "<", ">", "<=", ">=")
_ADDITIVE_OPS = ("+", "-")
_TERM_OPS = ("*", "/")
_UNARY_OPS = ("-", "!")

_STORES = {store.value: store for store in Store}

# Parentheses and prefix operators nested deeper than this are rejected
# before they can exhaust the interpreter stack.
MAX_NESTING = 50


def parse(tokens: list[Token]) -> Program:
    """Parse a token list produced by ``tokenize``. Raises ParseError."""
    return Parser(tokens).program()


class Parser:
    """One-token-lookahead parser over the output of ``tokenize``."""

    def __init__(self, tokens: list[Token]) -> None:
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            raise ValueError("token list must end with EOF")
        self._tokens = tokens
        self._pos = 0
        self._nesting = 0

    # --- Token helpers ---

    @property
    def _tok(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind != TokenKind.EOF:
            self._pos += 1
        return tok

    def _check(self, kind: TokenKind, value: object = None) -> bool:
        tok = self._tok
        return tok.kind == kind and (value is None or tok.value == value)

    def _check_keyword(self, *words: str) -> bool:
        return self._tok.kind == TokenKind.KEYWORD and self._tok.value in words

    def _error(self, message: str, expected: str | None = None) -> ParseError:
        tok = self._tok
        found = tok.describe()
        if expected is not None:
            message = f"{message}: expected {expected}, found {found}"
        return ParseError(message, tok.line, tok.column, expected, found)

    def _expect(self, kind: TokenKind, expected: str, value: object = None) -> Token:
        if not self._check(kind, value):
            raise self._error("unexpected token", expected)
        return self._advance()

    def _expect_block_start(self, what: str) -> None:
        self._expect(TokenKind.COLON, f"':' after {what}")
        self._expect(TokenKind.NEWLINE, f"newline after '{what}:'")
        self._expect(TokenKind.INDENT, f"indented block for {what}")

    # --- Top level ---

    def program(self) -> Program:
        states: list[State] = []
        global_block: tuple[Assignment, ...] | None = None
        default_head: tuple[Assignment, ...] | None = None

        while not self._check(TokenKind.EOF):
            if self._check(TokenKind.NEWLINE):
                self._advance()
            elif self._check_keyword("state"):
                states.append(self._state())
            elif self._check_keyword("default"):
                if default_head is not None:
                    raise self._error("only one 'default head' block is allowed")
                self._advance()
                self._expect(TokenKind.KEYWORD, "'head' after 'default'", "head")
                default_head = self._statement_block("default head")
            elif self._check(TokenKind.NAME, "globals"):
                if global_block is not None:
                    raise self._error("only one 'globals' block is allowed")
                self._advance()
                global_block = self._statement_block("globals")
            else:
                raise self._error(
                    "unexpected token at top level",
                    "'state', 'default head' or 'globals'",
                )

        return Program(
            states=tuple(states),
            globals=global_block or (),
            default_head=default_head or (),
        )

    def _statement_block(self, what: str) -> tuple[Assignment, ...]:
        self._expect_block_start(what)
        statements: list[Assignment] = []
        while not self._check(TokenKind.DEDENT):
            statements.append(self._statement())
        self._advance()
        return tuple(statements)

    # --- States and rules ---

    def _state(self) -> State:
        self._advance()  # 'state'
        name = self._expect(TokenKind.NAME, "state name").value
        self._expect_block_start(f"state {name}")

        head: tuple[Assignment, ...] = ()
        if self._check_keyword("head", "on_entry"):
            head = self._statement_block(self._advance().value)

        rules: list[Rule] = []
        closed_by: str | None = None
        while not self._check(TokenKind.DEDENT):
            if closed_by is not None:
                raise self._error(f"no rule may follow '{closed_by}' in state {name}")
            if self._check_keyword("when"):
                self._advance()
                condition = self._checked_expression()
                rules.append(self._rule_block(condition, "when"))
            elif self._check_keyword("always"):
                if rules:
                    raise self._error(
                        f"'always' must be the only rule in state {name}; "
                        "use 'otherwise' after other rules"
                    )
                self._advance()
                rules.append(self._rule_block(TRUE, "always"))
                closed_by = "always"
            elif self._check_keyword("otherwise"):
                if not rules:
                    raise self._error(
                        f"'otherwise' needs at least one earlier rule in state {name}"
                    )
                self._advance()
                rules.append(self._rule_block(TRUE, "otherwise"))
                closed_by = "otherwise"
            elif self._check_keyword("head", "on_entry"):
                raise self._error(f"head of state {name} must come before its rules")
            else:
                raise self._error(
                    f"unexpected token in state {name}",
                    "'head:', 'when <expr>:', 'always:' or 'otherwise:'",
                )
        self._advance()
        return State(name=name, head=head, body=tuple(rules))

    def _rule_block(self, condition: Expression, what: str) -> Rule:
        self._expect_block_start(what)
        statements: list[Assignment] = []
        state_op: StateOp = Stay()
        while not self._check(TokenKind.DEDENT):
            if self._check_keyword("changeto", "stay", "end"):
                state_op = self._state_op()
                if not self._check(TokenKind.DEDENT):
                    raise self._error(
                        "state operation must be the last line of a rule", "dedent"
                    )
                break
            statements.append(self._statement())
        self._advance()
        return Rule(condition=condition, statements=tuple(statements), state_op=state_op)

    def _state_op(self) -> StateOp:
        word = self._advance().value
        if word == "changeto":
            target = self._expect(TokenKind.NAME, "state name after 'changeto'").value
            op: StateOp = ChangeTo(target)
        elif word == "end":
            op = End()
        else:
            op = Stay()
        self._expect(TokenKind.NEWLINE, f"newline after '{word}'")
        return op

    def _statement(self) -> Assignment:
        if not self._check(TokenKind.NAME):
            raise self._error("unexpected token", "assignment '<store>.<field> = <expr>'")
        target = self._identifier()
        self._expect(TokenKind.OP, f"'=' after {target}", "=")
        value = self._checked_expression()
        self._expect(TokenKind.NEWLINE, "newline after assignment")
        return Assignment(target=target, value=value)

    # --- Expressions ---

    def _checked_expression(self) -> Expression:
        start = self._tok
        expr = self._expression()
        depth = expression_depth(expr)
        if depth > MAX_EXPRESSION_DEPTH:
            raise ParseError(
                f"expression is {depth} levels deep; the limit is {MAX_EXPRESSION_DEPTH}",
                start.line,
                start.column,
            )
        return expr

    def _expression(self) -> Expression:
        return self._binary_level(0)

    def _binary_level(self, level: int) -> Expression:
        if level == len(_LEVELS):
            return self._unary()
        ops = _LEVELS[level]
        left = self._binary_level(level + 1)
        while self._tok.kind == TokenKind.OP and self._tok.value in ops:
            op = self._advance().value
            right = self._binary_level(level + 1)
            left = BinaryOp(op, left, right)
            if ops is _COMPARE_OPS:
                if self._tok.kind == TokenKind.OP and self._tok.value in ops:
                    raise self._error("comparison operators cannot be chained")
                break
        return left

    def _unary(self) -> Expression:
        # Prefix operators bind looser than ``^``: ``-2 ^ 2`` is ``-(2 ^ 2)``.
        if self._tok.kind == TokenKind.OP and self._tok.value in _UNARY_OPS:
            op = self._advance().value
            self._enter()
            operand = self._unary()
            self._nesting -= 1
            return UnaryOp(op, operand)
        return self._power()

    def _power(self) -> Expression:
        base = self._primary()
        if self._check(TokenKind.OP, "^"):
            self._advance()
            self._enter()
            exponent = self._unary()
            self._nesting -= 1
            return BinaryOp("^", base, exponent)
        return base

    def _primary(self) -> Expression:
        tok = self._tok
        if tok.kind in (TokenKind.NUMBER, TokenKind.STRING, TokenKind.BOOL):
            self._advance()
            return Literal(tok.value)
        if tok.kind == TokenKind.NAME:
            return self._identifier()
        if tok.kind == TokenKind.LPAREN:
            self._advance()
            self._enter()
            inner = self._expression()
            self._nesting -= 1
            self._expect(TokenKind.RPAREN, "')'")
            return inner
        raise self._error("unexpected token in expression", "value, identifier or '('")

    def _identifier(self) -> Identifier:
        tok = self._advance()
        store = _STORES.get(tok.value)
        if store is None:
            self._pos -= 1
            raise self._error(
                f"unknown store {tok.value!r}", "'inputs', 'outputs' or 'globals'"
            )
        self._expect(TokenKind.DOT, f"'.' after {tok.value}")
        # Field names may reuse keywords, e.g. ``outputs.state``.
        if not (self._check(TokenKind.NAME) or self._check(TokenKind.KEYWORD)):
            raise self._error("unexpected token", f"field name after '{tok.value}.'")
        return Identifier(store, self._advance().value)

    def _enter(self) -> None:
        self._nesting += 1
        if self._nesting > MAX_NESTING:
            raise self._error(f"expression nested deeper than {MAX_NESTING} levels")


_LEVELS = (_OR_OPS, _AND_OPS, _COMPARE_OPS, _ADDITIVE_OPS, _TERM_OPS)
