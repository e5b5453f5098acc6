"""Syntax tree and parser for Bonobo programs."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from .lexer import Token, TokenKind

_I64_MAX = 2**63 - 1


class ParseError(Exception):
    """Raised when the token stream does not form a valid program."""


class UnexpectedToken(ParseError):
    def __init__(self, token: Token) -> None:
        super().__init__(f"unexpected token: {token}")
        self.token = token


class UnexpectedEof(ParseError):
    def __init__(self) -> None:
        super().__init__("unexpected end of input")


class UnknownConstant(ParseError):
    def __init__(self, text: str) -> None:
        super().__init__(f"unknown constant: {text}")
        self.text = text


class UnknownType(ParseError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown type: {name}")
        self.name = name


class UnknownOperator(ParseError):
    def __init__(self, kind: TokenKind, token: Token | None = None) -> None:
        shown = token.describe() if token is not None else str(kind)
        super().__init__(f"unknown operator: {shown}")
        self.kind = kind
        self.token = token


class UnaryOperation(enum.Enum):
    RETURN = "return"
    ASSERT = "assert"


class BinaryOperation(enum.Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    MODULO = "%"
    DIVISION = "/"
    EQUALS = "=="

    def binding_power(self) -> tuple[int, int]:
        """Left and right binding power used for precedence climbing."""
        if self is BinaryOperation.EQUALS:
            return (1, 2)
        if self in (BinaryOperation.ADD, BinaryOperation.SUBTRACT):
            return (3, 4)
        return (5, 6)

    @classmethod
    def from_token_kind(cls, kind: TokenKind) -> BinaryOperation:
        try:
            return _OPERATORS[kind]
        except KeyError:
            raise UnknownOperator(kind) from None


_OPERATORS = {
    TokenKind.PLUS: BinaryOperation.ADD,
    TokenKind.MINUS: BinaryOperation.SUBTRACT,
    TokenKind.STAR: BinaryOperation.MULTIPLY,
    TokenKind.PERCENT: BinaryOperation.MODULO,
    TokenKind.SLASH: BinaryOperation.DIVISION,
    TokenKind.EQUALS_EQUALS: BinaryOperation.EQUALS,
}


class PrimitiveType(enum.Enum):
    INT64 = "int"
    CHAR = "char"


@dataclass(frozen=True)
class PointerType:
    inner: Type


@dataclass(frozen=True)
class FunctionType:
    parameters: tuple[Type, ...]
    return_type: Type


Type = Union[PrimitiveType, PointerType, FunctionType]


def parse_type_name(name: str) -> PrimitiveType:
    """Map a type keyword to its type."""
    try:
        return PrimitiveType(name)
    except ValueError:
        raise UnknownType(name) from None


@dataclass
class UnaryExpression:
    operation: UnaryOperation
    operand: Node


@dataclass
class BinaryExpression:
    operation: BinaryOperation
    left: Node
    right: Node


@dataclass
class IfStatement:
    expression: Node
    true_branch: list[Node] = field(default_factory=list)
    false_branch: list[Node] = field(default_factory=list)


@dataclass
class Variable:
    identifier: str
    type: Type
    value: Node


@dataclass
class Parameter:
    name: str
    type: Type


@dataclass
class FunctionDefinition:
    identifier: str
    return_type: Type
    parameters: list[Parameter] = field(default_factory=list)
    body: list[Node] = field(default_factory=list)


@dataclass
class Constant:
    value: int


Node = Union[
    FunctionDefinition, BinaryExpression, UnaryExpression, IfStatement, Variable, Constant
]


class Parser:
    """Recursive-descent parser over a stream of tokens."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = iter(tokens)
        self._buffer: Token | None = None
        self._buffered = False

    def _peek(self) -> Token | None:
        if not self._buffered:
            self._buffer = next(self._tokens, None)
            self._buffered = True
        return self._buffer

    def _advance(self) -> Token | None:
        token = self._peek()
        self._buffered = False
        return token

    def _peek_existing(self) -> Token:
        token = self._peek()
        if token is None:
            raise UnexpectedEof()
        return token

    def _advance_existing(self) -> Token:
        token = self._advance()
        if token is None:
            raise UnexpectedEof()
        return token

    def _check(self, kind: TokenKind) -> bool:
        token = self._peek()
        return token is not None and token.kind is kind

    def _require(self, kind: TokenKind) -> Token:
        token = self._peek_existing()
        if token.kind is not kind:
            raise UnexpectedToken(token)
        return self._advance_existing()

    def _accept(self, kind: TokenKind) -> bool:
        if self._check(kind):
            self._advance()
            return True
        return False

    def _text_of(self, kind: TokenKind) -> str:
        token = self._advance_existing()
        if token.kind is not kind:
            raise UnexpectedToken(token)
        return token.text or ""

    def _parameter(self) -> Parameter:
        name = self._text_of(TokenKind.ID)
        self._require(TokenKind.COLON)
        return Parameter(name, self._type())

    def _parameters(self) -> list[Parameter]:
        self._require(TokenKind.PAREN_OPEN)
        params = []
        while not self._accept(TokenKind.PAREN_CLOSE):
            params.append(self._parameter())
            self._accept(TokenKind.COMMA)
        return params

    def _type(self) -> Type:
        result: Type = parse_type_name(self._text_of(TokenKind.ID))
        if self._accept(TokenKind.STAR):
            result = PointerType(result)
        return result

    def _block(self) -> list[Node]:
        self._require(TokenKind.BRACE_OPEN)
        lines = []
        while not self._accept(TokenKind.BRACE_CLOSE):
            lines.append(self._statement())
        return lines

    def _function(self) -> FunctionDefinition:
        self._require(TokenKind.FN)
        identifier = self._text_of(TokenKind.ID)
        parameters = self._parameters()
        self._require(TokenKind.COLON)
        return_type = self._type()
        body = self._block()
        return FunctionDefinition(identifier, return_type, parameters, body)

    def _if_statement(self, keyword: TokenKind) -> IfStatement:
        self._require(keyword)
        expression = self._expression()
        true_branch = self._block()
        nxt = self._peek_existing()
        if nxt.kind is TokenKind.ELIF:
            false_branch: list[Node] = [self._if_statement(TokenKind.ELIF)]
        elif nxt.kind is TokenKind.ELSE:
            self._require(TokenKind.ELSE)
            false_branch = self._block()
        else:
            false_branch = []
        return IfStatement(expression, true_branch, false_branch)

    def _unary(self, operation: UnaryOperation) -> UnaryExpression:
        self._advance()
        return UnaryExpression(operation, self._expression())

    def _constant(self) -> Constant:
        text = self._text_of(TokenKind.NUMBER)
        if not (text.isascii() and text.isdigit()) or int(text) > _I64_MAX:
            raise UnknownConstant(text)
        return Constant(int(text))

    def _primary(self) -> Node:
        token = self._peek_existing()
        if token.kind is TokenKind.NUMBER:
            return self._constant()
        raise UnexpectedToken(token)

    def _expression_bp(self, min_bp: int) -> Node:
        lhs = self._primary()
        # Statement terminators are left for the caller to consume.
        while not (self._check(TokenKind.SEMICOLON) or self._check(TokenKind.BRACE_OPEN)):
            token = self._peek_existing()
            try:
                op = BinaryOperation.from_token_kind(token.kind)
            except UnknownOperator:
                raise UnknownOperator(token.kind, token) from None
            left_bp, right_bp = op.binding_power()
            if left_bp < min_bp:
                break
            self._advance_existing()
            rhs = self._expression_bp(right_bp)
            lhs = BinaryExpression(op, lhs, rhs)
        return lhs

    def _expression(self) -> Node:
        return self._expression_bp(0)

    def _statement(self) -> Node:
        token = self._peek_existing()
        if token.kind is TokenKind.IF:
            return self._if_statement(TokenKind.IF)
        if token.kind is TokenKind.RETURN:
            operation = UnaryOperation.RETURN
        elif token.kind is TokenKind.ASSERT:
            operation = UnaryOperation.ASSERT
        else:
            raise UnexpectedToken(token)
        try:
            node = self._unary(operation)
        except ParseError:
            # A missing semicolon is reported ahead of the expression's own error.
            self._require(TokenKind.SEMICOLON)
            raise
        self._require(TokenKind.SEMICOLON)
        return node

    def parse(self) -> FunctionDefinition:
        """Parse one function definition from the token stream."""
        token = self._peek()
        if token is None:
            raise UnexpectedEof()
        if token.kind is not TokenKind.FN:
            raise UnexpectedToken(token)
        return self._function()


def parse(tokens: Iterable[Token]) -> FunctionDefinition:
    """Parse a function definition from ``tokens``."""
    return Parser(tokens).parse()