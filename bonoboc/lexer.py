"""Tokenizer for Bonobo source text."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass


class TokenKind(enum.Enum):
    """The kinds of token the lexer produces."""

    FN = "Fn"
    IF = "If"
    ELIF = "ElIf"
    ELSE = "Else"
    RETURN = "Return"
    ASSERT = "Assert"
    ID = "Id"
    NUMBER = "Number"
    PAREN_OPEN = "ParenOpen"
    PAREN_CLOSE = "ParenClose"
    BRACKET_OPEN = "BracketOpen"
    BRACKET_CLOSE = "BracketClose"
    BRACE_OPEN = "BraceOpen"
    BRACE_CLOSE = "BraceClose"
    COLON = "Colon"
    SEMICOLON = "SemiColon"
    COMMA = "Comma"
    STAR = "Star"
    PLUS = "Plus"
    MINUS = "Minus"
    PERCENT = "Percent"
    SLASH = "Slash"
    EQUALS_EQUALS = "EqualsEquals"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


_KEYWORDS = {
    "fn": TokenKind.FN,
    "if": TokenKind.IF,
    "elif": TokenKind.ELIF,
    "else": TokenKind.ELSE,
    "return": TokenKind.RETURN,
    "assert": TokenKind.ASSERT,
}

_PUNCTUATION = {
    "(": TokenKind.PAREN_OPEN,
    ")": TokenKind.PAREN_CLOSE,
    "[": TokenKind.BRACKET_OPEN,
    "]": TokenKind.BRACKET_CLOSE,
    "{": TokenKind.BRACE_OPEN,
    "}": TokenKind.BRACE_CLOSE,
    ":": TokenKind.COLON,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
    "*": TokenKind.STAR,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "%": TokenKind.PERCENT,
    "/": TokenKind.SLASH,
}

_ESCAPES = {"\\": "\\\\", '"': '\\"', "\0": "\\0", "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def _quote(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"'


@dataclass(frozen=True)
class Span:
    """Line and column of a token's first character."""

    line: int
    column: int

    def __str__(self) -> str:
        return f"Line {self.line}, Column {self.column}"


@dataclass(frozen=True)
class Token:
    """A lexical token; ``text`` is set for identifiers, numbers and unknown input."""

    kind: TokenKind
    span: Span
    text: str | None = None

    def describe(self) -> str:
        """Return a short description of the token's kind and text."""
        if self.kind is TokenKind.ID:
            return f"ID({self.text})"
        if self.kind is TokenKind.NUMBER:
            return f"Number({self.text})"
        if self.kind is TokenKind.UNKNOWN:
            return f"Unknown({_quote(self.text or '')})"
        return str(self.kind)

    def __str__(self) -> str:
        return f"Token {{ id: {self.describe()}, span: {self.span} }}"


class Lexer:
    """Iterator over the tokens of a source string."""

    def __init__(self, src: str) -> None:
        self._src = src
        self._pos = 0
        self._line = 1
        self._column = 0

    def __iter__(self) -> Lexer:
        return self

    def _peek(self) -> str | None:
        return self._src[self._pos] if self._pos < len(self._src) else None

    def _advance(self) -> tuple[Span, str] | None:
        if self._pos >= len(self._src):
            return None
        ch = self._src[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 0
        else:
            self._column += 1
        return Span(self._line, self._column), ch

    def _take_while(self, first: str, accept: Callable[[str], bool]) -> str:
        chars = [first]
        while (ch := self._peek()) is not None and accept(ch):
            chars.append(ch)
            self._advance()
        return "".join(chars)

    def _equals(self, span: Span) -> Token:
        nxt = self._peek()
        if nxt == "=":
            self._advance()
            return Token(TokenKind.EQUALS_EQUALS, span)
        if nxt is None:
            return Token(TokenKind.UNKNOWN, span, "\0")
        return Token(TokenKind.UNKNOWN, span, "=" + nxt)

    def __next__(self) -> Token:
        while (item := self._advance()) is not None:
            span, ch = item
            if ch.isspace():
                continue
            if (ch.isascii() and ch.isalpha()) or ch == "_":
                word = self._take_while(ch, lambda c: c.isalnum() or c == "_")
                keyword = _KEYWORDS.get(word)
                if keyword is not None:
                    return Token(keyword, span)
                return Token(TokenKind.ID, span, word)
            if ch.isascii() and ch.isdigit():
                return Token(TokenKind.NUMBER, span, self._take_while(ch, str.isnumeric))
            if ch in _PUNCTUATION:
                return Token(_PUNCTUATION[ch], span)
            if ch == "=":
                return self._equals(span)
            return Token(TokenKind.UNKNOWN, span, ch)
        raise StopIteration


def tokenize(src: str) -> list[Token]:
    """Return every token of ``src`` as a list."""
    return list(Lexer(src))