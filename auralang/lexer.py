"""Tokenizer for Aura source text."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

I32_MAX = 2**31 - 1


class TokenType(Enum):
    """Kinds of token produced by the lexer."""

    VAR = "var"
    PRINT = "print"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    FOR = "for"
    FOREACH = "foreach"
    IN = "in"
    FUNC = "func"
    RETURN = "return"
    IMPORT = "import"
    FROM = "from"
    CLASS = "class"
    NEW = "new"
    ID = "identifier"
    NUMBER = "number"
    STRING = "string"
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    MUL = "*"
    DIV = "/"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    SEMICOLON = ";"
    DOT = "."
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    EOF = "end of input"


KEYWORDS = {
    kind.value: kind
    for kind in (
        TokenType.VAR,
        TokenType.PRINT,
        TokenType.IF,
        TokenType.ELSE,
        TokenType.WHILE,
        TokenType.FOR,
        TokenType.FOREACH,
        TokenType.IN,
        TokenType.FUNC,
        TokenType.RETURN,
        TokenType.IMPORT,
        TokenType.FROM,
        TokenType.CLASS,
        TokenType.NEW,
    )
}

_SINGLE_CHAR = {
    ".": TokenType.DOT,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

# Characters that form a different token when followed by '='.
_EQ_PAIRS = {
    "=": (TokenType.ASSIGN, TokenType.EQ),
    "<": (TokenType.LT, TokenType.LTE),
    ">": (TokenType.GT, TokenType.GTE),
}


@dataclass(frozen=True)
class Token:
    """A token with its kind, the line it ends on and an optional payload."""

    kind: TokenType
    line: int
    value: Optional[Union[int, str]] = None


class LexError(Exception):
    """Raised when the source text cannot be tokenized."""

    def __init__(self, message: str, line: int) -> None:
        super().__init__(message)
        self.line = line


def _is_ascii_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _starts_identifier(ch: str) -> bool:
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


class Lexer:
    """Turns source text into a list of tokens ending with an EOF token."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._line = 1

    def _peek(self, offset: int = 0) -> Optional[str]:
        index = self._pos + offset
        return self._source[index] if index < len(self._source) else None

    def _advance(self) -> Optional[str]:
        ch = self._peek()
        self._pos += 1
        if ch == "\n":
            self._line += 1
        return ch

    def _skip_trivia(self) -> None:
        while (ch := self._peek()) is not None:
            if ch.isspace():
                self._advance()
            elif ch == "/" and self._peek(1) == "/":
                while (x := self._peek()) is not None and x != "\n":
                    self._advance()
            else:
                break

    def _take_while(self, predicate) -> str:
        chars = []
        while (ch := self._peek()) is not None and predicate(ch):
            chars.append(ch)
            self._advance()
        return "".join(chars)

    def _scan(self, ch: str) -> tuple[TokenType, Optional[Union[int, str]]]:
        if ch in _SINGLE_CHAR:
            self._advance()
            return _SINGLE_CHAR[ch], None
        if ch in _EQ_PAIRS:
            self._advance()
            plain, with_eq = _EQ_PAIRS[ch]
            if self._peek() == "=":
                self._advance()
                return with_eq, None
            return plain, None
        if ch == "!":
            self._advance()
            if self._peek() == "=":
                self._advance()
                return TokenType.NEQ, None
            raise LexError(f"Line {self._line}: Expected '=' after '!'", self._line)
        if ch == '"':
            self._advance()
            text = self._take_while(lambda c: c != '"')
            if self._peek() != '"':
                raise LexError("Run-away string literal!", self._line)
            self._advance()
            return TokenType.STRING, text
        if _is_ascii_digit(ch):
            digits = self._take_while(_is_ascii_digit)
            number = int(digits)
            if number > I32_MAX:
                raise LexError(
                    f"Line {self._line}: Number literal out of range: {digits}", self._line
                )
            return TokenType.NUMBER, number
        if _starts_identifier(ch):
            word = self._take_while(lambda c: c.isalnum() or c == "_")
            keyword = KEYWORDS.get(word)
            if keyword is not None:
                return keyword, None
            return TokenType.ID, word
        raise LexError(f"Unknown character: {ch}", self._line)

    def tokenize(self) -> list[Token]:
        """Consume the remaining input and return its tokens, EOF last."""
        tokens: list[Token] = []
        while True:
            self._skip_trivia()
            ch = self._peek()
            if ch is None:
                break
            kind, value = self._scan(ch)
            tokens.append(Token(kind, self._line, value))
        tokens.append(Token(TokenType.EOF, self._line))
        return tokens


def tokenize(source: str) -> list[Token]:
    """Tokenize a complete source text."""
    return Lexer(source).tokenize()