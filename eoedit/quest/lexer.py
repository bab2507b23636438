"""Tokenizer for EQF quest scripts.

Whitespace outside string literals is insignificant and ``//`` comments run
to the end of the line. String literals are double-quoted with no escape
processing: the next ``"`` always closes the string, and a string may not
span lines. Numbers are digits and dots with an optional sign; a sign or
dot on its own still makes a NUMBER token so hand-edited arguments such as
``-`` reach the parser instead of failing here.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List

from .errors import MalformedQuestError

IDENT = "IDENT"
NUMBER = "NUMBER"
STRING = "STRING"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
LBRACE = "LBRACE"
RBRACE = "RBRACE"
COMMA = "COMMA"
SEMI = "SEMI"
EQUALS = "EQUALS"
EOF = "EOF"

_PUNCTUATION = {
    "(": LPAREN,
    ")": RPAREN,
    "{": LBRACE,
    "}": RBRACE,
    ",": COMMA,
    ";": SEMI,
    "=": EQUALS,
}


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    line: int
    column: int

    @property
    def end_column(self) -> int:
        """Column just past the token in the source line."""
        width = len(self.value) + 2 if self.kind == STRING else len(self.value)
        return self.column + width

    def source_text(self) -> str:
        if self.kind == STRING:
            return f'"{self.value}"'
        return self.value

    def describe(self) -> str:
        if self.kind == EOF:
            return "end of file"
        if self.kind == STRING:
            return f'string "{self.value}"'
        return f"'{self.value}'"


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def tokenize(text: str) -> List[Token]:
    """Split quest text into tokens, always ending with an EOF token.

    Raises:
        MalformedQuestError: On an unterminated string or a stray character
    """
    tokens: List[Token] = []
    i = 0
    line = 1
    line_start = 0
    n = len(text)

    while i < n:
        ch = text[i]
        col = i - line_start + 1

        if ch == "\n":
            line += 1
            i += 1
            line_start = i
            continue
        if ch.isspace() or ch == "\ufeff":
            i += 1
            continue

        # line comment
        if ch == "/" and text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if ch == '"':
            end = i + 1
            while end < n and text[end] not in '"\n':
                end += 1
            if end >= n or text[end] != '"':
                raise MalformedQuestError("unterminated string literal", line, col)
            tokens.append(Token(STRING, text[i + 1:end], line, col))
            i = end + 1
            continue

        # a lone sign or dot is a malformed number, left for the parser to coerce
        if ch.isdigit() or ch in "+-.":
            end = i + 1
            while end < n and (text[end].isdigit() or text[end] == "."):
                end += 1
            tokens.append(Token(NUMBER, text[i:end], line, col))
            i = end
            continue

        if _is_ident_start(ch):
            end = i + 1
            while end < n and _is_ident_char(text[end]):
                end += 1
            tokens.append(Token(IDENT, text[i:end], line, col))
            i = end
            continue

        kind = _PUNCTUATION.get(ch)
        if kind is None:
            raise MalformedQuestError(f"unexpected character {ch!r}", line, col)
        tokens.append(Token(kind, ch, line, col))
        i += 1

    tokens.append(Token(EOF, "", line, i - line_start + 1))
    return tokens
