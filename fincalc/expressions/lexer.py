"""
Tokenizer for calculator expressions.
"""

import enum
import re
from dataclasses import dataclass
from typing import List, Optional

from fincalc.errors import ExpressionSyntaxError


class TokenKind(enum.Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    OPERATOR = "operator"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    END = "end"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int
    value: Optional[float] = None


OPERATORS = "+-*/^!"

# Keyboard symbols accepted as their ASCII spelling
ALIASES = {
    "×": "*",
    "·": "*",
    "÷": "/",
    "−": "-",
}

NUMBER_PATTERN = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
DIGITS = frozenset("0123456789")


def _is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_identifier_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def tokenize(source: str) -> List[Token]:
    """
    Split an expression into tokens.

    The returned list always ends with an END token positioned at
    ``len(source)``.

    Raises:
        ExpressionSyntaxError: On a character that starts no token
    """
    tokens = []
    pos = 0
    length = len(source)

    while pos < length:
        ch = source[pos]

        if ch.isspace():
            pos += 1
            continue

        if ch in DIGITS or (ch == "." and source[pos + 1 : pos + 2] in DIGITS):
            match = NUMBER_PATTERN.match(source, pos)
            text = match.group(0)
            tokens.append(Token(TokenKind.NUMBER, text, pos, float(text)))
            pos = match.end()
            continue

        if _is_identifier_start(ch):
            end = pos + 1
            while end < length and _is_identifier_char(source[end]):
                end += 1
            tokens.append(Token(TokenKind.IDENTIFIER, source[pos:end], pos))
            pos = end
            continue

        if ch == "√":
            tokens.append(Token(TokenKind.IDENTIFIER, "sqrt", pos))
        elif ch == "∞":
            tokens.append(Token(TokenKind.IDENTIFIER, ch, pos))
        elif ch in OPERATORS or ch in ALIASES:
            tokens.append(Token(TokenKind.OPERATOR, ALIASES.get(ch, ch), pos))
        elif ch == "(":
            tokens.append(Token(TokenKind.LPAREN, ch, pos))
        elif ch == ")":
            tokens.append(Token(TokenKind.RPAREN, ch, pos))
        elif ch == ",":
            tokens.append(Token(TokenKind.COMMA, ch, pos))
        else:
            raise ExpressionSyntaxError(f"Unexpected character '{ch}'", pos)
        pos += 1

    tokens.append(Token(TokenKind.END, "", length))
    return tokens
