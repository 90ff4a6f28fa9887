"""
Tokenizer for Prometheus-style query expressions.

Produces only the significant tokens of a query: whitespace and ``#`` line
comments are dropped, and string literals are re-emitted in double-quoted
form so that quote style never distinguishes two queries.

This is not a parser. It knows enough about the lexical grammar
to find token boundaries, string literals and comments; structure is left to
the canonicalizer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from rulematch.core.errors import QueryTokenizeError


class TokenKind(Enum):
    """Lexical category of a query token."""

    IDENTIFIER = "identifier"
    DURATION = "duration"
    NUMBER = "number"
    STRING = "string"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"


@dataclass(frozen=True)
class Token:
    """A significant query token in canonical spelling."""

    kind: TokenKind
    text: str
    position: int  # Offset of the token in the query text


_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_:]*")
_DURATION = re.compile(r"(?:\d+(?:ms|[smhdwy]))+")
_NUMBER = re.compile(r"0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Longest operators first so "!=" is never read as "!" followed by "="
_OPERATORS = ("==", "!=", ">=", "<=", "=~", "!~", "+", "-", "*", "/", "%", "^", "=", "<", ">", "@", ":")
_PUNCTUATION = frozenset("(){}[],")
_QUOTES = frozenset("\"'`")


def tokenize(query: str) -> list[Token]:
    """
    Split a query into significant tokens.

    Examples:
        up{job='api'}  # comment → up { job = "api" }
        rate(x[ 5m ])            → rate ( x [ 5m ] )

    Raises:
        QueryTokenizeError: On an unterminated string literal or a character
            that cannot start any token.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(query)

    while pos < length:
        ch = query[pos]

        if ch.isspace():
            pos += 1
            continue

        if ch == "#":
            newline = query.find("\n", pos)
            pos = length if newline < 0 else newline + 1
            continue

        if ch in _QUOTES:
            text, pos_after = _read_string(query, pos)
            tokens.append(Token(TokenKind.STRING, text, pos))
            pos = pos_after
            continue

        if ch in _PUNCTUATION:
            tokens.append(Token(TokenKind.PUNCTUATION, ch, pos))
            pos += 1
            continue

        match = _IDENTIFIER.match(query, pos)
        if match:
            tokens.append(Token(TokenKind.IDENTIFIER, match.group(), pos))
            pos = match.end()
            continue

        match = _DURATION.match(query, pos)
        if match:
            tokens.append(Token(TokenKind.DURATION, match.group(), pos))
            pos = match.end()
            continue

        match = _NUMBER.match(query, pos)
        if match:
            tokens.append(Token(TokenKind.NUMBER, match.group(), pos))
            pos = match.end()
            continue

        operator = _match_operator(query, pos)
        if operator:
            tokens.append(Token(TokenKind.OPERATOR, operator, pos))
            pos += len(operator)
            continue

        raise QueryTokenizeError(f"unexpected character {ch!r}", pos)

    return tokens


def _match_operator(query: str, pos: int) -> str | None:
    for operator in _OPERATORS:
        if query.startswith(operator, pos):
            return operator
    return None


def _read_string(query: str, start: int) -> tuple[str, int]:
    """Read a string literal starting at ``start``.

    Returns the literal rendered with double quotes and the offset just past
    the closing quote.
    """
    quote = query[start]

    if quote == "`":
        end = query.find("`", start + 1)
        if end < 0:
            raise QueryTokenizeError("unterminated raw string literal", start)
        raw = query[start + 1 : end]
        body = raw.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{body}"', end + 1

    parts: list[str] = []
    pos = start + 1
    while pos < len(query):
        ch = query[pos]
        if ch == "\\":
            if pos + 1 >= len(query):
                break
            escaped = query[pos + 1]
            if escaped == '"':
                parts.append('\\"')
            elif escaped == "'":
                parts.append("'")
            else:
                parts.append(ch + escaped)
            pos += 2
            continue
        if ch == quote:
            return '"' + "".join(parts) + '"', pos + 1
        if ch == "\n":
            break
        parts.append('\\"' if ch == '"' else ch)
        pos += 1

    raise QueryTokenizeError("unterminated string literal", start)
