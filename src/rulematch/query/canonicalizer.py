"""
Query canonicalization and hashing.

Two query strings that differ only in whitespace, comments, quote style,
label-selector clause order or ``by``/``without`` label order canonicalize to
the same text. Anything that changes the token sequence (operators,
parenthesization, function names, operand order) does not.
"""

from __future__ import annotations

import hashlib
from typing import Protocol

import structlog

from rulematch.core.errors import ConfigurationError, QueryTokenizeError
from rulematch.query.lexer import Token, TokenKind, tokenize

logger = structlog.get_logger()

# Keywords are case-insensitive in PromQL
KEYWORDS = frozenset(
    {
        "and",
        "or",
        "unless",
        "by",
        "without",
        "on",
        "ignoring",
        "group_left",
        "group_right",
        "offset",
        "bool",
    }
)

# Only these grouping clauses are order-insensitive
SORTABLE_GROUPINGS = frozenset({"by", "without"})

# Vector-matching lists keep label order and label case
ORDERED_GROUPINGS = frozenset({"on", "ignoring", "group_left", "group_right"})

_OPENERS = {"(": ")", "[": "]"}
_CLOSERS = {")": "(", "]": "["}


class QueryCanonicalizer(Protocol):
    """Strategy that turns query text into a comparable canonical form."""

    name: str

    def canonicalize(self, text: str) -> str:
        """Return the canonical form, raising QueryTokenizeError if the text cannot be read."""
        ...


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim the ends."""
    return " ".join(text.split())


class TextCanonicalizer:
    """Whitespace-insensitive exact text comparison, for languages without a lexer."""

    name = "text"

    def canonicalize(self, text: str) -> str:
        return collapse_whitespace(text)


class PromQLCanonicalizer:
    """Canonicalizer for Prometheus-style query expressions."""

    name = "promql"

    def canonicalize(self, text: str) -> str:
        tokens = tokenize(text)
        _check_balanced(tokens)
        parts = _strip_outer_parens(_render(tokens))
        # Joined without separators: "a or b" and "aorb" share a canonical form
        return "".join(parts)


CANONICALIZERS: dict[str, type[QueryCanonicalizer]] = {
    PromQLCanonicalizer.name: PromQLCanonicalizer,
    TextCanonicalizer.name: TextCanonicalizer,
}

DEFAULT_CANONICALIZER: QueryCanonicalizer = PromQLCanonicalizer()


def get_canonicalizer(name: str) -> QueryCanonicalizer:
    """Instantiate a canonicalizer by name ("promql" or "text")."""
    try:
        return CANONICALIZERS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown query language: {name}",
            {"available": ", ".join(sorted(CANONICALIZERS))},
        ) from None


def canonicalize_query(query: str, canonicalizer: QueryCanonicalizer | None = None) -> str:
    """
    Canonicalize a query, degrading to whitespace-collapsed text on failure.

    Args:
        query: Query text as authored or as reported by the evaluator
        canonicalizer: Strategy to use (PromQL by default)

    Returns:
        Canonical text; never raises for string input
    """
    canonicalizer = canonicalizer or DEFAULT_CANONICALIZER
    try:
        return canonicalizer.canonicalize(query)
    except QueryTokenizeError as e:
        logger.debug(
            "query_tokenize_failed",
            canonicalizer=canonicalizer.name,
            reason=e.message,
            position=e.position,
        )
        return collapse_whitespace(query)


def hash_query(query: str, canonicalizer: QueryCanonicalizer | None = None) -> str:
    """
    Hash a query into a short, stable token.

    Examples:
        hash_query('up{job="x"}') == hash_query("up{ job = 'x' }")
        hash_query("(a + b) * c") != hash_query("a + b * c")

    Returns:
        16 hex characters of a BLAKE2b digest of the canonical text
    """
    canonical = canonicalize_query(query, canonicalizer)
    # Lone surrogates (e.g. from a JSON "\ud800" escape) are hashed as-is
    return hashlib.blake2b(canonical.encode("utf-8", "surrogatepass"), digest_size=8).hexdigest()


def _spelling(token: Token) -> str:
    if token.kind is TokenKind.IDENTIFIER and token.text.lower() in KEYWORDS:
        return token.text.lower()
    return token.text


def _check_balanced(tokens: list[Token]) -> None:
    stack: list[Token] = []
    for token in tokens:
        if token.text in _OPENERS:
            stack.append(token)
        elif token.text in _CLOSERS:
            if not stack or stack[-1].text != _CLOSERS[token.text]:
                raise QueryTokenizeError(f"unbalanced {token.text!r}", token.position)
            stack.pop()
    if stack:
        raise QueryTokenizeError(f"unclosed {stack[-1].text!r}", stack[-1].position)


def _render(tokens: list[Token]) -> list[str]:
    """Render tokens to text parts, sorting selector clauses and by/without lists.

    Keywords are lowercased outside selectors and grouping lists only; label
    names keep their case.
    """
    parts: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]

        if token.text == "{":
            selector, i = _render_selector(tokens, i)
            parts.append(selector)
            continue

        if token.text == "}":
            raise QueryTokenizeError("unbalanced '}'", token.position)

        text = _spelling(token)
        is_grouping = text in SORTABLE_GROUPINGS or text in ORDERED_GROUPINGS
        if is_grouping and i + 1 < len(tokens) and tokens[i + 1].text == "(":
            grouping = _read_grouping(tokens, i + 2)
            if grouping is not None:
                labels, i = grouping
                if text in SORTABLE_GROUPINGS:
                    labels = sorted(labels)
                parts.extend([text, "(", ",".join(labels), ")"])
                continue

        parts.append(text)
        i += 1
    return parts


def _render_selector(tokens: list[Token], start: int) -> tuple[str, int]:
    """Render the selector opening at ``start``; returns text and the index past ``}``."""
    clauses: list[list[Token]] = [[]]
    i = start + 1
    while i < len(tokens):
        token = tokens[i]
        if token.text == "}":
            rendered = [
                (clause[0].text, "".join(t.text for t in clause)) for clause in clauses if clause
            ]
            rendered.sort()
            return "{" + ",".join(text for _, text in rendered) + "}", i + 1
        if token.text == "{":
            raise QueryTokenizeError("nested label selector", token.position)
        if token.text == ",":
            clauses.append([])
        else:
            clauses[-1].append(token)
        i += 1
    raise QueryTokenizeError("unclosed label selector", tokens[start].position)


def _read_grouping(tokens: list[Token], start: int) -> tuple[list[str], int] | None:
    """Read a ``(label, ...)`` list; None if it holds anything but labels."""
    labels: list[str] = []
    i = start
    while i < len(tokens):
        token = tokens[i]
        if token.text == ")":
            return labels, i + 1
        if token.kind in (TokenKind.IDENTIFIER, TokenKind.STRING):
            labels.append(token.text)
        elif token.text != ",":
            return None
        i += 1
    return None


def _strip_outer_parens(parts: list[str]) -> list[str]:
    while parts and parts[0] == "(" and parts[-1] == ")" and _closing_index(parts) == len(parts) - 1:
        parts = parts[1:-1]
    return parts


def _closing_index(parts: list[str]) -> int:
    depth = 0
    for index, part in enumerate(parts):
        if part == "(":
            depth += 1
        elif part == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1
