"""
Query canonicalization for rule matching.

Turns query-language text into an order- and whitespace-insensitive
fingerprint token so that the authored and the evaluated form of the same
expression compare equal.
"""

from rulematch.query.canonicalizer import (
    CANONICALIZERS,
    DEFAULT_CANONICALIZER,
    PromQLCanonicalizer,
    QueryCanonicalizer,
    TextCanonicalizer,
    canonicalize_query,
    collapse_whitespace,
    get_canonicalizer,
    hash_query,
)
from rulematch.query.lexer import Token, TokenKind, tokenize

__all__ = [
    # Lexer
    "Token",
    "TokenKind",
    "tokenize",
    # Canonicalizer
    "QueryCanonicalizer",
    "PromQLCanonicalizer",
    "TextCanonicalizer",
    "CANONICALIZERS",
    "DEFAULT_CANONICALIZER",
    "get_canonicalizer",
    "canonicalize_query",
    "collapse_whitespace",
    "hash_query",
]
