"""
Rule fingerprints: ordered tuples used as comparison and index keys.

A fingerprint is ``(name, "k=v" labels..., "k=v" annotations..., query hash)``
with label and annotation pairs sorted by key. The query hash is present only
in the query-inclusive variant; the no-query variant is one element shorter.
"""

from __future__ import annotations

import threading
from typing import Any

from cachetools import LRUCache  # type: ignore[import-untyped]

from rulematch.query import DEFAULT_CANONICALIZER, QueryCanonicalizer, hash_query
from rulematch.rules.models import Rule

Fingerprint = tuple[str, ...]


def fingerprint(
    rule: Rule,
    include_query: bool = False,
    canonicalizer: QueryCanonicalizer | None = None,
) -> Fingerprint:
    """
    Build the fingerprint of a rule.

    Args:
        rule: Rule from either source
        include_query: Append the canonical query hash as the last element
        canonicalizer: Query canonicalizer (PromQL by default)

    Returns:
        Ordered tuple; compare with ``==``
    """
    parts = [rule.name]
    parts.extend(f"{key}={value}" for key, value in sorted(rule.labels.items()))
    parts.extend(f"{key}={value}" for key, value in sorted(rule.annotations.items()))
    if include_query:
        parts.append(hash_query(rule.query, canonicalizer))
    return tuple(parts)


class FingerprintCache:
    """
    Explicit, thread-safe fingerprint cache keyed by rule content.

    Keys are ``(rule.content_key(), include_query, canonicalizer name)`` so
    equal rules from different API responses share entries. Entries are
    immutable tuples and are written once.
    """

    def __init__(self, maxsize: int = 4096) -> None:
        self._cache: LRUCache = LRUCache(maxsize=maxsize)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(
        self,
        rule: Rule,
        include_query: bool = False,
        canonicalizer: QueryCanonicalizer | None = None,
    ) -> Fingerprint:
        """Return the cached fingerprint, computing it on a miss."""
        canonicalizer = canonicalizer or DEFAULT_CANONICALIZER
        key = (rule.content_key(), include_query, canonicalizer.name if include_query else None)

        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1

        value = fingerprint(rule, include_query, canonicalizer)
        with self._lock:
            return self._cache.setdefault(key, value)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "size": len(self._cache),
                "maxsize": self._cache.maxsize,
                "hits": self.hits,
                "misses": self.misses,
            }


def get_fingerprint(
    rule: Rule,
    include_query: bool,
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> Fingerprint:
    """Fingerprint through ``cache`` when one is supplied."""
    if cache is None:
        return fingerprint(rule, include_query, canonicalizer)
    return cache.get(rule, include_query, canonicalizer)
