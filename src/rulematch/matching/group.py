"""
Group matcher.

Pairs every rule of group A with at most one rule of group B. Group B is
indexed once (by name, by no-query fingerprint, by query-inclusive
fingerprint) so each A-rule costs a few dictionary lookups instead of a scan
of B.

A B-rule claimed by an earlier A-rule is excluded from candidacy for every
later A-rule. Claims are made in the order group A is supplied, so with
duplicate B-rules the first A-rule in source order wins.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from rulematch.matching.fingerprints import Fingerprint, FingerprintCache, get_fingerprint
from rulematch.matching.outcome import MatchKind, RuleMatch, matched, unmatched
from rulematch.matching.single import resolve_rule
from rulematch.query import QueryCanonicalizer
from rulematch.rules.models import Rule

logger = structlog.get_logger()


@dataclass
class GroupMatchResult:
    """Injective A -> B mapping plus the rules left over on each side."""

    matches: dict[Rule, Rule] = field(default_factory=dict)  # A-rule -> B-rule, A order
    unmatched_b: list[Rule] = field(default_factory=list)  # B order
    unmatched_a: list[Rule] = field(default_factory=list)  # A order
    outcomes: dict[Rule, RuleMatch] = field(default_factory=dict)  # Every A-rule

    @property
    def has_orphans(self) -> bool:
        return bool(self.unmatched_a or self.unmatched_b)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "matches": [self.outcomes[rule].to_dict() for rule in self.matches],
            "unmatched_a": [rule.name for rule in self.unmatched_a],
            "unmatched_b": [rule.name for rule in self.unmatched_b],
            "ambiguous": [
                outcome.rule.name
                for outcome in self.outcomes.values()
                if outcome.kind is MatchKind.AMBIGUOUS
            ],
        }


class _GroupIndex:
    """
    Lookup tables over the unclaimed rules of group B.

    Buckets are insertion-ordered dicts used as sets, so claiming a rule
    removes it from every bucket in constant time.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        canonicalizer: QueryCanonicalizer | None,
        cache: FingerprintCache | None,
    ) -> None:
        self.by_name: dict[str, dict[Rule, None]] = defaultdict(dict)
        self.by_fingerprint: dict[Fingerprint, dict[Rule, None]] = defaultdict(dict)
        self.by_query: dict[Fingerprint, dict[Rule, None]] = defaultdict(dict)
        self._keys: dict[Rule, tuple[Fingerprint, Fingerprint]] = {}

        for rule in rules:
            self.by_name[rule.name][rule] = None

        # Unique names never reach the fingerprint tiers
        for bucket in self.by_name.values():
            if len(bucket) < 2:
                continue
            for rule in bucket:
                no_query = get_fingerprint(rule, False, canonicalizer, cache)
                with_query = get_fingerprint(rule, True, canonicalizer, cache)
                self.by_fingerprint[no_query][rule] = None
                self.by_query[with_query][rule] = None
                self._keys[rule] = (no_query, with_query)

    def claim(self, rule: Rule) -> None:
        """Remove a claimed rule from every bucket it sits in."""
        del self.by_name[rule.name][rule]
        keys = self._keys.pop(rule, None)
        if keys is not None:
            no_query, with_query = keys
            del self.by_fingerprint[no_query][rule]
            del self.by_query[with_query][rule]


def match_groups(
    group_a: Iterable[Rule],
    group_b: Iterable[Rule],
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> GroupMatchResult:
    """
    Match two rule groups.

    Args:
        group_a: Rules to locate, claimed in this order
        group_b: Candidate rules
        canonicalizer: Query canonicalizer for the query tier
        cache: Optional fingerprint cache shared across calls

    Returns:
        GroupMatchResult; ``len(matches) + len(unmatched_b) == len(group_b)``
    """
    rules_a = list(group_a)
    rules_b = list(group_b)
    index = _GroupIndex(rules_b, canonicalizer, cache)

    outcomes: dict[Rule, RuleMatch] = {}
    for rule in rules_a:
        outcome = _resolve_indexed(rule, index, canonicalizer, cache)
        outcomes[rule] = outcome
        if outcome.match is not None:
            index.claim(outcome.match)

    return _build_result(rules_a, rules_b, outcomes)


def _resolve_indexed(
    rule: Rule,
    index: _GroupIndex,
    canonicalizer: QueryCanonicalizer | None,
    cache: FingerprintCache | None,
) -> RuleMatch:
    candidates = index.by_name.get(rule.name, {})
    if not candidates:
        return unmatched(rule, MatchKind.NO_CANDIDATE)
    if len(candidates) == 1:
        return matched(rule, next(iter(candidates)), MatchKind.NAME)

    key = get_fingerprint(rule, False, canonicalizer, cache)
    by_labels = index.by_fingerprint.get(key, {})
    if len(by_labels) == 1:
        return matched(rule, next(iter(by_labels)), MatchKind.FINGERPRINT)
    if not by_labels:
        return unmatched(rule, MatchKind.NO_CANDIDATE)

    key = get_fingerprint(rule, True, canonicalizer, cache)
    by_query = index.by_query.get(key, {})
    if len(by_query) == 1:
        return matched(rule, next(iter(by_query)), MatchKind.QUERY)

    logger.debug(
        "rule_match_ambiguous",
        rule=rule.name,
        label_matches=len(by_labels),
        query_matches=len(by_query),
    )
    return unmatched(rule, MatchKind.AMBIGUOUS, len(by_query) or len(by_labels))


def match_groups_naive(
    group_a: Iterable[Rule],
    group_b: Iterable[Rule],
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> GroupMatchResult:
    """
    Reference matcher: one resolve_rule call per A-rule over the unclaimed B-rules.

    Quadratic in group size. Produces the same result as match_groups and is
    kept for equivalence checks and benchmarks.
    """
    rules_a = list(group_a)
    rules_b = list(group_b)
    remaining = list(rules_b)

    outcomes: dict[Rule, RuleMatch] = {}
    for rule in rules_a:
        outcome = resolve_rule(remaining, rule, canonicalizer, cache)
        outcomes[rule] = outcome
        if outcome.match is not None:
            remaining.remove(outcome.match)

    return _build_result(rules_a, rules_b, outcomes)


def _build_result(
    rules_a: list[Rule],
    rules_b: list[Rule],
    outcomes: dict[Rule, RuleMatch],
) -> GroupMatchResult:
    matches = {
        rule: outcome.match for rule, outcome in outcomes.items() if outcome.match is not None
    }
    claimed = set(matches.values())
    result = GroupMatchResult(
        matches=matches,
        unmatched_b=[rule for rule in rules_b if rule not in claimed],
        unmatched_a=[rule for rule in rules_a if rule not in matches],
        outcomes=outcomes,
    )
    logger.debug(
        "group_matched",
        rules_a=len(rules_a),
        rules_b=len(rules_b),
        matched=len(result.matches),
        unmatched_a=len(result.unmatched_a),
        unmatched_b=len(result.unmatched_b),
    )
    return result
