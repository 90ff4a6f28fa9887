"""
Single-rule matcher.

Locates the counterpart of one rule in a candidate group using a ladder of
increasingly specific comparisons. Each tier runs only when the previous one
was ambiguous:

1. Name: exactly one candidate with the same name wins without any
   fingerprinting.
2. Name + labels + annotations.
3. Name + labels + annotations + canonical query.

Ambiguity is terminal: no scoring, no "first wins".
"""

from __future__ import annotations

from typing import Iterable, Sequence

import structlog

from rulematch.matching.fingerprints import FingerprintCache, get_fingerprint
from rulematch.matching.outcome import MatchKind, RuleMatch, matched, unmatched
from rulematch.query import QueryCanonicalizer
from rulematch.rules.models import Rule

logger = structlog.get_logger()


def resolve_rule(
    group: Iterable[Rule],
    rule: Rule,
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> RuleMatch:
    """
    Match a rule against a candidate group and report the deciding tier.

    Args:
        group: Candidate rules (a RuleGroup or any iterable of rules)
        rule: Rule to locate, from the other source
        canonicalizer: Query canonicalizer for the query tier
        cache: Optional fingerprint cache shared across calls

    Returns:
        RuleMatch with the counterpart (or None) and the MatchKind
    """
    same_name = [candidate for candidate in group if candidate.name == rule.name]
    return resolve_among(same_name, rule, canonicalizer, cache)


def match_rule(
    group: Iterable[Rule],
    rule: Rule,
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> Rule | None:
    """Return the unique counterpart of ``rule`` in ``group``, or None."""
    return resolve_rule(group, rule, canonicalizer, cache).match


def resolve_among(
    same_name: Sequence[Rule],
    rule: Rule,
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> RuleMatch:
    """Apply the fingerprint tiers to candidates already filtered by name."""
    if not same_name:
        return unmatched(rule, MatchKind.NO_CANDIDATE)
    if len(same_name) == 1:
        return matched(rule, same_name[0], MatchKind.NAME)

    target = get_fingerprint(rule, False, canonicalizer, cache)
    by_labels = [c for c in same_name if get_fingerprint(c, False, canonicalizer, cache) == target]
    if len(by_labels) == 1:
        return matched(rule, by_labels[0], MatchKind.FINGERPRINT)
    if not by_labels:
        return unmatched(rule, MatchKind.NO_CANDIDATE)

    target = get_fingerprint(rule, True, canonicalizer, cache)
    by_query = [c for c in by_labels if get_fingerprint(c, True, canonicalizer, cache) == target]
    if len(by_query) == 1:
        return matched(rule, by_query[0], MatchKind.QUERY)

    logger.debug(
        "rule_match_ambiguous",
        rule=rule.name,
        label_matches=len(by_labels),
        query_matches=len(by_query),
    )
    return unmatched(rule, MatchKind.AMBIGUOUS, len(by_query) or len(by_labels))
