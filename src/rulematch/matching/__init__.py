"""
Rule matching between the evaluation and the configuration view of a rule.

Neither rule API assigns a cross-API identifier, so rules are paired by a
tiered comparison: name, then name + labels + annotations, then the canonical
query as a last resort.

Example usage:
    from rulematch.matching import match_groups

    result = match_groups(configuration_group.rules, evaluation_group.rules)
    for configured, evaluating in result.matches.items():
        ...
    orphaned = result.unmatched_b
"""

from rulematch.matching.fingerprints import (
    Fingerprint,
    FingerprintCache,
    fingerprint,
    get_fingerprint,
)
from rulematch.matching.group import GroupMatchResult, match_groups, match_groups_naive
from rulematch.matching.outcome import MatchKind, RuleMatch
from rulematch.matching.reconcile import GroupReconciliation, ReconcileReport, reconcile
from rulematch.matching.single import match_rule, resolve_rule

__all__ = [
    # Fingerprints
    "Fingerprint",
    "FingerprintCache",
    "fingerprint",
    "get_fingerprint",
    # Outcomes
    "MatchKind",
    "RuleMatch",
    # Matchers
    "match_rule",
    "resolve_rule",
    "match_groups",
    "match_groups_naive",
    "GroupMatchResult",
    # Documents
    "reconcile",
    "ReconcileReport",
    "GroupReconciliation",
]
