"""
Reconciliation of whole rule documents.

Pairs configuration groups with evaluation groups by (namespace, group name)
and matches the rules of each pair. Configuration rules play group A and
evaluation rules group B, so ``unmatched_a`` are configured rules that are not
evaluating and ``unmatched_b`` are evaluating rules with no stored definition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from rulematch.matching.fingerprints import FingerprintCache
from rulematch.matching.group import GroupMatchResult, match_groups
from rulematch.query import QueryCanonicalizer
from rulematch.rules.models import Rule, RuleGroup

logger = structlog.get_logger()


@dataclass
class GroupReconciliation:
    """Match result for one configuration/evaluation group pair."""

    namespace: str
    name: str
    result: GroupMatchResult

    @property
    def configuration_only(self) -> list[Rule]:
        return self.result.unmatched_a

    @property
    def evaluation_only(self) -> list[Rule]:
        return self.result.unmatched_b

    def to_dict(self) -> dict[str, Any]:
        return {"namespace": self.namespace, "group": self.name, **self.result.to_dict()}


@dataclass
class ReconcileReport:
    """Reconciliation of a configuration document against an evaluation document."""

    groups: list[GroupReconciliation] = field(default_factory=list)
    configuration_only_groups: list[RuleGroup] = field(default_factory=list)
    evaluation_only_groups: list[RuleGroup] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return sum(len(group.result.matches) for group in self.groups)

    @property
    def configuration_only(self) -> int:
        """Configured rules with no evaluating counterpart, orphan groups included."""
        paired = sum(len(group.configuration_only) for group in self.groups)
        return paired + sum(len(group) for group in self.configuration_only_groups)

    @property
    def evaluation_only(self) -> int:
        """Evaluating rules with no stored definition, orphan groups included."""
        paired = sum(len(group.evaluation_only) for group in self.groups)
        return paired + sum(len(group) for group in self.evaluation_only_groups)

    @property
    def has_orphans(self) -> bool:
        return self.configuration_only > 0 or self.evaluation_only > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "summary": {
                "matched": self.matched,
                "configuration_only": self.configuration_only,
                "evaluation_only": self.evaluation_only,
            },
            "groups": [group.to_dict() for group in self.groups],
            "configuration_only_groups": [
                {"namespace": g.namespace, "group": g.name, "rules": [r.name for r in g.rules]}
                for g in self.configuration_only_groups
            ],
            "evaluation_only_groups": [
                {"namespace": g.namespace, "group": g.name, "rules": [r.name for r in g.rules]}
                for g in self.evaluation_only_groups
            ],
        }


def reconcile(
    configuration_groups: Iterable[RuleGroup],
    evaluation_groups: Iterable[RuleGroup],
    canonicalizer: QueryCanonicalizer | None = None,
    cache: FingerprintCache | None = None,
) -> ReconcileReport:
    """
    Reconcile configuration groups against evaluation groups.

    Args:
        configuration_groups: Groups from the configuration API (group A side)
        evaluation_groups: Groups from the evaluation API (group B side)
        canonicalizer: Query canonicalizer for the query tier
        cache: Optional fingerprint cache shared across groups

    Returns:
        ReconcileReport in configuration order
    """
    report = ReconcileReport()
    by_identity: dict[tuple[str, str], RuleGroup] = {}
    for group in evaluation_groups:
        if group.identity in by_identity:
            logger.debug("duplicate_evaluation_group", namespace=group.namespace, group=group.name)
            report.evaluation_only_groups.append(group)
            continue
        by_identity[group.identity] = group

    for group in configuration_groups:
        counterpart = by_identity.pop(group.identity, None)
        if counterpart is None:
            report.configuration_only_groups.append(group)
            continue
        result = match_groups(group.rules, counterpart.rules, canonicalizer, cache)
        report.groups.append(GroupReconciliation(group.namespace, group.name, result))

    report.evaluation_only_groups.extend(by_identity.values())
    return report
