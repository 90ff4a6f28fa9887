"""
Match outcomes for the tiered rule matcher.

The public matchers collapse an outcome to ``Rule | None``; the outcome keeps
the tier that decided it for debugging and reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from rulematch.rules.models import Rule


class MatchKind(Enum):
    """How a match was decided (or why none was made)."""

    NAME = "name"  # Only one candidate shares the name
    FINGERPRINT = "fingerprint"  # Name + labels + annotations
    QUERY = "query"  # Name + labels + annotations + canonical query
    AMBIGUOUS = "ambiguous"  # Several candidates survive every tier
    NO_CANDIDATE = "no_candidate"  # Nothing shares the name, or labels differ


@dataclass(frozen=True)
class RuleMatch:
    """Result of matching one rule against a candidate group."""

    rule: Rule  # The rule being located
    match: Rule | None  # Counterpart from the candidate group
    kind: MatchKind
    candidates: int  # Survivors at the deciding tier

    @property
    def found(self) -> bool:
        """Whether a counterpart was found."""
        return self.match is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "rule": self.rule.name,
            "match": self.match.name if self.match is not None else None,
            "kind": self.kind.value,
            "candidates": self.candidates,
            "found": self.found,
        }


def matched(rule: Rule, match: Rule, kind: MatchKind) -> RuleMatch:
    return RuleMatch(rule=rule, match=match, kind=kind, candidates=1)


def unmatched(rule: Rule, kind: MatchKind, candidates: int = 0) -> RuleMatch:
    return RuleMatch(rule=rule, match=None, kind=kind, candidates=candidates)
