"""
Rule models shared by both rule sources.

A Rule is a read-only snapshot built from one API response. Rules compare by
identity: two rules that agree on every field are still distinct members of
their group, and either may be matched independently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RuleKind(Enum):
    """Kind of Prometheus-style rule."""

    ALERTING = "alerting"
    RECORDING = "recording"


@dataclass(frozen=True, eq=False)
class Rule:
    """Alerting or recording rule, from either the evaluation or the configuration API."""

    name: str  # Alert name or recorded series; not unique within a group
    query: str = ""  # Query expression text
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)  # Alerting rules only
    kind: RuleKind = RuleKind.ALERTING

    # "evaluation" or "configuration"; informational only
    source: str = ""

    # Decoded payload the rule was built from; never fingerprinted
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def content_key(self) -> tuple[Any, ...]:
        """Hashable key over every fingerprinted field."""
        return (
            self.name,
            tuple(sorted(self.labels.items())),
            tuple(sorted(self.annotations.items())),
            self.query,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "query": self.query,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "source": self.source,
        }


@dataclass(frozen=True)
class RuleGroup:
    """Ordered rules sharing a namespace and group name."""

    namespace: str
    name: str
    rules: tuple[Rule, ...] = ()

    @property
    def identity(self) -> tuple[str, str]:
        """(namespace, name) key used to pair groups across sources."""
        return (self.namespace, self.name)

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)
