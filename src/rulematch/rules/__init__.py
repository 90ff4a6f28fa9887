"""
Rule snapshots and the decoders that build them from API documents.
"""

from rulematch.rules.documents import (
    CONFIGURATION_SOURCE,
    EVALUATION_SOURCE,
    ConfigurationGroupDTO,
    ConfigurationRuleDTO,
    EvaluationGroupDTO,
    EvaluationRuleDTO,
    load_document,
    parse_configuration_groups,
    parse_evaluation_groups,
)
from rulematch.rules.models import Rule, RuleGroup, RuleKind

__all__ = [
    # Models
    "Rule",
    "RuleGroup",
    "RuleKind",
    # Documents
    "EvaluationRuleDTO",
    "EvaluationGroupDTO",
    "ConfigurationRuleDTO",
    "ConfigurationGroupDTO",
    "EVALUATION_SOURCE",
    "CONFIGURATION_SOURCE",
    "parse_evaluation_groups",
    "parse_configuration_groups",
    "load_document",
]
