"""
Decoding of rule documents from the two rule APIs.

Evaluation API (Prometheus-style ``/api/v1/rules``)::

    {"status": "success",
     "data": {"groups": [{"name": "g", "file": "ns",
                          "rules": [{"type": "alerting", "name": "HighLatency",
                                     "query": "...", "labels": {...}}]}]}}

Configuration API (ruler-style, namespace to groups)::

    ns:
      - name: g
        rules:
          - alert: HighLatency
            expr: ...
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from rulematch.core.errors import ConfigurationError, RuleDocumentError
from rulematch.rules.models import Rule, RuleGroup, RuleKind

logger = structlog.get_logger()

EVALUATION_SOURCE = "evaluation"
CONFIGURATION_SOURCE = "configuration"


def _string_map(value: Any) -> Any:
    """Accept null maps and non-string scalar values as YAML authors write them."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return {str(k): "" if v is None else str(v) for k, v in value.items()}
    return value


class EvaluationRuleDTO(BaseModel):
    """A rule as reported by the evaluation API."""

    name: str = Field(..., description="Alert name or recorded series")
    query: str = Field("", description="Query as normalized by the evaluator")
    type: RuleKind = Field(RuleKind.ALERTING, description="alerting or recording")
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    health: Optional[str] = Field(None, description="Evaluation health")
    state: Optional[str] = Field(None, description="Alert state (alerting rules only)")

    normalize_maps = field_validator("labels", "annotations", mode="before")(_string_map)

    class Config:
        extra = "allow"

    def to_rule(self) -> Rule:
        return Rule(
            name=self.name,
            query=self.query,
            labels=dict(self.labels),
            annotations=dict(self.annotations) if self.type is RuleKind.ALERTING else {},
            kind=self.type,
            source=EVALUATION_SOURCE,
            raw=self.model_dump(mode="json"),
        )


class EvaluationGroupDTO(BaseModel):
    """A rule group as reported by the evaluation API."""

    name: str
    file: str = Field("", description="Namespace the group was loaded from")
    rules: List[EvaluationRuleDTO] = Field(default_factory=list)

    class Config:
        extra = "allow"

    @field_validator("rules", mode="before")
    @classmethod
    def null_rules_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class ConfigurationRuleDTO(BaseModel):
    """A rule as stored by the configuration API."""

    alert: Optional[str] = None
    record: Optional[str] = None
    expr: str = ""
    duration: Optional[str] = Field(None, alias="for")
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    normalize_maps = field_validator("labels", "annotations", mode="before")(_string_map)

    class Config:
        extra = "allow"
        populate_by_name = True

    def to_rule(self) -> Rule:
        if self.alert:
            name, kind = self.alert, RuleKind.ALERTING
        elif self.record:
            name, kind = self.record, RuleKind.RECORDING
        else:
            raise RuleDocumentError(
                "Configuration rule has neither 'alert' nor 'record'",
                {"keys": ", ".join(sorted(self.model_dump(by_alias=True, exclude_none=True)))},
            )
        return Rule(
            name=name,
            query=self.expr,
            labels=dict(self.labels),
            annotations=dict(self.annotations) if kind is RuleKind.ALERTING else {},
            kind=kind,
            source=CONFIGURATION_SOURCE,
            raw=self.model_dump(mode="json", by_alias=True, exclude_none=True),
        )


class ConfigurationGroupDTO(BaseModel):
    """A rule group as stored by the configuration API."""

    name: str
    interval: Optional[str] = None
    rules: List[ConfigurationRuleDTO] = Field(default_factory=list)

    class Config:
        extra = "allow"

    @field_validator("rules", mode="before")
    @classmethod
    def null_rules_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def parse_evaluation_groups(payload: Any) -> list[RuleGroup]:
    """
    Decode an evaluation API response into rule groups.

    Accepts the full ``{"status", "data"}`` envelope, the ``data`` object, or
    a bare list of groups.

    Raises:
        RuleDocumentError: If the payload is malformed or reports an error
    """
    if isinstance(payload, dict):
        if payload.get("status") == "error":
            raise RuleDocumentError(
                "Evaluation API reported an error",
                {"error": payload.get("error", "unknown"), "kind": payload.get("errorType", "")},
            )
        payload = payload.get("data", payload)
        if isinstance(payload, dict):
            payload = payload.get("groups")

    if not isinstance(payload, list):
        raise RuleDocumentError("Evaluation document has no 'groups' list")

    groups = []
    for index, raw_group in enumerate(payload):
        dto = _validate(EvaluationGroupDTO, raw_group, f"groups[{index}]")
        rules = tuple(rule.to_rule() for rule in dto.rules)
        groups.append(RuleGroup(namespace=dto.file, name=dto.name, rules=rules))

    logger.debug("evaluation_groups_decoded", groups=len(groups))
    return groups


def parse_configuration_groups(payload: Any) -> list[RuleGroup]:
    """
    Decode a configuration API response (namespace -> groups) into rule groups.

    Raises:
        RuleDocumentError: If the payload is malformed or holds a rule that is
            neither an alerting nor a recording rule
    """
    if payload is None:
        return []
    if not isinstance(payload, dict):
        raise RuleDocumentError("Configuration document must map namespaces to rule groups")

    groups = []
    for namespace, raw_groups in payload.items():
        if not isinstance(raw_groups, list):
            raise RuleDocumentError(
                "Namespace must hold a list of rule groups", {"namespace": namespace}
            )
        for index, raw_group in enumerate(raw_groups):
            location = f"{namespace}[{index}]"
            dto = _validate(ConfigurationGroupDTO, raw_group, location)
            try:
                rules = tuple(rule.to_rule() for rule in dto.rules)
            except RuleDocumentError as e:
                e.details.update({"namespace": str(namespace), "group": dto.name})
                raise
            groups.append(RuleGroup(namespace=str(namespace), name=dto.name, rules=rules))

    logger.debug("configuration_groups_decoded", groups=len(groups))
    return groups


def load_document(path: str | Path) -> Any:
    """
    Load a YAML or JSON rule document.

    Raises:
        ConfigurationError: If the file cannot be read
        RuleDocumentError: If the file is not valid YAML/JSON
    """
    path = Path(path)
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read rule document: {e.strerror}", {"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise RuleDocumentError(f"Invalid YAML/JSON: {e}", {"path": str(path)}) from e


def _validate(model: type[BaseModel], data: Any, location: str) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_path = ".".join(str(part) for part in first["loc"])
        raise RuleDocumentError(
            f"Malformed rule group at {location}: {first['msg']}",
            {"location": location, "field": field_path, "errors": e.error_count()},
        ) from e
