"""Tests for rule document decoding."""

import json

import pytest
from rulematch.core.errors import ConfigurationError, RuleDocumentError
from rulematch.rules import (
    ConfigurationRuleDTO,
    RuleKind,
    load_document,
    parse_configuration_groups,
    parse_evaluation_groups,
)

EVALUATION_RESPONSE = {
    "status": "success",
    "data": {
        "groups": [
            {
                "name": "api",
                "file": "production",
                "interval": 60,
                "rules": [
                    {
                        "type": "alerting",
                        "name": "HighErrorRate",
                        "query": 'rate(errors{job="api"}[5m]) > 1',
                        "labels": {"severity": "page"},
                        "annotations": {"summary": "Errors"},
                        "health": "ok",
                        "state": "inactive",
                        "duration": 300,
                    },
                    {
                        "type": "recording",
                        "name": "job:errors:rate5m",
                        "query": "sum by (job) (rate(errors[5m]))",
                        "labels": None,
                        "health": "ok",
                    },
                ],
            }
        ]
    },
}

CONFIGURATION_RESPONSE = {
    "production": [
        {
            "name": "api",
            "interval": "1m",
            "rules": [
                {
                    "alert": "HighErrorRate",
                    "expr": "rate(errors{job='api'}[5m]) > 1",
                    "for": "5m",
                    "labels": {"severity": "page", "tier": 1},
                    "annotations": {"summary": "Errors"},
                },
                {"record": "job:errors:rate5m", "expr": "sum by (job) (rate(errors[5m]))"},
            ],
        }
    ]
}


class TestParseEvaluationGroups:
    """Tests for parse_evaluation_groups()."""

    def test_full_envelope(self):
        """Test decoding a complete API response."""
        groups = parse_evaluation_groups(EVALUATION_RESPONSE)

        assert len(groups) == 1
        group = groups[0]
        assert group.identity == ("production", "api")
        assert [rule.name for rule in group] == ["HighErrorRate", "job:errors:rate5m"]

        alert, record = group.rules
        assert alert.kind is RuleKind.ALERTING
        assert alert.labels == {"severity": "page"}
        assert alert.annotations == {"summary": "Errors"}
        assert alert.source == "evaluation"
        assert alert.raw["state"] == "inactive"
        assert alert.raw["duration"] == 300
        assert record.kind is RuleKind.RECORDING
        assert record.labels == {}

    def test_data_object_and_bare_list(self):
        """Test the accepted payload shapes."""
        data = EVALUATION_RESPONSE["data"]

        assert len(parse_evaluation_groups(data)) == 1
        assert len(parse_evaluation_groups(data["groups"])) == 1

    def test_empty_groups(self):
        """Test an empty response."""
        assert parse_evaluation_groups({"status": "success", "data": {"groups": []}}) == []

    def test_null_rules(self):
        """Test a group with null rules."""
        groups = parse_evaluation_groups([{"name": "g", "file": "ns", "rules": None}])
        assert len(groups[0]) == 0

    def test_recording_annotations_are_dropped(self):
        """Test that recording rules carry no annotations."""
        groups = parse_evaluation_groups(
            [{"name": "g", "rules": [{"type": "recording", "name": "r", "annotations": {"a": "b"}}]}]
        )
        assert groups[0].rules[0].annotations == {}

    def test_error_status(self):
        """Test an error response from the API."""
        with pytest.raises(RuleDocumentError) as exc_info:
            parse_evaluation_groups({"status": "error", "errorType": "bad_data", "error": "boom"})

        assert exc_info.value.details == {"error": "boom", "kind": "bad_data"}

    def test_missing_groups(self):
        """Test a document with no groups list."""
        with pytest.raises(RuleDocumentError):
            parse_evaluation_groups({"status": "success", "data": {}})
        with pytest.raises(RuleDocumentError):
            parse_evaluation_groups("groups")

    def test_malformed_rule(self):
        """Test a rule with an unknown type."""
        payload = [{"name": "g", "rules": [{"type": "bogus", "name": "r"}]}]

        with pytest.raises(RuleDocumentError) as exc_info:
            parse_evaluation_groups(payload)

        assert exc_info.value.details["location"] == "groups[0]"
        assert exc_info.value.details["field"] == "rules.0.type"

    def test_group_without_name(self):
        """Test a group missing its name."""
        with pytest.raises(RuleDocumentError) as exc_info:
            parse_evaluation_groups([{"rules": []}])

        assert exc_info.value.details["field"] == "name"


class TestParseConfigurationGroups:
    """Tests for parse_configuration_groups()."""

    def test_namespaces_and_groups(self):
        """Test decoding a namespace mapping."""
        groups = parse_configuration_groups(CONFIGURATION_RESPONSE)

        assert len(groups) == 1
        alert, record = groups[0].rules
        assert groups[0].identity == ("production", "api")
        assert alert.name == "HighErrorRate"
        assert alert.kind is RuleKind.ALERTING
        assert alert.query == "rate(errors{job='api'}[5m]) > 1"
        assert alert.labels == {"severity": "page", "tier": "1"}
        assert alert.source == "configuration"
        assert alert.raw["for"] == "5m"
        assert record.name == "job:errors:rate5m"
        assert record.kind is RuleKind.RECORDING

    def test_empty_document(self):
        """Test empty YAML documents."""
        assert parse_configuration_groups(None) == []
        assert parse_configuration_groups({}) == []

    def test_not_a_mapping(self):
        """Test a document that is not a namespace mapping."""
        with pytest.raises(RuleDocumentError):
            parse_configuration_groups([{"name": "g"}])

    def test_namespace_not_a_list(self):
        """Test a namespace holding a single group."""
        with pytest.raises(RuleDocumentError) as exc_info:
            parse_configuration_groups({"ns": {"name": "g"}})

        assert exc_info.value.details == {"namespace": "ns"}

    def test_rule_without_alert_or_record(self):
        """Test rules that are neither alerting nor recording."""
        payload = {"ns": [{"name": "g", "rules": [{"expr": "up"}]}]}

        with pytest.raises(RuleDocumentError) as exc_info:
            parse_configuration_groups(payload)

        assert exc_info.value.details["namespace"] == "ns"
        assert exc_info.value.details["group"] == "g"

    def test_malformed_group(self):
        """Test a group whose rules are not a list."""
        with pytest.raises(RuleDocumentError) as exc_info:
            parse_configuration_groups({"ns": [{"name": "g", "rules": "up"}]})

        assert exc_info.value.details["location"] == "ns[0]"

    def test_for_alias(self):
        """Test that the duration is populated by alias or by name."""
        assert ConfigurationRuleDTO.model_validate({"alert": "a", "for": "5m"}).duration == "5m"
        assert ConfigurationRuleDTO(alert="a", duration="1m").duration == "1m"


class TestLoadDocument:
    """Tests for load_document()."""

    def test_yaml(self, tmp_path):
        """Test loading YAML."""
        path = tmp_path / "rules.yaml"
        path.write_text("ns:\n  - name: g\n    rules: []\n")

        assert load_document(path) == {"ns": [{"name": "g", "rules": []}]}

    def test_json(self, tmp_path):
        """Test loading JSON through the YAML loader."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(EVALUATION_RESPONSE))

        assert load_document(str(path)) == EVALUATION_RESPONSE

    def test_missing_file(self, tmp_path):
        """Test an unreadable path."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_document(tmp_path / "missing.yaml")

        assert exc_info.value.details["path"].endswith("missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test a syntax error."""
        path = tmp_path / "bad.yaml"
        path.write_text("ns: [unclosed\n")

        with pytest.raises(RuleDocumentError):
            load_document(path)
