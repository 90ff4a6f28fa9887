"""Tests for the single-rule matcher."""

from unittest.mock import patch

from rulematch.matching import MatchKind, fingerprint, match_rule, resolve_rule
from rulematch.rules import Rule, RuleGroup, RuleKind


def _group(*rules: Rule) -> RuleGroup:
    return RuleGroup(namespace="ns", name="group", rules=rules)


class TestNameTier:
    """Tests for matching by name alone."""

    def test_unique_name(self):
        """Test that a single same-name candidate matches without fingerprinting."""
        target = Rule(name="DiskFull", query="disk > 90")
        group = _group(Rule(name="CPUHigh", query="cpu > 90"), target)
        rule = Rule(name="DiskFull", query="something else entirely", labels={"x": "y"})

        with patch("rulematch.matching.fingerprints.fingerprint", wraps=fingerprint) as spy:
            outcome = resolve_rule(group, rule)

        assert outcome.match is target
        assert outcome.kind is MatchKind.NAME
        spy.assert_not_called()

    def test_no_candidate(self):
        """Test that an unknown name does not match."""
        group = _group(Rule(name="CPUHigh"))
        outcome = resolve_rule(group, Rule(name="DiskFull"))

        assert outcome.match is None
        assert outcome.kind is MatchKind.NO_CANDIDATE
        assert not outcome.found

    def test_empty_group(self):
        """Test matching against an empty group."""
        assert match_rule(_group(), Rule(name="DiskFull")) is None

    def test_accepts_plain_iterables(self):
        """Test that any iterable of rules is a valid group."""
        target = Rule(name="a")
        assert match_rule([target], Rule(name="a")) is target


class TestFingerprintTier:
    """Tests for the name + labels + annotations tier."""

    def test_labels_disambiguate(self):
        """Test two same-name rules separated by labels."""
        prod = Rule(name="HighLatency", labels={"env": "prod"})
        staging = Rule(name="HighLatency", labels={"env": "staging"})
        outcome = resolve_rule(_group(prod, staging), Rule(name="HighLatency", labels={"env": "staging"}))

        assert outcome.match is staging
        assert outcome.kind is MatchKind.FINGERPRINT

    def test_annotations_disambiguate(self):
        """Test two same-name rules separated by annotations."""
        first = Rule(name="a", annotations={"summary": "one"})
        second = Rule(name="a", annotations={"summary": "two"})

        assert match_rule(_group(first, second), Rule(name="a", annotations={"summary": "one"})) is first

    def test_no_label_match(self):
        """Test that same-name rules with other labels do not match."""
        group = _group(Rule(name="a", labels={"env": "x"}), Rule(name="a", labels={"env": "y"}))
        outcome = resolve_rule(group, Rule(name="a", labels={"env": "z"}))

        assert outcome.match is None
        assert outcome.kind is MatchKind.NO_CANDIDATE


class TestQueryTier:
    """Tests for the query-inclusive tier."""

    def test_query_disambiguates(self):
        """Test two rules differing only in query."""
        first = Rule(name="a", query='up{job="api"} == 0')
        second = Rule(name="a", query='up{job="db"} == 0')
        outcome = resolve_rule(_group(first, second), Rule(name="a", query="up{ job = 'db' }==0"))

        assert outcome.match is second
        assert outcome.kind is MatchKind.QUERY

    def test_recording_rule_with_comments(self):
        """Test an authored recording query against its evaluated form."""
        authored = Rule(
            name="job:errors:rate5m",
            query="# error ratio\nsum by (job, env) (rate(errors{code=~'5..', env!=''}[5m]))",
            kind=RuleKind.RECORDING,
        )
        evaluated = Rule(
            name="job:errors:rate5m",
            query='sum by(env,job)(rate(errors{env!="",code=~"5.."}[5m]))',
        )
        other = Rule(name="job:errors:rate5m", query="sum by (job) (rate(errors[5m]))")

        assert match_rule(_group(other, evaluated), authored) is evaluated

    def test_identical_candidates_are_ambiguous(self):
        """Test that exact duplicates never match."""
        group = _group(Rule(name="a", query="up"), Rule(name="a", query="up"))
        outcome = resolve_rule(group, Rule(name="a", query="up"))

        assert outcome.match is None
        assert outcome.kind is MatchKind.AMBIGUOUS
        assert outcome.candidates == 2

    def test_no_query_match_is_ambiguous(self):
        """Test label-identical rules whose queries all differ from the target."""
        group = _group(Rule(name="a", query="x"), Rule(name="a", query="y"))
        outcome = resolve_rule(group, Rule(name="a", query="z"))

        assert outcome.kind is MatchKind.AMBIGUOUS
        assert outcome.candidates == 2

    def test_ambiguity_is_logged(self):
        """Test the debug event for ambiguous rules."""
        group = _group(Rule(name="a"), Rule(name="a"))

        with patch("rulematch.matching.single.logger") as mock_logger:
            resolve_rule(group, Rule(name="a"))

        mock_logger.debug.assert_called_once()
        assert mock_logger.debug.call_args.args[0] == "rule_match_ambiguous"


class TestRuleMatch:
    """Tests for RuleMatch serialization."""

    def test_to_dict(self):
        """Test outcome serialization."""
        target = Rule(name="a")
        outcome = resolve_rule(_group(target), Rule(name="a"))

        assert outcome.to_dict() == {
            "rule": "a",
            "match": "a",
            "kind": "name",
            "candidates": 1,
            "found": True,
        }
