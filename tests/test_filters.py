"""
Tests for the filter engine.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cloudsweep.core.exceptions import FilterEvaluationError
from cloudsweep.core.filters import (
    FilterRule,
    ResourceTypeRules,
    TagMatch,
    compile_patterns,
    should_include,
)

NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


class TestTagMatch:
    """Tests for TagMatch."""

    def test_key_only_matches_any_value(self):
        """Test that a key-only match ignores the value."""
        assert TagMatch("team").matches({"team": "qa"})
        assert TagMatch("team").matches({"team": ""})
        assert not TagMatch("team").matches({"owner": "qa"})

    def test_key_and_value(self):
        """Test that a key-value match requires the exact value."""
        assert TagMatch("env", "dev").matches({"env": "dev"})
        assert not TagMatch("env", "dev").matches({"env": "prod"})


class TestShouldInclude:
    """Tests for should_include."""

    def test_no_rules_includes_everything(self, make_candidate):
        """Test default allow with no rules configured."""
        assert should_include(make_candidate("a"), None)
        assert should_include(make_candidate("a"), ResourceTypeRules())

    def test_exclude_name_pattern(self, make_candidate):
        """Test exclusion on the label."""
        rules = ResourceTypeRules(exclude=FilterRule(names_regex=compile_patterns(["^prod-"])))

        assert not should_include(make_candidate("lb-1", label="prod-api"), rules)
        assert should_include(make_candidate("lb-2", label="dev-api"), rules)

    def test_name_falls_back_to_identifier(self, make_candidate):
        """Test that the identifier is matched when there is no label."""
        rules = ResourceTypeRules(exclude=FilterRule(names_regex=compile_patterns(["^keep-"])))
        assert not should_include(make_candidate("keep-me"), rules)

    def test_patterns_are_unanchored(self, make_candidate):
        """Test that patterns match anywhere in the name."""
        rules = ResourceTypeRules(exclude=FilterRule(names_regex=compile_patterns(["prod"])))
        assert not should_include(make_candidate("x", label="my-prod-db"), rules)

    def test_exclusion_wins_over_inclusion(self, make_candidate):
        """Test that a matching exclusion beats a matching inclusion."""
        rules = ResourceTypeRules(
            include=FilterRule(names_regex=compile_patterns(["api"])),
            exclude=FilterRule(names_regex=compile_patterns(["^prod-"])),
        )
        assert not should_include(make_candidate("x", label="prod-api"), rules)
        assert should_include(make_candidate("y", label="dev-api"), rules)

    def test_include_rules_require_a_match(self, make_candidate):
        """Test that include rules reject non-matching candidates."""
        rules = ResourceTypeRules(include=FilterRule(names_regex=compile_patterns(["^ci-"])))

        assert should_include(make_candidate("x", label="ci-runner"), rules)
        assert not should_include(make_candidate("y", label="web"), rules)

    def test_exclude_time_after(self, make_candidate):
        """Test that resources newer than the cutoff are excluded."""
        rules = ResourceTypeRules(exclude=FilterRule(time_after=NOW - timedelta(hours=1)))

        fresh = make_candidate("fresh", created_at=NOW)
        old = make_candidate("old", created_at=NOW - timedelta(days=2))

        assert not should_include(fresh, rules)
        assert should_include(old, rules)

    def test_time_after_is_strict(self, make_candidate):
        """Test that a time equal to the cutoff is not excluded."""
        rules = ResourceTypeRules(exclude=FilterRule(time_after=NOW))
        assert should_include(make_candidate("x", created_at=NOW), rules)

    def test_exclude_time_before(self, make_candidate):
        """Test that resources older than the cutoff are excluded."""
        rules = ResourceTypeRules(exclude=FilterRule(time_before=NOW - timedelta(days=1)))

        assert not should_include(make_candidate("old", created_at=NOW - timedelta(days=3)), rules)
        assert should_include(make_candidate("new", created_at=NOW), rules)

    def test_effective_time_overrides_created_at(self, make_candidate):
        """Test that an explicit effective time is used for time rules."""
        rules = ResourceTypeRules(exclude=FilterRule(time_after=NOW - timedelta(hours=1)))
        candidate = make_candidate("x")

        assert not should_include(candidate, rules, effective_time=NOW)
        assert should_include(candidate, rules, effective_time=NOW - timedelta(days=1))

    def test_missing_time_never_matches_time_rules(self, make_candidate):
        """Test that candidates without age data skip time rules."""
        rules = ResourceTypeRules(
            include=FilterRule(time_before=NOW),
            exclude=FilterRule(time_after=NOW - timedelta(days=365)),
        )
        assert not should_include(make_candidate("x"), rules)

    def test_naive_times_are_treated_as_utc(self, make_candidate):
        """Test comparison between naive and aware datetimes."""
        rules = ResourceTypeRules(exclude=FilterRule(time_after=datetime(2024, 1, 15, 10, 0, 0)))
        assert not should_include(make_candidate("x", created_at=NOW), rules)

    def test_exclude_tag_key(self, make_candidate):
        """Test exclusion on tag key presence."""
        rules = ResourceTypeRules(exclude=FilterRule(tags=[TagMatch("keep")]))

        assert not should_include(make_candidate("x", tags={"keep": "anything"}), rules)
        assert should_include(make_candidate("y", tags={"team": "qa"}), rules)

    def test_exclude_tag_key_and_value(self, make_candidate):
        """Test exclusion on tag key and value."""
        rules = ResourceTypeRules(exclude=FilterRule(tags=[TagMatch("env", "prod")]))

        assert not should_include(make_candidate("x", tags={"env": "prod"}), rules)
        assert should_include(make_candidate("y", tags={"env": "dev"}), rules)

    def test_default_opt_out_tag(self, make_candidate):
        """Test that cloud-nuke-excluded=true excludes by default."""
        assert not should_include(
            make_candidate("x", tags={"cloud-nuke-excluded": "true"}), ResourceTypeRules()
        )
        assert not should_include(
            make_candidate("y", tags={"cloud-nuke-excluded": "TRUE"}), ResourceTypeRules()
        )
        assert should_include(
            make_candidate("z", tags={"cloud-nuke-excluded": "false"}), ResourceTypeRules()
        )

    def test_explicit_tag_rules_replace_default_opt_out(self, make_candidate):
        """Test that configured exclusion tags disable the opt-out tag."""
        rules = ResourceTypeRules(exclude=FilterRule(tags=[TagMatch("keep")]))
        assert should_include(make_candidate("x", tags={"cloud-nuke-excluded": "true"}), rules)

    def test_include_tag(self, make_candidate):
        """Test inclusion on tag."""
        rules = ResourceTypeRules(include=FilterRule(tags=[TagMatch("sweep", "yes")]))

        assert should_include(make_candidate("x", tags={"sweep": "yes"}), rules)
        assert not should_include(make_candidate("y", tags={"sweep": "no"}), rules)


class TestCompilePatterns:
    """Tests for compile_patterns."""

    def test_compiles_valid_patterns(self):
        """Test compiling valid patterns."""
        patterns = compile_patterns(["^a", "b$"])
        assert len(patterns) == 2
        assert patterns[0].search("abc")

    def test_invalid_pattern_raises(self):
        """Test that a malformed pattern fails at configuration time."""
        with pytest.raises(FilterEvaluationError) as exc_info:
            compile_patterns(["([a-z"], resource_type="elb")

        assert exc_info.value.details["pattern"] == "([a-z"
        assert exc_info.value.details["resource_type"] == "elb"

    def test_non_string_pattern_raises(self):
        """Test that non-string patterns are rejected."""
        with pytest.raises(FilterEvaluationError):
            compile_patterns([42])
