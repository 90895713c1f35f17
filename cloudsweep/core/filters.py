"""
Filter Engine
=============

Pure decision function that determines whether a candidate resource is
eligible for deletion under a resource type's rule set.

Evaluation order (short-circuiting)
-----------------------------------
1. Any exclusion name pattern matches the label (or identifier) -> exclude.
2. Exclusion ``time_after`` set and the effective time is after it -> exclude.
3. Exclusion ``time_before`` set and the effective time is before it -> exclude.
4. Any exclusion tag rule matches -> exclude. Without explicit exclusion
   tag rules the opt-out tag ``cloud-nuke-excluded=true`` is honoured.
5. No inclusion rules configured -> include.
6. Otherwise include only if at least one inclusion rule matches.

Exclusion always wins. Name patterns are unanchored (``re.search``)
unless the pattern itself anchors. Candidates without an effective time
never match a time rule.

Classes
-------
TagMatch
    Match on tag key, or tag key and value.
FilterRule
    One side (include or exclude) of a rule set.
ResourceTypeRules
    Include and exclude rules for a resource type.

Functions
---------
should_include
    Decide include/exclude for a candidate.
compile_patterns
    Compile regular expressions, failing at configuration time.

Example
-------
>>> rules = ResourceTypeRules(
...     exclude=FilterRule(names_regex=compile_patterns(["^prod-"]))
... )
>>> should_include(candidate, rules)
True
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Pattern

from cloudsweep.core.exceptions import FilterEvaluationError
from cloudsweep.core.models import ResourceCandidate

DEFAULT_EXCLUDE_TAG_KEY = "cloud-nuke-excluded"
DEFAULT_EXCLUDE_TAG_VALUE = "true"


@dataclass(frozen=True)
class TagMatch:
    """
    Tag predicate: key presence, or key with an exact value.

    Parameters
    ----------
    key : str
        Tag key that must be present.
    value : str, optional
        Required tag value. ``None`` matches any value.
    """

    key: str
    value: Optional[str] = None

    def matches(self, tags: Dict[str, str]) -> bool:
        if self.key not in tags:
            return False
        return self.value is None or tags[self.key] == self.value


@dataclass
class FilterRule:
    """
    One side of a rule set.

    Parameters
    ----------
    names_regex : list of Pattern
        Compiled name patterns.
    time_after : datetime, optional
        Matches resources whose effective time is after this instant.
    time_before : datetime, optional
        Matches resources whose effective time is before this instant.
    tags : list of TagMatch
        Tag predicates.
    """

    names_regex: List[Pattern] = field(default_factory=list)
    time_after: Optional[datetime] = None
    time_before: Optional[datetime] = None
    tags: List[TagMatch] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.names_regex
            or self.time_after is not None
            or self.time_before is not None
            or self.tags
        )

    def matches_name(self, name: str) -> bool:
        return any(pattern.search(name) for pattern in self.names_regex)

    def matches_time_after(self, moment: Optional[datetime]) -> bool:
        if self.time_after is None or moment is None:
            return False
        return _as_utc(moment) > _as_utc(self.time_after)

    def matches_time_before(self, moment: Optional[datetime]) -> bool:
        if self.time_before is None or moment is None:
            return False
        return _as_utc(moment) < _as_utc(self.time_before)

    def matches_tags(self, tags: Dict[str, str]) -> bool:
        return any(tag.matches(tags) for tag in self.tags)


@dataclass
class ResourceTypeRules:
    """Include and exclude rules configured for one resource type."""

    include: FilterRule = field(default_factory=FilterRule)
    exclude: FilterRule = field(default_factory=FilterRule)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _has_default_exclude_tag(tags: Dict[str, str]) -> bool:
    value = tags.get(DEFAULT_EXCLUDE_TAG_KEY)
    return value is not None and value.strip().lower() == DEFAULT_EXCLUDE_TAG_VALUE


def should_include(
    candidate: ResourceCandidate,
    rules: Optional[ResourceTypeRules],
    effective_time: Optional[datetime] = None,
) -> bool:
    """
    Decide whether ``candidate`` is eligible for deletion.

    Parameters
    ----------
    candidate : ResourceCandidate
        The resource under evaluation.
    rules : ResourceTypeRules, optional
        Rule set for the candidate's resource type. ``None`` includes all.
    effective_time : datetime, optional
        Age timestamp to evaluate time rules against. Defaults to the
        candidate's native creation time.

    Returns
    -------
    bool
        True if the candidate should be deleted.
    """
    if effective_time is None:
        effective_time = candidate.created_at
    if rules is None:
        rules = ResourceTypeRules()

    name = candidate.display_name
    exclude = rules.exclude

    if exclude.matches_name(name):
        return False
    if exclude.matches_time_after(effective_time):
        return False
    if exclude.matches_time_before(effective_time):
        return False
    if exclude.tags:
        if exclude.matches_tags(candidate.tags):
            return False
    elif _has_default_exclude_tag(candidate.tags):
        return False

    include = rules.include
    if include.is_empty:
        return True

    return (
        include.matches_name(name)
        or include.matches_time_after(effective_time)
        or include.matches_time_before(effective_time)
        or include.matches_tags(candidate.tags)
    )


def compile_patterns(
    patterns: Iterable[str],
    resource_type: Optional[str] = None,
) -> List[Pattern]:
    """
    Compile name patterns.

    Raises
    ------
    FilterEvaluationError
        If a pattern is not a string or not a valid regular expression.
    """
    compiled = []
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise FilterEvaluationError(
                "Name pattern must be a string",
                details={"pattern": repr(pattern), "resource_type": resource_type},
            )
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise FilterEvaluationError(
                f"Invalid regular expression {pattern!r}: {e}",
                details={"pattern": pattern, "resource_type": resource_type},
            ) from e
    return compiled
