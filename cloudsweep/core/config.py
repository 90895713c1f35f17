"""
Rule Configuration Loader
=========================

Loads per-resource-type filter rules from a YAML document and validates
them with pydantic models.

File Format
-----------
::

    elb:
      include:
        names_regex: ["^test-"]
      exclude:
        names_regex: ["prod"]
        time_after: "2024-01-01T00:00:00Z"
        tag: {key: keep, value: "true"}

    security-group:
      exclude:
        tag: do-not-delete

CamelCase spellings (``IncludeRule``, ``ExcludeRule``, ``NamesRegExp``,
``TimeAfter``, ``TimeBefore``, ``Tag``) are accepted as well, and so are
the section names used by cloud-nuke config files (``ELBv1``,
``EC2IPAMPool``, ``OpenSearchDomain``). Unrecognized rule keys are
ignored. Sections for unknown resource types are skipped with a warning.
Malformed values fail at load time with :class:`FilterEvaluationError`.

Classes
-------
SweepConfig
    Rule sets keyed by resource-type name.
RuleModel, ResourceTypeRulesModel, RuleFileModel
    Validation schema for the rule file.

Functions
---------
load_config
    Read a YAML file into a :class:`SweepConfig`.
parse_config
    Build a :class:`SweepConfig` from already-parsed data.
parse_duration
    Parse ``30m``, ``24h``, ``7d``, ``1d12h`` style durations.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Pattern, Union

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    ValidationError,
    field_validator,
)

from cloudsweep.core.exceptions import ConfigError, FilterEvaluationError
from cloudsweep.core.filters import FilterRule, ResourceTypeRules, TagMatch

logger = logging.getLogger(__name__)

# cloud-nuke section names for the resource types registered here
SECTION_ALIASES = {
    "ELBv1": "elb",
    "EC2IPAMPool": "ipam-pool",
    "OpenSearchDomain": "opensearch-domain",
}

_DURATION_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}
_DURATION_RE = re.compile(r"(\d+)([smhdw])")


# =============================================================================
# Rule file schema
# =============================================================================


class TagRuleModel(BaseModel):
    """A tag key, optionally with the exact value it must carry."""

    model_config = ConfigDict(extra="ignore")

    key: str = Field(validation_alias=AliasChoices("key", "Key"))
    value: Optional[str] = Field(default=None, validation_alias=AliasChoices("value", "Value"))

    @field_validator("key", "value", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Any:
        # YAML turns `value: true` or `value: 1` into non-strings
        if v is None or isinstance(v, (dict, list)):
            return v
        return str(v)


class RuleModel(BaseModel):
    """One include or exclude rule."""

    model_config = ConfigDict(extra="ignore")

    names_regex: List[Pattern] = Field(
        default_factory=list,
        validation_alias=AliasChoices("names_regex", "NamesRegExp", "names_regexp"),
    )
    time_after: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("time_after", "TimeAfter")
    )
    time_before: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("time_before", "TimeBefore")
    )
    tags: List[TagRuleModel] = Field(
        default_factory=list,
        validation_alias=AliasChoices("tags", "tag", "Tags", "Tag"),
    )

    @field_validator("names_regex", mode="before")
    @classmethod
    def _pattern_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("time_after", "time_before", mode="before")
    @classmethod
    def _date_to_midnight(cls, v: Any) -> Any:
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime(v.year, v.month, v.day)
        return v

    @field_validator("time_after", "time_before")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_list(cls, v: Any) -> Any:
        """Accept a bare key, a key/value mapping, a tag-to-value mapping, or a list of these."""
        if v is None:
            return []
        if isinstance(v, (str, dict)):
            v = [v]
        if not isinstance(v, list):
            return v

        items: List[Any] = []
        for item in v:
            if isinstance(item, str):
                items.append({"key": item})
            elif isinstance(item, dict) and not item.keys() & {"key", "Key"}:
                items.extend({"key": k, "value": val} for k, val in item.items())
            else:
                items.append(item)
        return items

    def to_filter_rule(self) -> FilterRule:
        return FilterRule(
            names_regex=list(self.names_regex),
            time_after=self.time_after,
            time_before=self.time_before,
            tags=[TagMatch(key=t.key, value=t.value) for t in self.tags],
        )


class ResourceTypeRulesModel(BaseModel):
    """Include and exclude rules for one resource type."""

    model_config = ConfigDict(extra="ignore")

    include: RuleModel = Field(
        default_factory=RuleModel,
        validation_alias=AliasChoices("include", "IncludeRule", "include_rule"),
    )
    exclude: RuleModel = Field(
        default_factory=RuleModel,
        validation_alias=AliasChoices("exclude", "ExcludeRule", "exclude_rule"),
    )

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _empty_rule(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_rules(self) -> ResourceTypeRules:
        return ResourceTypeRules(
            include=self.include.to_filter_rule(),
            exclude=self.exclude.to_filter_rule(),
        )


class RuleFileModel(RootModel[Dict[str, ResourceTypeRulesModel]]):
    """Rule sections keyed by registered resource-type name."""


# =============================================================================
# SweepConfig
# =============================================================================


@dataclass
class SweepConfig:
    """
    Filter rules keyed by resource-type name.

    Resource types without an entry get an empty rule set, which
    includes every candidate.
    """

    resource_types: Dict[str, ResourceTypeRules] = field(default_factory=dict)

    def rules_for(self, resource_type: str) -> ResourceTypeRules:
        rules = self.resource_types.get(resource_type)
        if rules is None:
            rules = ResourceTypeRules()
            self.resource_types[resource_type] = rules
        return rules

    def apply_age_overrides(
        self,
        resource_types: List[str],
        older_than: Optional[timedelta] = None,
        newer_than: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Apply the global age options to every listed resource type.

        ``older_than`` keeps anything newer than ``now - older_than``
        (exclusion ``time_after``). ``newer_than`` keeps anything older
        than ``now - newer_than`` (exclusion ``time_before``). The command
        line wins over the rule file; a replaced cutoff is logged at INFO.
        """
        now = now or datetime.now(timezone.utc)
        for resource_type in resource_types:
            exclude = self.rules_for(resource_type).exclude
            if older_than is not None:
                cutoff = now - older_than
                if exclude.time_after is not None and exclude.time_after != cutoff:
                    logger.info(
                        f"--older-than replaces time_after {exclude.time_after.isoformat()} "
                        f"for {resource_type}"
                    )
                exclude.time_after = cutoff
            if newer_than is not None:
                cutoff = now - newer_than
                if exclude.time_before is not None and exclude.time_before != cutoff:
                    logger.info(
                        f"--newer-than replaces time_before {exclude.time_before.isoformat()} "
                        f"for {resource_type}"
                    )
                exclude.time_before = cutoff


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration such as ``24h``, ``7d`` or ``1d12h``.

    Raises
    ------
    ConfigError
        If the text is not a valid duration.
    """
    cleaned = text.strip().lower()
    if not cleaned or _DURATION_RE.sub("", cleaned):
        raise ConfigError(
            f"Invalid duration: {text!r}",
            details={"hint": "Use values like 30m, 24h, 7d or 1d12h"},
        )
    total = timedelta()
    for amount, unit in _DURATION_RE.findall(cleaned):
        total += int(amount) * _DURATION_UNITS[unit]
    return total


def _registered_types() -> Iterable[str]:
    # Imported here: cloudsweep.resources depends on cloudsweep.core
    from cloudsweep.resources import RESOURCE_TYPES

    return RESOURCE_TYPES.keys()


def _select_sections(
    data: Mapping[str, Any],
    known_types: Iterable[str],
) -> Dict[str, Any]:
    known = set(known_types)
    sections: Dict[str, Any] = {}
    for name, section in data.items():
        if not isinstance(section, dict):
            logger.debug(f"Ignoring non-mapping config entry {name!r}")
            continue
        resource_type = SECTION_ALIASES.get(str(name), str(name))
        if resource_type not in known:
            logger.warning(
                f"Ignoring rules for unknown resource type {name!r}; "
                f"known types: {', '.join(sorted(known))}"
            )
            continue
        if resource_type in sections:
            logger.warning(f"Rules for {resource_type} given twice; {name!r} wins")
        sections[resource_type] = section
    return sections


def parse_config(
    data: Optional[Mapping[str, Any]],
    known_types: Optional[Iterable[str]] = None,
) -> SweepConfig:
    """
    Build a :class:`SweepConfig` from parsed YAML/JSON data.

    Parameters
    ----------
    data : mapping, optional
        Rule sections keyed by resource-type name.
    known_types : iterable of str, optional
        Accepted section names. Defaults to every registered resource type.

    Raises
    ------
    ConfigError
        If the root is not a mapping.
    FilterEvaluationError
        If any rule is malformed.
    """
    config = SweepConfig()
    if not data:
        return config
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration root must be a mapping")

    sections = _select_sections(
        data, known_types if known_types is not None else _registered_types()
    )
    try:
        model = RuleFileModel.model_validate(sections)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise FilterEvaluationError(
            f"Invalid rule at {location}: {first['msg']}",
            details={
                "resource_type": str(first["loc"][0]) if first["loc"] else None,
                "error_count": e.error_count(),
            },
        ) from e

    for resource_type, rules in model.root.items():
        config.resource_types[resource_type] = rules.to_rules()

    logger.debug(f"Loaded rules for {len(config.resource_types)} resource type(s)")
    return config


def load_config(path: Union[str, Path]) -> SweepConfig:
    """
    Load rules from a YAML file.

    Raises
    ------
    ConfigError
        If the file is missing or not valid YAML.
    FilterEvaluationError
        If any rule is malformed.
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Config file not found: {config_path}",
            details={"path": str(config_path)},
        ) from e
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    logger.info(f"Loaded configuration from {config_path}")
    return parse_config(data)
