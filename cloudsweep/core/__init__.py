"""
Core Components
===============

This module provides the building blocks of a sweep:

- :class:`AWSClient` - Manages AWS connections and client creation
- :func:`should_include` - Include/exclude rule evaluation
- :class:`FirstSeenTracker` - First-seen tag reading and writing
- :class:`DeletionOrchestrator` - Sequential deletes with optional confirmation
- :class:`RegionManager` - Parallel (resource type, region) pipelines
- Exception hierarchy for error handling

Classes
-------
AWSClient
    Thread-safe AWS client wrapper with retry logic and credential management.
ResourceCandidate
    A listed resource: identifier, creation time, label and tags.
RunConfig
    Per-run settings: dry run, first-seen tagging, cancellation, clock.
FilterRule
    One include or exclude rule.
SweepConfig
    Rules for every resource type.
OutcomeLedger
    Thread-safe, append-only record of deletion outcomes.
RegionManager
    Runs pipelines across regions in parallel.
SweepRunResult
    Aggregated results of a sweep.

Exceptions
----------
CloudSweepError
    Base exception for all CloudSweep errors.
AWSClientError
    Base exception for AWS client errors.
ConfigError
    Raised when the rule configuration is invalid.
TagError
    Base exception for first-seen tag errors.
PipelineError
    Base exception for errors that abort a pipeline.
DeletionError
    Base exception for deletion errors.

Example
-------
>>> from cloudsweep.core import (
...     FilterRule, ResourceCandidate, ResourceTypeRules, compile_patterns, should_include,
... )
>>>
>>> rules = ResourceTypeRules(exclude=FilterRule(names_regex=compile_patterns(["^keep-"])))
>>> should_include(ResourceCandidate("keep-me"), rules)
False

See Also
--------
cloudsweep.resources : Resource type implementations.
cloudsweep.reporters : Output formatters.
"""

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.config import SweepConfig, load_config, parse_config, parse_duration
from cloudsweep.core.exceptions import (
    AWSClientError,
    DeletionError,
    CloudSweepError,
    ConfigError,
    CredentialsError,
    DeleteItemError,
    DeletionConfirmationError,
    DeletionTimeoutError,
    FilterEvaluationError,
    ListingError,
    PipelineError,
    RegionError,
    ResourceNotFoundError,
    RunCancelledError,
    ServiceError,
    TagError,
    TagParseError,
    TagWriteWarning,
)
from cloudsweep.core.filters import (
    FilterRule,
    ResourceTypeRules,
    TagMatch,
    compile_patterns,
    should_include,
)
from cloudsweep.core.first_seen import FIRST_SEEN_TAG_KEY, FirstSeenTracker
from cloudsweep.core.ledger import DeletionOutcome, OutcomeLedger, OutcomeStatus
from cloudsweep.core.models import Clock, ResourceCandidate, RunConfig, SystemClock
from cloudsweep.core.orchestrator import CompletionWaiter, DeletionOrchestrator
from cloudsweep.core.pipeline import filter_candidates, list_and_filter
from cloudsweep.core.region_manager import PipelineResult, RegionManager, SweepRunResult

__all__ = [
    # Client
    "AWSClient",
    # Models
    "Clock",
    "ResourceCandidate",
    "RunConfig",
    "SystemClock",
    # Filtering
    "FilterRule",
    "ResourceTypeRules",
    "SweepConfig",
    "TagMatch",
    "compile_patterns",
    "load_config",
    "parse_config",
    "parse_duration",
    "should_include",
    # First-seen tracking
    "FIRST_SEEN_TAG_KEY",
    "FirstSeenTracker",
    # Deletion
    "CompletionWaiter",
    "DeletionOrchestrator",
    "DeletionOutcome",
    "OutcomeLedger",
    "OutcomeStatus",
    # Pipelines
    "PipelineResult",
    "RegionManager",
    "SweepRunResult",
    "filter_candidates",
    "list_and_filter",
    # Exceptions - Base
    "CloudSweepError",
    # Exceptions - AWS Client
    "AWSClientError",
    "CredentialsError",
    "RegionError",
    "ServiceError",
    # Exceptions - Config
    "ConfigError",
    "FilterEvaluationError",
    # Exceptions - Tags
    "TagError",
    "TagParseError",
    "TagWriteWarning",
    # Exceptions - Pipeline
    "PipelineError",
    "ListingError",
    "RunCancelledError",
    # Exceptions - Deletion
    "DeletionError",
    "DeleteItemError",
    "DeletionTimeoutError",
    "DeletionConfirmationError",
    "ResourceNotFoundError",
]
