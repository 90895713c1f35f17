"""
Candidate Pipeline
==================

Pages through a resource type's listing, fills in missing age data from
the first-seen tag, and applies the filter engine.

The output preserves provider listing order and is neither sorted nor
de-duplicated.

Functions
---------
filter_candidates
    Return the included :class:`ResourceCandidate` objects.
list_and_filter
    Return the included identifiers.

Example
-------
>>> identifiers = list_and_filter(resource, rules, run_config)
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from cloudsweep.core.exceptions import CloudSweepError, ListingError, TagParseError
from cloudsweep.core.filters import ResourceTypeRules, should_include
from cloudsweep.core.first_seen import FirstSeenTracker
from cloudsweep.core.models import ResourceCandidate, RunConfig

logger = logging.getLogger(__name__)


def _tracker_for(lister, run_config: RunConfig) -> FirstSeenTracker:
    tag_writer = lister.tag_resource if lister.supports_tagging else None
    return FirstSeenTracker(tag_writer=tag_writer, run_config=run_config)


def _effective_time(
    candidate: ResourceCandidate,
    tracker: FirstSeenTracker,
) -> Optional[datetime]:
    if candidate.created_at is not None:
        return candidate.created_at
    try:
        return tracker.ensure_first_seen(candidate)
    except TagParseError as e:
        logger.warning(f"Ignoring unusable first-seen tag: {e}")
        return None


def filter_candidates(
    lister,
    rules: Optional[ResourceTypeRules],
    run_config: RunConfig,
    tracker: Optional[FirstSeenTracker] = None,
) -> List[ResourceCandidate]:
    """
    List all candidates of one resource type and keep the included ones.

    Parameters
    ----------
    lister : ResourceLister
        Source of candidate batches.
    rules : ResourceTypeRules, optional
        Filter rules for the resource type.
    run_config : RunConfig
        Run settings (tagging switch, cancellation, clock).
    tracker : FirstSeenTracker, optional
        Tag store; built from the lister when omitted.

    Returns
    -------
    list of ResourceCandidate
        Included candidates in listing order.

    Raises
    ------
    ListingError
        If the provider listing fails.
    RunCancelledError
        If the run is cancelled between pages.
    """
    resource_type = lister.resource_type
    region = getattr(lister, "region", None)
    tracker = tracker or _tracker_for(lister, run_config)

    included: List[ResourceCandidate] = []
    seen = 0

    try:
        for batch in lister.list_candidates():
            run_config.check_cancelled(resource_type=resource_type, region=region)
            for candidate in batch:
                seen += 1
                effective_time = _effective_time(candidate, tracker)
                if should_include(candidate, rules, effective_time=effective_time):
                    included.append(candidate)
    except CloudSweepError:
        raise
    except Exception as e:
        logger.error(f"Failed to list {resource_type} in {region}: {e}")
        raise ListingError(
            f"Failed to list {resource_type}: {e}",
            resource_type=resource_type,
            region=region,
        ) from e

    logger.debug(f"{len(included)}/{seen} {resource_type} resource(s) matched in {region}")
    return included


def list_and_filter(
    lister,
    rules: Optional[ResourceTypeRules],
    run_config: RunConfig,
    tracker: Optional[FirstSeenTracker] = None,
) -> List[str]:
    """
    Identifiers of the included candidates, in listing order.

    See :func:`filter_candidates` for parameters and errors.
    """
    return [
        candidate.identifier
        for candidate in filter_candidates(lister, rules, run_config, tracker)
    ]
