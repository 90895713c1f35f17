"""
First-Seen Tag Store
====================

Synthesizes an age signal for resources whose provider API exposes no
creation timestamp.

The first time a resource is observed it is tagged with
:data:`FIRST_SEEN_TAG_KEY` holding the current instant. Later runs read
the tag back and use it as the resource's effective creation time. Once
written the tag is never overwritten, even when the resource is older
than the tool's first run.

Classes
-------
FirstSeenTracker
    Reads or lazily writes the first-seen tag for one resource type.

Functions
---------
format_timestamp
    Render an instant in the tag value format.
parse_timestamp
    Parse a tag value back into an aware UTC datetime.

Example
-------
>>> tracker = FirstSeenTracker(tag_writer=resource.tag_resource, run_config=run_config)
>>> first_seen = tracker.ensure_first_seen(candidate)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from cloudsweep.core.exceptions import TagParseError, TagWriteWarning
from cloudsweep.core.models import ResourceCandidate, RunConfig

logger = logging.getLogger(__name__)

FIRST_SEEN_TAG_KEY = "cloud-nuke-first-seen"

# RFC 3339 in UTC, e.g. 2024-01-15T10:30:00Z
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
# Older tags were written without the T separator and zone designator
LEGACY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# (identifier, tag key, tag value) -> None; raises on failure
TagWriter = Callable[[str, str, str], None]


def format_timestamp(moment: datetime) -> str:
    """
    Render ``moment`` as a first-seen tag value.

    Naive datetimes are assumed to already be in UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Optional[str], resource_id: Optional[str] = None) -> datetime:
    """
    Parse a first-seen tag value.

    Accepts RFC 3339 values (``Z`` or a numeric offset) and the legacy
    ``YYYY-MM-DD HH:MM:SS`` format, which is read as UTC.

    Raises
    ------
    TagParseError
        If the value matches neither format.
    """
    if not isinstance(value, str):
        raise TagParseError(
            "First-seen tag value is not a string",
            resource_id=resource_id,
            details={"value": repr(value)},
        )

    text = value.strip()
    try:
        return datetime.strptime(text, "%Y-%m-%dT%H:%M:%S%z").astimezone(timezone.utc)
    except ValueError:
        logger.debug(
            f"Timestamp {text!r} is not RFC 3339, trying the legacy format"
        )

    try:
        parsed = datetime.strptime(text, LEGACY_TIMESTAMP_FORMAT)
    except ValueError as e:
        raise TagParseError(
            f"Malformed first-seen timestamp: {text!r}",
            resource_id=resource_id,
            details={"value": text},
        ) from e
    return parsed.replace(tzinfo=timezone.utc)


class FirstSeenTracker:
    """
    Lazy reader/writer of the first-seen tag for one resource type.

    Parameters
    ----------
    tag_writer : callable, optional
        ``tag_writer(identifier, key, value)`` writes a tag on the remote
        resource. ``None`` means the resource type cannot be tagged.
    run_config : RunConfig
        Supplies the clock and the ``exclude_first_seen_tag`` switch.

    Notes
    -----
    Remote writes are independent per resource, so one tracker may be
    shared by the whole pipeline without locking.
    """

    def __init__(
        self,
        tag_writer: Optional[TagWriter],
        run_config: RunConfig,
    ) -> None:
        self.tag_writer = tag_writer
        self.run_config = run_config

    @property
    def tagging_enabled(self) -> bool:
        return self.tag_writer is not None and not self.run_config.exclude_first_seen_tag

    def ensure_first_seen(self, candidate: ResourceCandidate) -> datetime:
        """
        Return the instant ``candidate`` was first observed.

        If the candidate already carries the first-seen tag its value is
        returned. Otherwise the current instant is returned and, when
        tagging is enabled, written to the resource. A failed write is
        logged as a warning and does not change the returned value.

        Raises
        ------
        TagParseError
            If an existing tag value is malformed.
        """
        existing = candidate.tags.get(FIRST_SEEN_TAG_KEY)
        if existing is not None:
            return parse_timestamp(existing, resource_id=candidate.identifier)

        now = self.run_config.clock.now()
        if not self.tagging_enabled:
            return now

        try:
            self.tag_writer(candidate.identifier, FIRST_SEEN_TAG_KEY, format_timestamp(now))
            logger.debug(f"Tagged {candidate.identifier} as first seen at {now.isoformat()}")
        except Exception as e:
            warning = TagWriteWarning(
                f"Failed to write first-seen tag: {e}",
                resource_id=candidate.identifier,
            )
            logger.warning(str(warning))

        return now
