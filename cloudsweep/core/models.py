"""
Core Data Models
================

Plain data types shared by the pipeline, the tag store and the
orchestrator.

Classes
-------
ResourceCandidate
    A resource discovered by a listing call, not yet filtered.
Clock
    Time source and cancellable sleep; swapped for a fake in tests.
SystemClock
    Wall-clock implementation of :class:`Clock`.
RunConfig
    Run-scoped settings passed explicitly to every pipeline call.

Example
-------
>>> from cloudsweep.core.models import ResourceCandidate, RunConfig
>>>
>>> candidate = ResourceCandidate(
...     identifier="sg-0123456789abcdef0",
...     label="ci-runner",
...     tags={"team": "qa"},
... )
>>> run_config = RunConfig(exclude_first_seen_tag=True)
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from cloudsweep.core.exceptions import RunCancelledError


@dataclass(frozen=True)
class ResourceCandidate:
    """
    A resource discovered by a listing call.

    Parameters
    ----------
    identifier : str
        Opaque identifier passed back to the deleter (ID, name or ARN).
    created_at : datetime, optional
        Native creation time, when the provider exposes one.
    label : str, optional
        Human label, usually the ``Name`` tag. Name filters fall back to
        the identifier when unset.
    tags : dict
        Tag key to tag value mapping.
    """

    identifier: str
    created_at: Optional[datetime] = None
    label: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Name used for name-pattern matching and reports."""
        return self.label or self.identifier


class Clock:
    """
    Time source used by the tag store and the completion poller.

    Subclasses override :meth:`now` and :meth:`sleep`; tests use a fake
    that advances virtual time instead of blocking.
    """

    def now(self) -> datetime:
        raise NotImplementedError

    def sleep(self, seconds: float, cancel_event: Optional[threading.Event] = None) -> None:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock time with an interruptible sleep."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def sleep(self, seconds: float, cancel_event: Optional[threading.Event] = None) -> None:
        if cancel_event is None:
            time.sleep(seconds)
            return
        # Wakes up as soon as the run is cancelled
        cancel_event.wait(seconds)


@dataclass
class RunConfig:
    """
    Run-scoped settings threaded through every pipeline call.

    Parameters
    ----------
    exclude_first_seen_tag : bool, default=False
        Disable writing first-seen tags. Resources without a native
        creation time and without an existing tag are then treated as
        first seen "now".
    dry_run : bool, default=False
        List and filter only; the orchestrator is never invoked.
    cancel_event : threading.Event
        Set to cancel the run (operator interrupt).
    deadline : float, optional
        ``time.monotonic()`` value after which the run counts as cancelled.
    clock : Clock
        Time source; defaults to :class:`SystemClock`.

    Example
    -------
    >>> run_config = RunConfig.with_timeout(600)
    >>> run_config.check_cancelled()
    """

    exclude_first_seen_tag: bool = False
    dry_run: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)
    deadline: Optional[float] = None
    clock: Clock = field(default_factory=SystemClock)

    @classmethod
    def with_timeout(cls, timeout_seconds: Optional[float], **kwargs) -> RunConfig:
        """Build a config whose deadline is ``timeout_seconds`` from now."""
        deadline = None
        if timeout_seconds:
            deadline = time.monotonic() + timeout_seconds
        return cls(deadline=deadline, **kwargs)

    def cancel(self) -> None:
        """Cancel the run; every pipeline stops at its next check."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        if self.cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check_cancelled(
        self,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        """
        Raise if the run has been cancelled or its deadline has passed.

        Raises
        ------
        RunCancelledError
            If the run is cancelled.
        """
        if self.cancelled:
            raise RunCancelledError(
                "Run cancelled",
                resource_type=resource_type,
                region=region,
            )
