"""
Outcome Ledger
==============

Append-only record of per-identifier deletion results for one run.

One :class:`OutcomeLedger` is created per run and passed explicitly to
every pipeline. ``record`` is serialized by a single lock so pipelines
running on parallel workers never lose updates; entries are read only
after all pipelines have joined.

Classes
-------
OutcomeStatus
    Terminal status of a deletion attempt.
DeletionOutcome
    Immutable result of a single deletion attempt.
OutcomeLedger
    Thread-safe, insertion-ordered ledger of outcomes.

Example
-------
>>> ledger = OutcomeLedger()
>>> ledger.record(DeletionOutcome.deleted("lb-1", "elb", region="us-east-1"))
>>> [e.identifier for e in ledger.entries()]
['lb-1']
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class OutcomeStatus(Enum):
    """Status of a delete operation."""

    DELETED = "deleted"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DeletionOutcome:
    """
    Result of a single deletion attempt.

    Attributes:
        identifier: Resource identifier
        resource_type: Registry name of the resource type
        status: Terminal status
        error: Error description if failed
        region: AWS region
        timestamp: When the attempt completed
    """

    identifier: str
    resource_type: str
    status: OutcomeStatus
    error: Optional[str] = None
    region: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def deleted(cls, identifier: str, resource_type: str, region: Optional[str] = None) -> DeletionOutcome:
        return cls(identifier, resource_type, OutcomeStatus.DELETED, region=region)

    @classmethod
    def failed(
        cls,
        identifier: str,
        resource_type: str,
        error: str,
        region: Optional[str] = None,
    ) -> DeletionOutcome:
        return cls(identifier, resource_type, OutcomeStatus.FAILED, error=error, region=region)

    @property
    def succeeded(self) -> bool:
        return self.status == OutcomeStatus.DELETED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "identifier": self.identifier,
            "resource_type": self.resource_type,
            "region": self.region,
            "status": self.status.value,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


class OutcomeLedger:
    """
    Thread-safe, append-only ledger of deletion outcomes.

    The ledger is unbounded; long runs can call :meth:`summary` to
    report progress without copying every entry.
    """

    def __init__(self) -> None:
        self._entries: List[DeletionOutcome] = []
        self._lock = threading.Lock()

    def record(self, outcome: DeletionOutcome) -> None:
        """Append ``outcome`` to the ledger."""
        with self._lock:
            self._entries.append(outcome)

    def entries(self) -> Tuple[DeletionOutcome, ...]:
        """All outcomes in insertion order."""
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def summary(self) -> Dict[str, int]:
        """Counts of total, deleted and failed outcomes."""
        entries = self.entries()
        deleted = sum(1 for e in entries if e.succeeded)
        return {
            "total": len(entries),
            "deleted": deleted,
            "failed": len(entries) - deleted,
        }

    def failures(self) -> List[DeletionOutcome]:
        return [e for e in self.entries() if not e.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            **self.summary(),
            "entries": [e.to_dict() for e in self.entries()],
        }

    def __repr__(self) -> str:
        summary = self.summary()
        return (
            f"OutcomeLedger(total={summary['total']}, "
            f"deleted={summary['deleted']}, failed={summary['failed']})"
        )
