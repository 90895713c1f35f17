"""
Deletion Orchestrator
=====================

Deletes an approved list of identifiers for one resource type and, for
asynchronously deleted resource types, confirms completion by polling.

Deletion is sequential within a pipeline. Every attempt is recorded in
the :class:`OutcomeLedger`; a failure for one identifier never stops the
rest of the batch. A provider "not found" answer counts as a successful
deletion.

Completion Confirmation
-----------------------
After the delete requests are issued, the identifiers that were actually
deleted are polled through ``describe_survivors`` as a small state
machine::

    POLLING --(survivors empty / not-found error)--> CONFIRMED
    POLLING --(any other error)--------------------> HARD_ERROR
    POLLING --(attempt budget exhausted)-----------> TIMED_OUT

Polls run at a fixed interval (1 second) for at most 30 attempts. Waits
go through the run's clock so tests can drive the full budget without
real delay, and every iteration observes cancellation.

Classes
-------
CompletionState
    States of the confirmation state machine.
CompletionWaiter
    Polls a deleter until its deletions are confirmed.
DeletionOrchestrator
    Issues deletes and records outcomes.

Example
-------
>>> orchestrator = DeletionOrchestrator(resource, ledger, run_config)
>>> orchestrator.nuke_all(["lb-1", "lb-2"])
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from botocore.exceptions import ClientError

from cloudsweep.core.exceptions import (
    DeleteItemError,
    DeletionConfirmationError,
    DeletionTimeoutError,
    RunCancelledError,
)
from cloudsweep.core.ledger import DeletionOutcome, OutcomeLedger
from cloudsweep.core.models import RunConfig

logger = logging.getLogger(__name__)

MAX_CONFIRMATION_ATTEMPTS = 30
CONFIRMATION_INTERVAL_SECONDS = 1.0


class CompletionState(Enum):
    """State of a completion confirmation."""

    POLLING = "polling"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    HARD_ERROR = "hard_error"


def describe_error(error: BaseException) -> str:
    """Render an error for the outcome ledger."""
    if isinstance(error, ClientError):
        details = error.response.get("Error", {})
        code = details.get("Code", "Unknown")
        message = details.get("Message", str(error))
        return f"{code}: {message}"
    return str(error)


class CompletionWaiter:
    """
    Polls a deleter until issued deletions are confirmed.

    Parameters
    ----------
    run_config : RunConfig
        Supplies the clock and cancellation.
    max_attempts : int, default=30
        Number of polls before giving up.
    interval : float, default=1.0
        Seconds between polls.
    """

    def __init__(
        self,
        run_config: RunConfig,
        max_attempts: int = MAX_CONFIRMATION_ATTEMPTS,
        interval: float = CONFIRMATION_INTERVAL_SECONDS,
    ) -> None:
        self.run_config = run_config
        self.max_attempts = max_attempts
        self.interval = interval

    def _poll(
        self,
        deleter,
        remaining: List[str],
    ) -> Tuple[CompletionState, List[str], Optional[BaseException]]:
        try:
            survivors = deleter.describe_survivors(remaining)
        except RunCancelledError:
            raise
        except Exception as e:
            if deleter.is_not_found(e):
                return CompletionState.CONFIRMED, [], None
            return CompletionState.HARD_ERROR, remaining, e

        still_present = set(survivors)
        remaining = [identifier for identifier in remaining if identifier in still_present]
        if not remaining:
            return CompletionState.CONFIRMED, [], None
        return CompletionState.POLLING, remaining, None

    def wait(self, deleter, identifiers: Sequence[str]) -> CompletionState:
        """
        Block until ``identifiers`` are confirmed deleted.

        Returns
        -------
        CompletionState
            Always ``CONFIRMED`` when it returns.

        Raises
        ------
        DeletionTimeoutError
            If deletion is not confirmed within the attempt budget.
        DeletionConfirmationError
            If polling fails with anything but a not-found error.
        RunCancelledError
            If the run is cancelled while waiting.
        """
        resource_type = deleter.resource_type
        region = getattr(deleter, "region", None)
        remaining = list(identifiers)
        state = CompletionState.POLLING
        error: Optional[BaseException] = None
        attempts = 0

        while state is CompletionState.POLLING:
            self.run_config.check_cancelled(resource_type=resource_type, region=region)
            attempts += 1
            state, remaining, error = self._poll(deleter, remaining)
            if state is not CompletionState.POLLING:
                break

            self.run_config.clock.sleep(self.interval, self.run_config.cancel_event)
            logger.debug(
                f"Waiting for {len(remaining)} {resource_type} resource(s) to be deleted "
                f"(attempt {attempts}/{self.max_attempts})"
            )
            if attempts >= self.max_attempts:
                state = CompletionState.TIMED_OUT

        if state is CompletionState.TIMED_OUT:
            raise DeletionTimeoutError(
                f"Timed out waiting for {resource_type} deletion to complete",
                resource_type=resource_type,
                details={"attempts": attempts, "remaining": remaining, "region": region},
            )
        if state is CompletionState.HARD_ERROR:
            raise DeletionConfirmationError(
                f"Failed to confirm {resource_type} deletion: {describe_error(error)}",
                resource_type=resource_type,
                details={"region": region},
            ) from error

        logger.debug(f"Confirmed deletion of {len(identifiers)} {resource_type} resource(s)")
        return state


class DeletionOrchestrator:
    """
    Deletes approved identifiers for one resource type.

    Parameters
    ----------
    deleter : ResourceDeleter
        Resource-type implementation that issues delete calls.
    ledger : OutcomeLedger
        Run-scoped ledger receiving one outcome per identifier.
    run_config : RunConfig
        Run settings (cancellation, clock).
    waiter : CompletionWaiter, optional
        Confirmation poller. Defaults to 30 attempts at 1 second.
    """

    def __init__(
        self,
        deleter,
        ledger: OutcomeLedger,
        run_config: RunConfig,
        waiter: Optional[CompletionWaiter] = None,
    ) -> None:
        self.deleter = deleter
        self.ledger = ledger
        self.run_config = run_config
        self.waiter = waiter or CompletionWaiter(run_config)

    def nuke_all(self, identifiers: Sequence[str]) -> None:
        """
        Delete every identifier, recording one outcome each.

        An empty list is a no-op.

        Raises
        ------
        ValueError
            If no deleter or ledger was supplied.
        DeletionTimeoutError
            If asynchronous deletion could not be confirmed in time.
        DeletionConfirmationError
            If confirmation polling failed.
        RunCancelledError
            If the run was cancelled; remaining identifiers are skipped.
        """
        if self.deleter is None:
            raise ValueError("DeletionOrchestrator requires a deleter")
        if self.ledger is None:
            raise ValueError("DeletionOrchestrator requires a ledger")

        resource_type = self.deleter.resource_type
        region = getattr(self.deleter, "region", None)

        if not identifiers:
            logger.debug(f"No {resource_type} resources to delete in {region}")
            return

        logger.debug(f"Deleting {len(identifiers)} {resource_type} resource(s) in {region}")
        issued: List[str] = []

        for identifier in identifiers:
            self.run_config.check_cancelled(resource_type=resource_type, region=region)
            try:
                self.deleter.delete(identifier)
            except RunCancelledError:
                raise
            except Exception as e:
                if self.deleter.is_not_found(e):
                    logger.debug(f"{resource_type} {identifier} already deleted")
                    self.ledger.record(DeletionOutcome.deleted(identifier, resource_type, region=region))
                    continue
                item_error = DeleteItemError(
                    describe_error(e),
                    resource_id=identifier,
                    resource_type=resource_type,
                )
                logger.warning(f"[Failed] {resource_type} {identifier}: {item_error.message}")
                self.ledger.record(
                    DeletionOutcome.failed(identifier, resource_type, item_error.message, region=region)
                )
                continue

            self.ledger.record(DeletionOutcome.deleted(identifier, resource_type, region=region))
            issued.append(identifier)
            logger.debug(f"Deleted {resource_type}: {identifier}")

        if issued and self.deleter.requires_confirmation:
            self.waiter.wait(self.deleter, issued)

        logger.info(f"[OK] {len(issued)} {resource_type} resource(s) deleted in {region}")
