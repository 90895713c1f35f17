"""
Region Manager Module
=====================

Runs one pipeline per (resource type, region) pair in parallel and
aggregates the results of a sweep.

A sweep has two phases so the CLI can ask for confirmation in between:

1. :meth:`RegionManager.inspect` lists and filters every pipeline.
2. :meth:`RegionManager.nuke` deletes what each pipeline matched.

Pipelines are independent: a listing failure, a confirmation timeout or
a cancellation aborts only the pipeline it happens in and is reported as
that pipeline's error, separate from "zero matching resources". All
pipelines share one :class:`OutcomeLedger`.

Classes
-------
PipelineResult
    Matched identifiers or the hard error of one pipeline.
SweepRunResult
    Aggregated results of a sweep.
RegionManager
    Region discovery and parallel pipeline execution.

Example
-------
>>> manager = RegionManager(profile="sandbox", max_workers=8)
>>> result = manager.inspect(
...     select_resource_types(["elb"]),
...     regions=["us-east-1", "eu-west-1"],
...     sweep_config=load_config("cloudsweep.yaml"),
...     run_config=RunConfig(),
... )
>>> result = manager.nuke(result, RunConfig())
>>> result.ledger.summary()
{'total': 3, 'deleted': 3, 'failed': 0}
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Type

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.config import SweepConfig
from cloudsweep.core.exceptions import AWSClientError, CloudSweepError
from cloudsweep.core.ledger import OutcomeLedger
from cloudsweep.core.models import ResourceCandidate, RunConfig
from cloudsweep.core.orchestrator import DeletionOrchestrator
from cloudsweep.core.pipeline import filter_candidates

logger = logging.getLogger(__name__)

# (resource_type, region, status) with status in: listing, listed, deleting, done, error
ProgressCallback = Callable[[str, str, str], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineResult:
    """
    Outcome of one (resource type, region) pipeline.

    Attributes
    ----------
    resource_type : str
        Registry name of the resource type.
    region : str
        AWS region.
    candidates : list of ResourceCandidate
        Candidates that passed the filters, in listing order.
    error : str, optional
        Hard error that aborted the pipeline.
    error_type : str, optional
        Exception class name of ``error``.
    """

    resource_type: str
    region: str
    candidates: List[ResourceCandidate] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    resource: Any = field(default=None, repr=False, compare=False)

    @property
    def identifiers(self) -> List[str]:
        return [c.identifier for c in self.candidates]

    @property
    def failed(self) -> bool:
        return self.error is not None

    def fail(self, error: BaseException) -> None:
        self.error = str(error)
        self.error_type = type(error).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "region": self.region,
            "identifiers": self.identifiers,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass
class SweepRunResult:
    """
    Aggregated results of a sweep across resource types and regions.

    Attributes
    ----------
    regions : list of str
        Regions covered.
    resource_types : list of str
        Resource types covered.
    pipelines : list of PipelineResult
        One entry per (resource type, region), ordered by resource type
        then region.
    ledger : OutcomeLedger
        Per-identifier deletion outcomes.
    dry_run : bool
        True if nothing was deleted.
    """

    regions: List[str]
    resource_types: List[str]
    pipelines: List[PipelineResult]
    ledger: OutcomeLedger = field(default_factory=OutcomeLedger)
    dry_run: bool = True
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    @property
    def failed_pipelines(self) -> List[PipelineResult]:
        return [p for p in self.pipelines if p.failed]

    @property
    def total_matched(self) -> int:
        return sum(len(p.candidates) for p in self.pipelines)

    @property
    def has_errors(self) -> bool:
        return bool(self.failed_pipelines) or bool(self.ledger.failures())

    def complete(self) -> None:
        self.end_time = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions": self.regions,
            "resource_types": self.resource_types,
            "dry_run": self.dry_run,
            "total_matched": self.total_matched,
            "pipelines": [p.to_dict() for p in self.pipelines],
            "failed_pipelines": [p.to_dict() for p in self.failed_pipelines],
            "outcomes": self.ledger.to_dict(),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }

    def __repr__(self) -> str:
        return (
            f"SweepRunResult(regions={len(self.regions)}, "
            f"pipelines={len(self.pipelines)}, "
            f"matched={self.total_matched}, "
            f"failed_pipelines={len(self.failed_pipelines)})"
        )


class RegionManager:
    """
    Region discovery and parallel pipeline execution.

    Parameters
    ----------
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_workers : int, default=10
        Maximum number of pipelines running at once.
    max_retries : int, default=3
        Maximum retries for failed API calls.
    timeout : int, default=30
        Request timeout in seconds.

    Notes
    -----
    Every pipeline gets its own :class:`AWSClient`, so boto3 clients are
    never shared across threads. Within a pipeline, deletes run
    sequentially.
    """

    def __init__(
        self,
        profile: Optional[str] = None,
        max_workers: int = 10,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.profile = profile
        self.max_workers = max_workers
        self.max_retries = max_retries
        self.timeout = timeout

        logger.debug(f"Initialized RegionManager with max_workers={max_workers}")

    def get_client_for_region(self, region: str) -> AWSClient:
        """Create an :class:`AWSClient` for ``region``."""
        return AWSClient(
            region=region,
            profile=self.profile,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )

    def get_all_regions(self) -> List[str]:
        """
        Fetch all regions enabled for the account, sorted by name.

        Raises
        ------
        AWSClientError
            If unable to fetch the region list.
        """
        try:
            ec2 = self.get_client_for_region("us-east-1").get_client("ec2")
            response = ec2.describe_regions(AllRegions=False)
        except AWSClientError:
            raise
        except Exception as e:
            logger.exception("Failed to fetch AWS regions")
            raise AWSClientError(f"Failed to fetch AWS regions: {e}") from e

        regions = sorted(r["RegionName"] for r in response["Regions"])
        logger.info(f"Discovered {len(regions)} enabled AWS regions")
        return regions

    # =========================================================================
    # Phase 1: listing and filtering
    # =========================================================================

    def _inspect_pipeline(
        self,
        pipeline: PipelineResult,
        resource_class: Type,
        sweep_config: SweepConfig,
        run_config: RunConfig,
        progress_callback: Optional[ProgressCallback],
    ) -> PipelineResult:
        if progress_callback:
            progress_callback(pipeline.resource_type, pipeline.region, "listing")
        try:
            run_config.check_cancelled(pipeline.resource_type, pipeline.region)
            pipeline.resource = resource_class(self.get_client_for_region(pipeline.region))
            pipeline.candidates = filter_candidates(
                pipeline.resource,
                sweep_config.rules_for(pipeline.resource_type),
                run_config,
            )
        except CloudSweepError as e:
            logger.error(f"{pipeline.resource_type} in {pipeline.region} failed: {e}")
            pipeline.fail(e)
        else:
            logger.debug(
                f"{pipeline.resource_type} in {pipeline.region}: "
                f"{len(pipeline.candidates)} matched"
            )

        if progress_callback:
            progress_callback(
                pipeline.resource_type,
                pipeline.region,
                "error" if pipeline.failed else "listed",
            )
        return pipeline

    def inspect(
        self,
        resource_classes: Sequence[Type],
        regions: Sequence[str],
        sweep_config: SweepConfig,
        run_config: RunConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SweepRunResult:
        """
        List and filter every (resource type, region) pipeline in parallel.

        Returns
        -------
        SweepRunResult
            Matched candidates per pipeline; nothing is deleted.
        """
        pipelines = [
            PipelineResult(resource_type=cls.resource_type, region=region)
            for cls in resource_classes
            for region in regions
        ]
        classes = {cls.resource_type: cls for cls in resource_classes}

        logger.info(
            f"Inspecting {len(classes)} resource type(s) across {len(regions)} region(s)"
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(
                    self._inspect_pipeline,
                    pipeline,
                    classes[pipeline.resource_type],
                    sweep_config,
                    run_config,
                    progress_callback,
                )
                for pipeline in pipelines
            ]
            for future in as_completed(futures):
                future.result()

        result = SweepRunResult(
            regions=list(regions),
            resource_types=list(classes),
            pipelines=pipelines,
        )
        logger.info(
            f"Inspection complete: {result.total_matched} matching resource(s), "
            f"{len(result.failed_pipelines)} failed pipeline(s)"
        )
        return result

    # =========================================================================
    # Phase 2: deletion
    # =========================================================================

    def _nuke_pipeline(
        self,
        pipeline: PipelineResult,
        ledger: OutcomeLedger,
        run_config: RunConfig,
        progress_callback: Optional[ProgressCallback],
    ) -> PipelineResult:
        if progress_callback:
            progress_callback(pipeline.resource_type, pipeline.region, "deleting")
        try:
            orchestrator = DeletionOrchestrator(pipeline.resource, ledger, run_config)
            orchestrator.nuke_all(pipeline.identifiers)
        except CloudSweepError as e:
            logger.error(f"Deleting {pipeline.resource_type} in {pipeline.region} failed: {e}")
            pipeline.fail(e)

        if progress_callback:
            progress_callback(
                pipeline.resource_type,
                pipeline.region,
                "error" if pipeline.failed else "done",
            )
        return pipeline

    def nuke(
        self,
        result: SweepRunResult,
        run_config: RunConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SweepRunResult:
        """
        Delete what each successful pipeline of ``result`` matched.

        Failed pipelines and pipelines with no matches are skipped.
        Outcomes are recorded in ``result.ledger``.
        """
        result.dry_run = False
        pending = [p for p in result.pipelines if not p.failed and p.candidates]

        logger.info(f"Deleting resources in {len(pending)} pipeline(s)")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(
                    self._nuke_pipeline,
                    pipeline,
                    result.ledger,
                    run_config,
                    progress_callback,
                )
                for pipeline in pending
            ]
            for future in as_completed(futures):
                future.result()

        result.complete()
        summary = result.ledger.summary()
        logger.info(
            f"Sweep complete: {summary['deleted']} deleted, {summary['failed']} failed, "
            f"{len(result.failed_pipelines)} failed pipeline(s)"
        )
        return result

    def run(
        self,
        resource_classes: Sequence[Type],
        regions: Sequence[str],
        sweep_config: SweepConfig,
        run_config: RunConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SweepRunResult:
        """Inspect then, unless ``run_config.dry_run``, delete."""
        result = self.inspect(
            resource_classes, regions, sweep_config, run_config, progress_callback
        )
        if run_config.dry_run:
            result.complete()
            return result
        return self.nuke(result, run_config, progress_callback)

    def __repr__(self) -> str:
        return (
            f"RegionManager(profile={self.profile!r}, "
            f"max_workers={self.max_workers})"
        )
