"""
CloudSweep: AWS Resource Cleanup
================================

A tool for finding AWS resources that match include/exclude rules and
deleting them, across many regions and resource types at once.

Resources whose API exposes no creation timestamp are tagged with the
time they were first seen, so age-based rules work on later runs.

Modules
-------
core
    Filtering, first-seen tracking, deletion orchestration, region fan-out
resources
    Per-resource-type listers and deleters
reporters
    Output formatters (CLI, JSON)

Example
-------
>>> from cloudsweep import RegionManager, RunConfig, load_config
>>> from cloudsweep.resources import select_resource_types
>>>
>>> manager = RegionManager(profile="sandbox")
>>> result = manager.run(
...     select_resource_types(["elb", "security-group"]),
...     regions=["us-east-1"],
...     sweep_config=load_config("cloudsweep.yaml"),
...     run_config=RunConfig(dry_run=True),
... )
>>> print(f"{result.total_matched} resources would be deleted")

Notes
-----
Requires AWS credentials configured via:
- Environment variables (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)
- AWS credentials file (~/.aws/credentials)
- IAM role (when running on AWS infrastructure)

See Also
--------
boto3 : AWS SDK for Python
"""

__version__ = "0.1.0"
__author__ = "CloudSweep Team"
__license__ = "MIT"

# Public API
from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.config import SweepConfig, load_config
from cloudsweep.core.exceptions import AWSClientError, CloudSweepError
from cloudsweep.core.ledger import OutcomeLedger
from cloudsweep.core.models import ResourceCandidate, RunConfig
from cloudsweep.core.region_manager import RegionManager, SweepRunResult

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Core classes
    "AWSClient",
    "AWSClientError",
    "CloudSweepError",
    "OutcomeLedger",
    "RegionManager",
    "ResourceCandidate",
    "RunConfig",
    "SweepConfig",
    "SweepRunResult",
    "load_config",
]
