"""
Pytest configuration and shared fixtures for testing.
"""

import logging
import os
from datetime import datetime, timedelta, timezone

import boto3
import pytest
from moto import mock_aws

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.exceptions import ResourceNotFoundError
from cloudsweep.core.ledger import OutcomeLedger
from cloudsweep.core.models import Clock, ResourceCandidate, RunConfig
from cloudsweep.resources.base import ResourceDeleter, ResourceLister


class FakeClock(Clock):
    """Virtual clock: ``sleep`` records the call and advances ``now``."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)
        self.sleeps = []

    def now(self):
        return self.current

    def sleep(self, seconds, cancel_event=None):
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


class FakeResource(ResourceLister, ResourceDeleter):
    """
    In-memory resource type.

    ``pages`` is a list of candidate batches. ``delete_errors`` maps an
    identifier to the exception its delete raises. ``survivors`` is a
    list of return values (or exceptions) for successive
    ``describe_survivors`` calls; the last one repeats.
    """

    def __init__(
        self,
        pages=None,
        resource_type="fake",
        region="us-east-1",
        supports_tagging=False,
        requires_confirmation=False,
        delete_errors=None,
        survivors=None,
        list_error=None,
        tag_error=None,
    ):
        self.pages = pages or []
        self.resource_type = resource_type
        self.region = region
        self.supports_tagging = supports_tagging
        self.requires_confirmation = requires_confirmation
        self.delete_errors = delete_errors or {}
        self.survivors = survivors or [[]]
        self.list_error = list_error
        self.tag_error = tag_error
        self.deleted = []
        self.tagged = []
        self.survivor_calls = []

    def list_candidates(self):
        for page in self.pages:
            yield list(page)
        if self.list_error is not None:
            raise self.list_error

    def tag_resource(self, identifier, key, value):
        if self.tag_error is not None:
            raise self.tag_error
        self.tagged.append((identifier, key, value))

    def delete(self, identifier):
        error = self.delete_errors.get(identifier)
        if error is not None:
            raise error
        self.deleted.append(identifier)

    def describe_survivors(self, identifiers):
        self.survivor_calls.append(list(identifiers))
        index = min(len(self.survivor_calls), len(self.survivors)) - 1
        answer = self.survivors[index]
        if isinstance(answer, BaseException):
            raise answer
        return list(answer)

    def is_not_found(self, error):
        return isinstance(error, ResourceNotFoundError)


@pytest.fixture
def fake_clock():
    """A virtual clock starting at 2024-01-15T10:30:00Z."""
    return FakeClock()


@pytest.fixture
def run_config(fake_clock):
    """RunConfig driven by the virtual clock."""
    return RunConfig(clock=fake_clock)


@pytest.fixture
def ledger():
    """An empty outcome ledger."""
    return OutcomeLedger()


@pytest.fixture
def make_candidate():
    """Factory for ResourceCandidate objects."""

    def factory(identifier, label=None, created_at=None, tags=None):
        return ResourceCandidate(
            identifier=identifier,
            created_at=created_at,
            label=label,
            tags=tags or {},
        )

    return factory


@pytest.fixture
def aws_credentials():
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def mock_aws_environment(aws_credentials):
    """Create a mocked AWS environment."""
    with mock_aws():
        yield


@pytest.fixture
def aws_client(mock_aws_environment):
    """Create an AWSClient instance for testing."""
    return AWSClient(region="us-east-1")


@pytest.fixture
def ec2_client(mock_aws_environment):
    """Create a boto3 EC2 client for setting up test resources."""
    return boto3.client("ec2", region_name="us-east-1")


@pytest.fixture
def elb_client(mock_aws_environment):
    """Create a boto3 ELB client for setting up test resources."""
    return boto3.client("elb", region_name="us-east-1")


@pytest.fixture
def vpc(ec2_client):
    """Create a VPC for testing."""
    response = ec2_client.create_vpc(CidrBlock="10.0.0.0/16")
    return response["Vpc"]["VpcId"]


@pytest.fixture
def security_group(ec2_client, vpc):
    """Create a security group for testing."""
    response = ec2_client.create_security_group(
        GroupName="test-sg",
        Description="Test security group",
        VpcId=vpc,
    )
    return response["GroupId"]


@pytest.fixture
def make_resource():
    """Factory for in-memory FakeResource objects."""
    return FakeResource


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging changes to the root logger after the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
