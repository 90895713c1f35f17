"""
Resource Contracts
==================

Defines the two capabilities the core engine consumes for every resource
type, and a boto3-backed base class that implements both.

Classes
-------
ResourceLister
    Produces :class:`ResourceCandidate` batches, page by page.
ResourceDeleter
    Deletes single resources and, for asynchronous deletes, reports which
    of a set of identifiers still exist.
AWSResource
    Base class for concrete resource types bound to one region.

Example
-------
>>> class KeyPairs(AWSResource):
...     resource_type = "key-pair"
...     service_name = "ec2"
...     not_found_codes = frozenset({"InvalidKeyPair.NotFound"})
...
...     def list_candidates(self):
...         response = self.client.describe_key_pairs()
...         yield [
...             ResourceCandidate(identifier=kp["KeyPairId"], created_at=kp.get("CreateTime"))
...             for kp in response["KeyPairs"]
...         ]
...
...     def delete(self, identifier):
...         self.client.delete_key_pair(KeyPairId=identifier)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence

from botocore.exceptions import ClientError

from cloudsweep.core.exceptions import ResourceNotFoundError
from cloudsweep.core.models import ResourceCandidate

logger = logging.getLogger(__name__)


def error_code(error: BaseException) -> Optional[str]:
    """Return the AWS error code of a botocore ``ClientError``, if any."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def tags_to_dict(tags: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, str]:
    """Convert an AWS ``[{"Key": ..., "Value": ...}]`` tag list to a dict."""
    return {tag["Key"]: tag.get("Value", "") for tag in tags or []}


class ResourceLister(ABC):
    """
    Produces deletion candidates for one resource type.

    Attributes
    ----------
    resource_type : str
        Registry name of the resource type (e.g. ``"elb"``).
    supports_tagging : bool
        Whether :meth:`tag_resource` can write first-seen tags.
    """

    resource_type: str = ""
    supports_tagging: bool = False

    @abstractmethod
    def list_candidates(self) -> Iterator[List[ResourceCandidate]]:
        """
        Yield candidates one provider page at a time.

        The iterator is finite and not restartable; call again to re-list.
        Errors propagate to the caller.
        """

    def tag_resource(self, identifier: str, key: str, value: str) -> None:
        """Write one tag on the remote resource."""
        raise NotImplementedError(f"{self.resource_type} does not support tagging")


class ResourceDeleter(ABC):
    """
    Deletes resources of one type.

    Attributes
    ----------
    requires_confirmation : bool
        True when deletion is asynchronous and must be confirmed by
        polling :meth:`describe_survivors`.
    not_found_codes : frozenset of str
        AWS error codes meaning the resource does not exist.
    """

    resource_type: str = ""
    requires_confirmation: bool = False
    not_found_codes: FrozenSet[str] = frozenset()

    @abstractmethod
    def delete(self, identifier: str) -> None:
        """Issue the delete request for ``identifier``; raises on failure."""

    def describe_survivors(self, identifiers: Sequence[str]) -> List[str]:
        """Return the subset of ``identifiers`` that still exist."""
        raise NotImplementedError(
            f"{self.resource_type} does not support completion confirmation"
        )

    def is_not_found(self, error: BaseException) -> bool:
        """Whether ``error`` means the resource is already gone."""
        if isinstance(error, ResourceNotFoundError):
            return True
        return error_code(error) in self.not_found_codes


class AWSResource(ResourceLister, ResourceDeleter):
    """
    Base class for boto3-backed resource types bound to one region.

    Parameters
    ----------
    aws_client : AWSClient
        Client wrapper for the region to operate in.

    Attributes
    ----------
    service_name : str
        boto3 service the resource type talks to.
    region : str
        The AWS region.
    """

    service_name: str = ""

    def __init__(self, aws_client) -> None:
        self.aws_client = aws_client
        self.region = aws_client.region
        self._client = None
        logger.debug(f"Initialized {self.__class__.__name__} for region {self.region}")

    @property
    def client(self):
        """Service client (lazy loaded)."""
        if self._client is None:
            self._client = self.aws_client.get_client(self.service_name)
        return self._client

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"region='{self.region}', "
            f"resource_type='{self.resource_type}')"
        )
