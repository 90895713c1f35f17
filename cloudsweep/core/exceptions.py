"""
Custom Exceptions for CloudSweep
================================

This module defines the exception hierarchy used throughout the
application. Exceptions are split into *hard* failures, which abort the
pipeline they occur in, and *soft* failures, which are logged or recorded
and never stop a run.

Exception Hierarchy
-------------------
::

    CloudSweepError (base)
    ├── AWSClientError
    │   ├── CredentialsError
    │   ├── RegionError
    │   └── ServiceError
    ├── ConfigError
    │   └── FilterEvaluationError
    ├── TagError
    │   ├── TagParseError               (soft)
    │   └── TagWriteWarning             (soft)
    ├── PipelineError
    │   ├── ListingError
    │   └── RunCancelledError
    ├── DeletionError
    │   ├── DeleteItemError             (soft, per identifier)
    │   ├── DeletionTimeoutError
    │   └── DeletionConfirmationError
    └── ResourceNotFoundError

Example
-------
>>> from cloudsweep.core.exceptions import ListingError
>>>
>>> try:
...     identifiers = list_and_filter(lister, rules, run_config, tracker)
... except ListingError as e:
...     print(f"Listing failed: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CloudSweepError(Exception):
    """
    Base exception for all CloudSweep errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    details : dict, optional
        Additional context about the error.

    Example
    -------
    >>> raise CloudSweepError("Something went wrong", details={"code": 500})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for serialization.

        Returns
        -------
        dict
            Dictionary representation of the error.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# AWS Client Exceptions
# =============================================================================


class AWSClientError(CloudSweepError):
    """
    Base exception for AWS client-related errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    service : str, optional
        The AWS service that caused the error.
    region : str, optional
        The AWS region where the error occurred.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.region = region
        full_details = details or {}
        if service:
            full_details["service"] = service
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class CredentialsError(AWSClientError):
    """Raised when AWS credentials are invalid, missing, or expired."""

    pass


class RegionError(AWSClientError):
    """Raised when there's an issue with the specified AWS region."""

    pass


class ServiceError(AWSClientError):
    """Raised when there's an error accessing a specific AWS service."""

    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(CloudSweepError):
    """
    Raised when the rule configuration cannot be loaded.

    Example
    -------
    >>> raise ConfigError(
    ...     "Config file not found",
    ...     details={"path": "cloudsweep.yaml"}
    ... )
    """

    pass


class FilterEvaluationError(ConfigError):
    """
    Raised for malformed filter rules supplied at configuration time.

    Never raised while evaluating a candidate; rules are validated when
    they are built.

    Example
    -------
    >>> raise FilterEvaluationError(
    ...     "Invalid regular expression",
    ...     details={"pattern": "([a-z", "resource_type": "elb"}
    ... )
    """

    pass


# =============================================================================
# First-Seen Tag Exceptions
# =============================================================================


class TagError(CloudSweepError):
    """
    Base exception for first-seen tag bookkeeping.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_id : str, optional
        The identifier of the resource carrying the tag.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_id = resource_id
        full_details = details or {}
        if resource_id:
            full_details["resource_id"] = resource_id
        super().__init__(message, full_details)


class TagParseError(TagError):
    """
    Raised when a first-seen tag value is not a parseable timestamp.

    Callers treat this as "no usable age data" for the candidate.
    """

    pass


class TagWriteWarning(TagError):
    """
    Describes a failed first-seen tag write.

    Logged as a warning and never raised out of the tag store: a missed
    tag only degrades age filtering on future runs.
    """

    pass


# =============================================================================
# Pipeline Exceptions
# =============================================================================


class PipelineError(CloudSweepError):
    """
    Base exception for errors that abort one resource-type pipeline.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_type : str, optional
        The resource type the pipeline handles.
    region : str, optional
        The AWS region the pipeline runs in.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        region: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_type = resource_type
        self.region = region
        full_details = details or {}
        if resource_type:
            full_details["resource_type"] = resource_type
        if region:
            full_details["region"] = region
        super().__init__(message, full_details)


class ListingError(PipelineError):
    """
    Raised when the provider listing for a resource type fails.

    Example
    -------
    >>> raise ListingError(
    ...     "Failed to list load balancers",
    ...     resource_type="elb",
    ...     region="us-east-1"
    ... )
    """

    pass


class RunCancelledError(PipelineError):
    """Raised when the run is cancelled by timeout or operator interrupt."""

    pass


# =============================================================================
# Deletion Exceptions
# =============================================================================


class DeletionError(CloudSweepError):
    """
    Base exception for failures while deleting or confirming deletion.

    Parameters
    ----------
    message : str
        Human-readable error message.
    resource_id : str, optional
        Identifier of the resource being deleted.
    resource_type : str, optional
        Resource type the identifier belongs to.
    details : dict, optional
        Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        resource_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource_id = resource_id
        self.resource_type = resource_type
        full_details = details or {}
        if resource_id:
            full_details["resource_id"] = resource_id
        if resource_type:
            full_details["resource_type"] = resource_type
        super().__init__(message, full_details)


class DeleteItemError(DeletionError):
    """
    Describes the failure to delete a single resource.

    Recorded in the outcome ledger; the batch continues.
    """

    pass


class DeletionTimeoutError(DeletionError):
    """
    Raised when deletion could not be confirmed within the polling budget.

    Already issued deletions are neither retried nor rolled back.

    Example
    -------
    >>> raise DeletionTimeoutError(
    ...     "Timed out waiting for load balancers to be deleted",
    ...     resource_type="elb",
    ...     details={"attempts": 30, "remaining": ["lb-1"]}
    ... )
    """

    pass


class DeletionConfirmationError(DeletionError):
    """Raised when polling for completion fails with a non not-found error."""

    pass


class ResourceNotFoundError(CloudSweepError):
    """
    Raised by resource implementations when the provider reports the
    resource no longer exists.
    """

    pass
