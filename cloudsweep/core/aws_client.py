"""
AWS Client Module
=================

Per-region access to the AWS services that CloudSweep lists and deletes
from. Every resource pipeline receives its own :class:`AWSClient`, which
owns one boto3 session and hands out service clients configured with the
run's retry and timeout budget.

Classes
-------
AWSClient
    Region-bound session and client cache.

Example
-------
>>> client = AWSClient(region="us-east-1", profile="sandbox")
>>> client.validate_credentials()
True
>>> opensearch = client.get_client("opensearch")
>>> eu_client = client.with_region("eu-west-1")

Notes
-----
Nothing is created until first use. Boto failures surface as subclasses
of :class:`~cloudsweep.core.exceptions.AWSClientError` so the CLI can
report them without a traceback.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from cloudsweep.core.exceptions import (
    AWSClientError,
    CredentialsError,
    RegionError,
    ServiceError,
)

logger = logging.getLogger(__name__)

# STS error codes that mean the key pair itself is bad
INVALID_CREDENTIAL_CODES = frozenset(
    {"InvalidClientTokenId", "SignatureDoesNotMatch", "ExpiredToken", "AccessDenied"}
)

CREDENTIALS_HINT = (
    "Run 'aws configure', pass --profile, or export "
    "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY"
)


class AWSClient:
    """
    Session and service clients for one AWS region.

    Parameters
    ----------
    region : str, default="us-east-1"
        Region every client of this instance talks to.
    profile : str, optional
        Named profile from the shared AWS config files.
    max_retries : int, default=3
        Attempts per API call, using botocore's adaptive retry mode so
        throttled list calls back off on their own.
    timeout : int, default=30
        Connect and read timeout in seconds.

    Attributes
    ----------
    SWEEP_SERVICES : frozenset of str
        boto3 service names the registered resource types depend on.
    """

    SWEEP_SERVICES = frozenset({"ec2", "elb", "opensearch", "sts"})

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
    ) -> None:
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout

        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._identity: Optional[Dict[str, Any]] = None
        self._botocore_config = Config(
            region_name=region,
            retries={"max_attempts": max_retries, "mode": "adaptive"},
            connect_timeout=timeout,
            read_timeout=timeout,
        )

    @property
    def session(self) -> boto3.Session:
        """boto3 session for this region, opened on first access."""
        if self._session is None:
            self._session = self._open_session()
        return self._session

    def _open_session(self) -> boto3.Session:
        try:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
        except ProfileNotFound as e:
            raise CredentialsError(
                f"AWS profile '{self.profile}' does not exist",
                details={"profile": self.profile, "hint": CREDENTIALS_HINT},
            ) from e
        except NoRegionError as e:
            raise RegionError(f"No usable region: {self.region}", region=self.region) from e

        logger.debug(f"Opened session in {self.region} (profile={self.profile})")
        return session

    def get_client(self, service_name: str) -> Any:
        """
        Return the cached boto3 client for ``service_name``.

        Raises
        ------
        CredentialsError
            If the profile is unknown or no credentials can be found.
        ServiceError
            For any other failure while building the client.
        """
        client = self._clients.get(service_name)
        if client is not None:
            return client

        try:
            client = self.session.client(service_name, config=self._botocore_config)
        except AWSClientError:
            raise
        except NoCredentialsError as e:
            raise CredentialsError(
                "No AWS credentials available",
                details={"hint": CREDENTIALS_HINT},
            ) from e
        except Exception as e:
            raise ServiceError(
                f"Cannot build {service_name} client: {e}",
                service=service_name,
                region=self.region,
            ) from e

        self._clients[service_name] = client
        return client

    def caller_identity(self) -> Dict[str, Any]:
        """
        STS caller identity of the active credentials, fetched once.

        Raises
        ------
        CredentialsError
            If STS rejects the credentials or cannot be reached.
        """
        if self._identity is not None:
            return self._identity

        try:
            identity = self.get_client("sts").get_caller_identity()
        except AWSClientError:
            raise
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            message = (
                "AWS credentials were rejected"
                if code in INVALID_CREDENTIAL_CODES
                else f"Credential check failed: {e}"
            )
            raise CredentialsError(message, details={"error_code": code}) from e
        except Exception as e:
            raise CredentialsError(f"Credential check failed: {e}") from e

        self._identity = identity
        return identity

    def validate_credentials(self) -> bool:
        """Confirm the credentials work before any resource is touched."""
        account = self.caller_identity()["Account"]
        logger.info(f"Using AWS account {account} ({self.region})")
        return True

    def get_account_id(self) -> str:
        """Account ID of the active credentials."""
        return self.caller_identity()["Account"]

    def with_region(self, region: str) -> AWSClient:
        """Fresh client for ``region`` sharing profile and retry settings."""
        return AWSClient(
            region=region,
            profile=self.profile,
            max_retries=self.max_retries,
            timeout=self.timeout,
        )

    def close(self) -> None:
        """Drop cached clients and the session."""
        self._clients.clear()
        self._session = None
        self._identity = None

    def __enter__(self) -> AWSClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"AWSClient(region={self.region!r}, profile={self.profile!r})"
