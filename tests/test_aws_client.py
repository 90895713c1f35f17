"""
Tests for the AWS Client module.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from cloudsweep.core.aws_client import AWSClient
from cloudsweep.core.exceptions import AWSClientError, CredentialsError


class TestAWSClient:
    """Tests for AWSClient class."""

    def test_client_initialization(self, mock_aws_environment):
        """Test basic client initialization."""
        client = AWSClient(region="us-east-1")
        assert client.region == "us-east-1"
        assert client.profile is None

    def test_client_with_profile(self, mock_aws_environment):
        """Test client initialization with profile."""
        # moto doesn't use profiles; only the attribute is checked
        client = AWSClient(region="us-west-2", profile="test-profile")
        assert client.region == "us-west-2"
        assert client.profile == "test-profile"

    @pytest.mark.parametrize("service", ["ec2", "elb", "opensearch", "sts"])
    def test_get_client(self, mock_aws_environment, service):
        """Test getting clients for every service in use."""
        client = AWSClient(region="us-east-1")
        assert client.get_client(service) is not None
        assert service in AWSClient.SWEEP_SERVICES

    def test_clients_are_cached(self, mock_aws_environment):
        """Test that a service client is created once."""
        client = AWSClient(region="us-east-1")
        assert client.get_client("ec2") is client.get_client("ec2")

    def test_validate_credentials(self, mock_aws_environment):
        """Test credential validation."""
        client = AWSClient(region="us-east-1")
        assert client.validate_credentials() is True

    def test_caller_identity_is_cached(self, mock_aws_environment):
        """Test that STS is asked once per client."""
        client = AWSClient(region="us-east-1")
        sts = MagicMock()
        sts.get_caller_identity.return_value = {"Account": "123456789012"}
        client._clients["sts"] = sts

        assert client.get_account_id() == "123456789012"
        assert client.validate_credentials() is True
        sts.get_caller_identity.assert_called_once()

    def test_get_account_id(self, mock_aws_environment):
        """Test getting account ID."""
        account_id = AWSClient(region="us-east-1").get_account_id()
        assert len(account_id) == 12  # AWS account IDs are 12 digits

    def test_with_region(self, mock_aws_environment):
        """Test creating client for different region."""
        client = AWSClient(region="us-east-1", profile="test")
        new_client = client.with_region("eu-west-1")

        assert new_client.region == "eu-west-1"
        assert new_client.profile == "test"
        assert client.region == "us-east-1"  # Source client unchanged

    def test_retry_config(self, mock_aws_environment):
        """Test that retry configuration is applied."""
        client = AWSClient(region="us-east-1", max_retries=5, timeout=60)
        assert client.max_retries == 5
        assert client.timeout == 60

    def test_context_manager(self, mock_aws_environment):
        """Test that leaving the context drops cached clients."""
        with AWSClient(region="us-east-1") as client:
            client.get_client("ec2")
            assert client._clients
        assert client._clients == {}


class TestAWSClientErrors:
    """Tests for AWSClient error handling."""

    def test_invalid_profile_error(self, mock_aws_environment):
        """Test that an unknown profile raises CredentialsError."""
        client = AWSClient(region="us-east-1", profile="nonexistent-profile-xyz")

        with pytest.raises(CredentialsError):
            client.get_client("ec2")

    def test_rejected_credentials(self, mock_aws_environment):
        """Test that an STS rejection becomes CredentialsError."""
        client = AWSClient(region="us-east-1")
        sts = MagicMock()
        sts.get_caller_identity.side_effect = ClientError(
            {"Error": {"Code": "ExpiredToken", "Message": "token expired"}},
            "GetCallerIdentity",
        )
        client._clients["sts"] = sts

        with pytest.raises(CredentialsError, match="rejected") as exc_info:
            client.validate_credentials()
        assert exc_info.value.details["error_code"] == "ExpiredToken"

    def test_credentials_error_is_client_error(self):
        """Test the exception hierarchy."""
        assert issubclass(CredentialsError, AWSClientError)
