"""Unit tests for the SSM parameter AMI resolver."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from eksboot.ami.ssm_resolver import SSMResolver, make_ssm_parameter_name
from eksboot.core.exceptions import AWSError, ConfigurationError
from eksboot.core.models import AMIFamily


class TestMakeSSMParameterName:
    """Tests for make_ssm_parameter_name."""

    @pytest.mark.parametrize(
        ("instance_type", "family", "expected"),
        [
            (
                "m5.large",
                AMIFamily.AMAZON_LINUX_2,
                "/aws/service/eks/optimized-ami/1.29/amazon-linux-2/recommended/image_id",
            ),
            (
                "p3.2xlarge",
                AMIFamily.AMAZON_LINUX_2,
                "/aws/service/eks/optimized-ami/1.29/amazon-linux-2-gpu/recommended/image_id",
            ),
            (
                "m6g.large",
                AMIFamily.AMAZON_LINUX_2,
                "/aws/service/eks/optimized-ami/1.29/amazon-linux-2-arm64/recommended/image_id",
            ),
            (
                "g5.xlarge",
                AMIFamily.AMAZON_LINUX_2023,
                "/aws/service/eks/optimized-ami/1.29/amazon-linux-2023/x86_64/nvidia/recommended/image_id",
            ),
            (
                "m5.large",
                AMIFamily.UBUNTU_2204,
                "/aws/service/canonical/ubuntu/eks/22.04/1.29/stable/current/amd64/hvm/ebs-gp2/ami-id",
            ),
            (
                "m6g.large",
                AMIFamily.BOTTLEROCKET,
                "/aws/service/bottlerocket/aws-k8s-1.29/arm64/latest/image_id",
            ),
            (
                "m5.large",
                AMIFamily.WINDOWS_SERVER_2022_CORE,
                "/aws/service/ami-windows-latest/Windows_Server-2022-English-Core-EKS_Optimized-1.29/image_id",
            ),
        ],
    )
    def test_parameter_names(self, instance_type: str, family: str, expected: str) -> None:
        assert make_ssm_parameter_name("1.29", instance_type, family) == expected

    def test_unknown_family(self) -> None:
        """Test an unknown family raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="unknown value for AMI family"):
            make_ssm_parameter_name("1.29", "m5.large", "Gentoo")


class TestSSMResolver:
    """Tests for SSMResolver.resolve."""

    def test_returns_parameter_value(self, mock_ssm_client: MagicMock) -> None:
        """Test the parameter value is the image id."""
        mock_ssm_client.get_parameter.return_value = {"Parameter": {"Value": "ami-0123\n"}}

        image_id = SSMResolver(mock_ssm_client).resolve("us-west-2", "1.29", "m5.large", "AmazonLinux2")

        assert image_id == "ami-0123"
        mock_ssm_client.get_parameter.assert_called_once_with(
            Name="/aws/service/eks/optimized-ami/1.29/amazon-linux-2/recommended/image_id"
        )

    def test_parameter_not_found_is_empty(self, mock_ssm_client: MagicMock) -> None:
        """Test a missing parameter is a miss, not an error."""
        mock_ssm_client.get_parameter.side_effect = ClientError(
            {"Error": {"Code": "ParameterNotFound", "Message": "not found"}}, "GetParameter"
        )

        assert SSMResolver(mock_ssm_client).resolve("us-west-2", "1.29", "m5.large", "AmazonLinux2") == ""

    def test_other_errors_raise(self, mock_ssm_client: MagicMock) -> None:
        """Test other API errors raise AWSError."""
        mock_ssm_client.get_parameter.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetParameter"
        )

        with pytest.raises(AWSError, match="AccessDeniedException"):
            SSMResolver(mock_ssm_client).resolve("us-west-2", "1.29", "m5.large", "AmazonLinux2")
