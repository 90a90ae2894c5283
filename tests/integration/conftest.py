"""Integration test fixtures and configuration."""

import os

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError

from eksboot.core.config import ProviderConfig


@pytest.fixture
def aws_test_region() -> str:
    """AWS region for integration tests."""
    return os.getenv("AWS_TEST_REGION", "us-west-2")


@pytest.fixture
def skip_if_no_aws_credentials(aws_test_region: str):
    """Skip test if AWS credentials are not available."""
    try:
        sts = boto3.client("sts", region_name=aws_test_region)
        sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        pytest.skip(f"AWS credentials not available: {e}")


@pytest.fixture
def integration_provider_config(aws_test_region: str) -> ProviderConfig:
    """Provider configuration for integration testing.

    Uses environment variables to allow testing against other accounts:
    - AWS_TEST_REGION
    - AWS_TEST_PROFILE
    """
    return ProviderConfig(region=aws_test_region, profile=os.getenv("AWS_TEST_PROFILE", ""))
