"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from eksboot.core.config import ProviderConfig
from eksboot.core.models import ClusterConfig, ClusterMeta, NodeGroup


@pytest.fixture(autouse=True)
def clean_eksboot_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep environment switches from the developer's shell out of tests."""
    for variable in (
        "EKSBOOT_ENABLE_CREDENTIAL_CACHE",
        "EKSBOOT_CREDENTIAL_CACHE_FILE",
        "AWS_CLOUDFORMATION_ENDPOINT",
        "AWS_CLOUDTRAIL_ENDPOINT",
    ):
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture
def sample_node_group() -> NodeGroup:
    """Provide a node group asking for an unspecified image mode."""
    return NodeGroup(name="ng-1", instance_type="m5.large")


@pytest.fixture
def sample_cluster_config(sample_node_group: NodeGroup) -> ClusterConfig:
    """Provide a sample cluster configuration for testing."""
    return ClusterConfig(
        metadata=ClusterMeta(name="test-cluster", version="1.29"),
        node_groups=[sample_node_group],
    )


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provide a provider configuration with an explicit region."""
    return ProviderConfig(region="us-west-2")


@pytest.fixture
def mock_ec2_client() -> MagicMock:
    """Mock EC2 client for testing."""
    return MagicMock()


@pytest.fixture
def mock_ssm_client() -> MagicMock:
    """Mock SSM client for testing."""
    return MagicMock()


@pytest.fixture
def mock_sts_client() -> MagicMock:
    """Mock STS client returning a caller identity."""
    client = MagicMock()
    client.get_caller_identity.return_value = {
        "UserId": "AIDAEXAMPLE",
        "Account": "123456789012",
        "Arn": "arn:aws:iam::123456789012:role/eksboot-test",
    }
    return client


@pytest.fixture
def mock_aws_session() -> MagicMock:
    """Mock AWS session for testing."""
    session = MagicMock()
    session.region_name = "us-west-2"
    return session


# ==============================================================================
# Pytest Markers
# ==============================================================================


def pytest_configure(config: Any) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
