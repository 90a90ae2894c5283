"""Unit tests for Kubernetes client construction."""

import base64
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from eksboot.clients.kubernetes_provider import KubernetesProvider
from eksboot.core.exceptions import KubernetesError
from eksboot.interfaces.cloud_types import ClusterInfo, ClusterToken

CA_PEM = b"-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


@pytest.fixture
def cluster_info() -> ClusterInfo:
    return ClusterInfo(
        name="test-cluster",
        endpoint="https://ABC.gr7.us-west-2.eks.amazonaws.com",
        ca_certificate=base64.b64encode(CA_PEM).decode(),
        version="1.29",
    )


@pytest.fixture
def kube_provider() -> KubernetesProvider:
    signer = MagicMock()
    signer.get_token.return_value = ClusterToken(token="k8s-aws-v1.abc")
    return KubernetesProvider(
        wait_timeout=timedelta(minutes=25),
        role_arn="arn:aws:iam::123456789012:role/eksboot-test",
        signer=signer,
    )


class TestNewRawClient:
    """Tests for KubernetesProvider.new_raw_client."""

    def test_configures_endpoint_token_and_ca(
        self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo
    ) -> None:
        """Test the client is configured from the cluster and a fresh token."""
        api_client = kube_provider.new_raw_client(cluster_info)

        configuration = api_client.configuration
        assert configuration.host == cluster_info.endpoint
        assert configuration.api_key == {"authorization": "k8s-aws-v1.abc"}
        assert configuration.api_key_prefix == {"authorization": "Bearer"}
        assert Path(configuration.ssl_ca_cert).read_bytes() == CA_PEM
        kube_provider.signer.get_token.assert_called_once_with("test-cluster")

    def test_ca_file_reused_per_cluster(
        self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo
    ) -> None:
        """Test repeated clients for one cluster share a single CA file."""
        first = kube_provider.new_raw_client(cluster_info).configuration.ssl_ca_cert
        second = kube_provider.new_raw_client(cluster_info).configuration.ssl_ca_cert

        assert first == second
        assert Path(first).read_bytes() == CA_PEM

    def test_rotated_ca_rewritten(self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo) -> None:
        """Test a changed CA replaces the cluster's file contents."""
        path = kube_provider.new_raw_client(cluster_info).configuration.ssl_ca_cert
        rotated = b"-----BEGIN CERTIFICATE-----\nMIIC\n-----END CERTIFICATE-----\n"
        cluster_info.ca_certificate = base64.b64encode(rotated).decode()

        assert kube_provider.new_raw_client(cluster_info).configuration.ssl_ca_cert == path
        assert Path(path).read_bytes() == rotated

    def test_close_removes_ca_files(self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo) -> None:
        """Test close deletes every CA file written."""
        path = Path(kube_provider.new_raw_client(cluster_info).configuration.ssl_ca_cert)

        kube_provider.close()

        assert not path.exists()
        kube_provider.close()

    def test_invalid_ca(self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo) -> None:
        """Test an undecodable CA raises KubernetesError."""
        cluster_info.ca_certificate = "not base64!"

        with pytest.raises(KubernetesError, match="test-cluster"):
            kube_provider.new_raw_client(cluster_info)

    def test_std_clientset(self, kube_provider: KubernetesProvider, cluster_info: ClusterInfo) -> None:
        """Test a typed core/v1 client is returned."""
        assert isinstance(kube_provider.new_std_clientset(cluster_info), client.CoreV1Api)


class TestServerVersion:
    """Tests for KubernetesProvider.server_version."""

    def test_returns_git_version(self, kube_provider: KubernetesProvider) -> None:
        with patch("eksboot.clients.kubernetes_provider.client.VersionApi") as mock_api:
            mock_api.return_value.get_code.return_value = MagicMock(git_version="v1.29.3-eks-1")

            assert kube_provider.server_version(MagicMock()) == "v1.29.3-eks-1"

    def test_api_error(self, kube_provider: KubernetesProvider) -> None:
        with patch("eksboot.clients.kubernetes_provider.client.VersionApi") as mock_api:
            mock_api.return_value.get_code.side_effect = ApiException(status=403, reason="Forbidden")

            with pytest.raises(KubernetesError, match="Forbidden"):
                kube_provider.server_version(MagicMock())
