"""Kubernetes clients authenticated with STS-signed bearer tokens."""

import base64
import tempfile
from datetime import timedelta
from pathlib import Path

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from eksboot.clients.sts_presigner import STSPresigner
from eksboot.core.exceptions import KubernetesError
from eksboot.interfaces.cloud_types import ClusterInfo
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)


class KubernetesProvider:
    """Builds Kubernetes clients for a verified caller.

    Only created once the caller's identity is known, since ``role_arn`` is
    that identity.
    """

    def __init__(self, wait_timeout: timedelta, role_arn: str, signer: STSPresigner):
        """Initialize Kubernetes provider.

        Args:
            wait_timeout: Duration after which waits on Kubernetes objects time out
            role_arn: ARN of the verified caller
            signer: Presigner producing bearer tokens
        """
        self.wait_timeout = wait_timeout
        self.role_arn = role_arn
        self.signer = signer
        self._ca_files: dict[str, Path] = {}

    def _ca_file(self, cluster: ClusterInfo) -> Path:
        # The client only accepts a CA bundle by path; one file per cluster
        ca_data = base64.b64decode(cluster.ca_certificate)

        path = self._ca_files.get(cluster.name)
        if path is None:
            with tempfile.NamedTemporaryFile(prefix=f"{cluster.name}-", suffix=".crt", delete=False) as ca_file:
                ca_file.write(ca_data)
            path = Path(ca_file.name)
            self._ca_files[cluster.name] = path
        elif not path.exists() or path.read_bytes() != ca_data:
            path.write_bytes(ca_data)

        return path

    def _configuration(self, cluster: ClusterInfo) -> client.Configuration:
        token = self.signer.get_token(cluster.name)

        configuration = client.Configuration()
        configuration.host = cluster.endpoint
        configuration.api_key = {"authorization": token.token}
        configuration.api_key_prefix = {"authorization": "Bearer"}
        configuration.ssl_ca_cert = str(self._ca_file(cluster))

        return configuration

    def close(self) -> None:
        """Remove the CA bundles written for clusters."""
        for path in self._ca_files.values():
            path.unlink(missing_ok=True)
        self._ca_files.clear()

    def new_raw_client(self, cluster: ClusterInfo) -> client.ApiClient:
        """Create a generic API client for a cluster.

        Raises:
            KubernetesError: If the client cannot be configured
        """
        try:
            api_client = client.ApiClient(self._configuration(cluster))
        except (ValueError, OSError) as e:
            logger.error("k8s_client_initialization_failed", cluster_name=cluster.name, error=str(e))
            raise KubernetesError(f"Failed to initialize Kubernetes client for {cluster.name}: {e}") from e

        logger.debug("k8s_client_initialized", cluster_name=cluster.name, role_arn=self.role_arn)
        return api_client

    def new_std_clientset(self, cluster: ClusterInfo) -> client.CoreV1Api:
        """Create a typed core/v1 client for a cluster."""
        return client.CoreV1Api(self.new_raw_client(cluster))

    def server_version(self, api_client: client.ApiClient) -> str:
        """Return the Kubernetes server version.

        Raises:
            KubernetesError: If the version endpoint cannot be read
        """
        try:
            version = client.VersionApi(api_client).get_code()
        except ApiException as e:
            logger.error("k8s_server_version_failed", status=e.status, reason=e.reason)
            raise KubernetesError(f"Failed to get server version: {e.reason}") from e

        return str(version.git_version)
