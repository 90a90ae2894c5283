"""Verified cluster provider.

A ClusterProvider only comes out of ClusterProvider.new, which checks the
caller's identity before anything Kubernetes-facing is created. Code holding a
ProviderServices has AWS clients but no way to reach a cluster.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from botocore.credentials import Credentials
from botocore.exceptions import BotoCoreError, ClientError
from kubernetes import client as k8s_client

from eksboot.adapters.cloudformation_adapter import StackCollection
from eksboot.ami.node_image import resolve_ami
from eksboot.clients.kubernetes_provider import KubernetesProvider
from eksboot.clients.session import SessionBuilder
from eksboot.core.config import SUPPORTED_REGIONS, ProviderConfig
from eksboot.core.exceptions import AWSError
from eksboot.core.models import ClusterConfig, NodeGroup
from eksboot.interfaces.cloud_types import CloudCredentials, ClusterInfo
from eksboot.interfaces.stack_manager import StackManager
from eksboot.provider.identity import verify_identity
from eksboot.provider.services import ProviderServices
from eksboot.utils.logging import get_logger
from eksboot.zones.availability_zones import (
    Discovery,
    set_availability_zones,
    validate_local_zones,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderStatus:
    """Identity of the session, known once verification succeeded."""

    iam_role_arn: str
    session_creds: Credentials | None


class ClusterProvider:
    """AWS services plus Kubernetes access for a verified caller."""

    def __init__(
        self,
        services: ProviderServices,
        status: ProviderStatus,
        kube_provider: KubernetesProvider,
    ):
        self.services = services
        self.status = status
        self.kube_provider = kube_provider

    @classmethod
    def new(
        cls,
        config: ProviderConfig,
        cluster_spec: ClusterConfig | None = None,
        verbosity: int = 3,
        environ: Mapping[str, str] | None = None,
        builder: SessionBuilder | None = None,
    ) -> ClusterProvider:
        """Build the session, verify the caller and set up Kubernetes access.

        Args:
            config: Provider configuration; region is back-filled
            cluster_spec: Cluster spec whose region is set to the provider's
            verbosity: Log verbosity
            environ: Environment to read switches from
            builder: Session builder override

        Returns:
            Verified ClusterProvider

        Raises:
            AuthError: If the caller identity cannot be verified
        """
        services = ProviderServices.from_config(
            config, verbosity=verbosity, environ=environ, builder=builder
        )

        if cluster_spec is not None:
            cluster_spec.metadata.region = services.region

        role_arn = verify_identity(services.sts())
        status = ProviderStatus(
            iam_role_arn=role_arn,
            session_creds=services.session.get_credentials(),
        )

        kube_provider = KubernetesProvider(
            wait_timeout=config.wait_timeout,
            role_arn=role_arn,
            signer=services.sts_presigner(),
        )

        logger.info("cluster_provider_ready", region=services.region, role_arn=role_arn)
        return cls(services, status, kube_provider)

    @property
    def region(self) -> str:
        return self.services.region

    def is_supported_region(self) -> bool:
        return self.region in SUPPORTED_REGIONS

    def get_credentials(self) -> CloudCredentials:
        """Return the effective credentials of the session.

        Raises:
            AWSError: If the session has no credentials
        """
        if self.status.session_creds is None:
            raise AWSError("getting effective credentials: no credentials in session")

        try:
            frozen = self.status.session_creds.get_frozen_credentials()
        except BotoCoreError as e:
            raise AWSError(f"getting effective credentials: {e}") from e

        return CloudCredentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
        )

    def get_credentials_env(self) -> list[str]:
        """Return the effective credentials as environment assignments."""
        return self.get_credentials().to_env()

    def get_cluster_info(self, cluster_name: str) -> ClusterInfo:
        """Describe an EKS cluster.

        Raises:
            AWSError: If the cluster cannot be described
        """
        try:
            logger.debug("getting_eks_cluster_info", cluster_name=cluster_name)
            cluster = self.services.eks().describe_cluster(name=cluster_name)["cluster"]
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error("eks_cluster_info_failed", cluster_name=cluster_name, error_code=error_code)
            if error_code == "ResourceNotFoundException":
                raise AWSError(f"EKS cluster not found: {cluster_name}") from e
            raise AWSError(f"Failed to get cluster info for {cluster_name}: {error_code}") from e
        except BotoCoreError as e:
            raise AWSError(f"Failed to get cluster info for {cluster_name}: {e}") from e

        return ClusterInfo(
            name=cluster.get("name", cluster_name),
            endpoint=cluster["endpoint"],
            ca_certificate=cluster["certificateAuthority"]["data"],
            version=cluster.get("version"),
            status=cluster.get("status"),
            arn=cluster.get("arn"),
        )

    def new_stack_manager(self, spec: ClusterConfig) -> StackManager:
        return StackCollection(self.services, spec)

    def resolve_ami(self, version: str, node_group: NodeGroup) -> str:
        """Resolve and set the image of a node group."""
        return resolve_ami(self.services, version, node_group)

    def set_availability_zones(
        self,
        spec: ClusterConfig,
        given: Sequence[str] = (),
        discover: Discovery | None = None,
    ) -> list[str]:
        """Set the availability zones of a cluster spec in this provider's region."""
        return set_availability_zones(spec, given, self.services.ec2(), self.region, discover)

    def validate_local_zones(self, local_zones: Sequence[str]) -> None:
        """Check that every named zone is an available local zone in this region."""
        validate_local_zones(self.services.ec2(), local_zones, self.region)

    def new_raw_client(self, spec: ClusterConfig) -> k8s_client.ApiClient:
        return self.kube_provider.new_raw_client(self.get_cluster_info(spec.metadata.name))

    def new_std_clientset(self, spec: ClusterConfig) -> k8s_client.CoreV1Api:
        return self.kube_provider.new_std_clientset(self.get_cluster_info(spec.metadata.name))

    def server_version(self, api_client: Any) -> str:
        return self.kube_provider.server_version(api_client)
