"""CloudFormation adapter implementing the StackManager interface."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from eksboot.core.exceptions import AWSError
from eksboot.interfaces.stack_manager import StackManager
from eksboot.utils.logging import get_logger

if TYPE_CHECKING:
    from eksboot.core.models import ClusterConfig
    from eksboot.provider.services import ProviderServices

logger = get_logger(__name__)

CLUSTER_NAME_TAG = "eksboot.io/cluster-name"


class StackCollection(StackManager):
    """Stacks of one cluster, looked up through CloudFormation."""

    def __init__(self, provider: ProviderServices, spec: ClusterConfig):
        """Initialize stack collection.

        Args:
            provider: Provider services supplying the CloudFormation client
            spec: Cluster the stacks belong to
        """
        self.cloudformation = provider.cloudformation()
        self.role_arn = provider.cloudformation_role_arn
        self.disable_rollback = provider.cloudformation_disable_rollback
        self.spec = spec

    @property
    def cluster_name(self) -> str:
        return self.spec.metadata.name

    @property
    def cluster_stack_name(self) -> str:
        return f"eksboot-{self.cluster_name}-cluster"

    def stack_request_options(self) -> dict[str, Any]:
        """CreateStack/UpdateStack arguments shared by every stack of the cluster.

        The service role is passed only when configured, so CloudFormation
        falls back to the caller's own credentials otherwise.
        """
        options: dict[str, Any] = {
            "DisableRollback": self.disable_rollback,
            "Tags": [{"Key": CLUSTER_NAME_TAG, "Value": self.cluster_name}],
        }
        if self.role_arn:
            options["RoleARN"] = self.role_arn
        return options

    def list_cluster_stacks(self) -> list[dict[str, Any]]:
        stacks = []
        try:
            paginator = self.cloudformation.get_paginator("describe_stacks")
            for page in paginator.paginate():
                for stack in page.get("Stacks", []):
                    tags = {t["Key"]: t["Value"] for t in stack.get("Tags", [])}
                    if tags.get(CLUSTER_NAME_TAG) == self.cluster_name:
                        stacks.append(stack)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error("list_stacks_failed", cluster_name=self.cluster_name, error_code=error_code)
            raise AWSError(f"Failed to list stacks for {self.cluster_name}: {error_code}") from e
        except BotoCoreError as e:
            raise AWSError(f"Failed to list stacks for {self.cluster_name}: {e}") from e

        logger.debug("cluster_stacks_listed", cluster_name=self.cluster_name, count=len(stacks))
        return stacks

    def describe_cluster_stack(self) -> dict[str, Any] | None:
        try:
            response = self.cloudformation.describe_stacks(StackName=self.cluster_stack_name)
        except ClientError as e:
            error = e.response["Error"]
            if error["Code"] == "ValidationError" and "does not exist" in error.get("Message", ""):
                return None
            logger.error("describe_stack_failed", stack_name=self.cluster_stack_name, error_code=error["Code"])
            raise AWSError(f"Failed to describe stack {self.cluster_stack_name}: {error['Code']}") from e
        except BotoCoreError as e:
            raise AWSError(f"Failed to describe stack {self.cluster_stack_name}: {e}") from e

        stacks = response.get("Stacks", [])
        return stacks[0] if stacks else None
