"""Stack manager interface for CloudFormation-backed resources."""

from abc import ABC, abstractmethod
from typing import Any


class StackManager(ABC):
    """Abstract handle over the CloudFormation stacks of one cluster.

    Stack creation, update and deletion live behind this interface; the
    bootstrap pipeline only hands out the handle.
    """

    @abstractmethod
    def list_cluster_stacks(self) -> list[dict[str, Any]]:
        """List stacks that belong to the cluster.

        Returns:
            Stack descriptions as returned by CloudFormation

        Raises:
            AWSError: If listing fails
        """

    @abstractmethod
    def describe_cluster_stack(self) -> dict[str, Any] | None:
        """Describe the cluster's control plane stack.

        Returns:
            Stack description, or None if the stack does not exist

        Raises:
            AWSError: If the describe call fails
        """
