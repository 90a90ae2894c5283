"""Interface definitions for provider collaborators."""

from eksboot.interfaces.cloud_types import CloudCredentials, ClusterInfo, ClusterToken
from eksboot.interfaces.stack_manager import StackManager

__all__ = [
    "CloudCredentials",
    "ClusterInfo",
    "ClusterToken",
    "StackManager",
]
