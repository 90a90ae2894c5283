"""Core data models for eksboot."""

import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eksboot.core.exceptions import ConfigurationError

API_VERSION = "eksboot.io/v1alpha1"
CLUSTER_CONFIG_KIND = "ClusterConfig"

DEFAULT_VERSION = "1.29"
DEFAULT_INSTANCE_TYPE = "m5.large"

# Minimum number of availability zones a cluster may span
MIN_REQUIRED_AVAILABILITY_ZONES = 2
# Number of zones picked when none are given
RECOMMENDED_AVAILABILITY_ZONES = 3


class AMIFamily:
    """Supported node image families."""

    AMAZON_LINUX_2 = "AmazonLinux2"
    AMAZON_LINUX_2023 = "AmazonLinux2023"
    UBUNTU_2004 = "Ubuntu2004"
    UBUNTU_2204 = "Ubuntu2204"
    BOTTLEROCKET = "Bottlerocket"
    WINDOWS_SERVER_2019_CORE = "WindowsServer2019CoreContainer"
    WINDOWS_SERVER_2019_FULL = "WindowsServer2019FullContainer"
    WINDOWS_SERVER_2022_CORE = "WindowsServer2022CoreContainer"
    WINDOWS_SERVER_2022_FULL = "WindowsServer2022FullContainer"

    DEFAULT = AMAZON_LINUX_2

    @classmethod
    def windows(cls) -> tuple[str, ...]:
        return (
            cls.WINDOWS_SERVER_2019_CORE,
            cls.WINDOWS_SERVER_2019_FULL,
            cls.WINDOWS_SERVER_2022_CORE,
            cls.WINDOWS_SERVER_2022_FULL,
        )

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return (
            cls.AMAZON_LINUX_2,
            cls.AMAZON_LINUX_2023,
            cls.UBUNTU_2004,
            cls.UBUNTU_2204,
            cls.BOTTLEROCKET,
            *cls.windows(),
        )


class _SpecModel(BaseModel):
    """Base for config document models: camelCase keys, unknown keys rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ClusterMeta(_SpecModel):
    """Cluster metadata."""

    name: str
    region: str = ""
    version: str = DEFAULT_VERSION
    tags: dict[str, str] = Field(default_factory=dict)


class InstancesDistribution(_SpecModel):
    """Mixed instances policy for a node group."""

    instance_types: list[str] = Field(default_factory=list)
    on_demand_base_capacity: int | None = None


class NodeGroup(_SpecModel):
    """Node group image request.

    ``ami`` holds the resolution mode ("auto", "auto-ssm" or "") until an AMI
    is resolved, after which it holds the image id.
    """

    name: str
    ami: str = ""
    ami_family: str = AMIFamily.DEFAULT
    instance_type: str = DEFAULT_INSTANCE_TYPE
    instance_types: list[str] = Field(default_factory=list)
    instances_distribution: InstancesDistribution | None = None
    desired_capacity: int | None = None
    availability_zones: list[str] = Field(default_factory=list)
    local_zones: list[str] = Field(default_factory=list)


class ClusterConfig(_SpecModel):
    """Cluster configuration document."""

    api_version: str = API_VERSION
    kind: str = CLUSTER_CONFIG_KIND
    metadata: ClusterMeta
    availability_zones: list[str] = Field(default_factory=list)
    local_zones: list[str] = Field(default_factory=list)
    node_groups: list[NodeGroup] = Field(default_factory=list)
    managed_node_groups: list[NodeGroup] = Field(default_factory=list)

    def all_node_groups(self) -> list[NodeGroup]:
        """Return unmanaged and managed node groups together."""
        return [*self.node_groups, *self.managed_node_groups]


def parse_config(data: str | bytes) -> ClusterConfig:
    """Parse a YAML document into a ClusterConfig.

    Unknown keys are rejected.

    Args:
        data: Raw YAML document

    Returns:
        ClusterConfig instance

    Raises:
        ConfigurationError: If the document is not valid YAML or not a valid ClusterConfig
    """
    try:
        raw: Any = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse cluster config: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError("expected cluster config to be a mapping")

    kind = raw.get("kind", CLUSTER_CONFIG_KIND)
    if kind != CLUSTER_CONFIG_KIND:
        raise ConfigurationError(
            f"expected to decode object of kind {CLUSTER_CONFIG_KIND}; got {kind}"
        )

    try:
        return ClusterConfig.model_validate(raw)
    except Exception as e:
        raise ConfigurationError(f"Invalid cluster config: {e}") from e


def load_cluster_config(config_file: str | Path) -> ClusterConfig:
    """Load a ClusterConfig from a file, or from stdin when given "-".

    Args:
        config_file: Path to the config file

    Returns:
        ClusterConfig instance

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    try:
        if str(config_file) == "-":
            data = sys.stdin.read()
        else:
            data = Path(config_file).expanduser().read_text()
    except OSError as e:
        raise ConfigurationError(f"reading config file {str(config_file)!r}: {e}") from e

    try:
        return parse_config(data)
    except ConfigurationError as e:
        raise ConfigurationError(f"loading config file {str(config_file)!r}: {e}") from e
