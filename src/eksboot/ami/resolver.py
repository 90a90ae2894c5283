"""AMI resolution strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from eksboot.core.exceptions import ConfigurationError, EksbootError, ResolutionFailure
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)


class AMIMode(str, Enum):
    """How a node group asks for its image."""

    AUTO = "auto"
    AUTO_SSM = "auto-ssm"
    UNSPECIFIED = ""

    @classmethod
    def parse(cls, value: str) -> AMIMode:
        """Parse a node group ``ami`` value.

        Raises:
            ConfigurationError: If the value is not a resolution mode
        """
        try:
            return cls(value)
        except ValueError as e:
            raise ConfigurationError(f"invalid AMI value: {value!r}") from e


class Resolver(ABC):
    """Finds an image id for a node configuration."""

    @abstractmethod
    def resolve(self, region: str, version: str, instance_type: str, ami_family: str) -> str:
        """Resolve an image id.

        Args:
            region: AWS region
            version: Kubernetes version
            instance_type: Instance type the image has to support
            ami_family: Image family

        Returns:
            Image id, or an empty string if no image matches

        Raises:
            EksbootError: If the lookup fails
        """


class MultiResolver(Resolver):
    """Tries resolvers in order; the first non-empty id wins."""

    def __init__(self, *resolvers: Resolver):
        self.resolvers = resolvers

    def resolve(self, region: str, version: str, instance_type: str, ami_family: str) -> str:
        for resolver in self.resolvers:
            try:
                image_id = resolver.resolve(region, version, instance_type, ami_family)
            except EksbootError as e:
                logger.debug(
                    "ami_resolver_failed",
                    resolver=type(resolver).__name__,
                    error=str(e),
                )
                continue

            if image_id:
                return image_id

        raise ResolutionFailure(region, version, instance_type, ami_family)
