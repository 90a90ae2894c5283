"""Configuration management for eksboot."""

from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from eksboot.core.exceptions import ConfigurationError

DEFAULT_REGION = "us-west-2"

# Environment switches, read once per provider construction
ENABLE_CREDENTIAL_CACHE_ENV = "EKSBOOT_ENABLE_CREDENTIAL_CACHE"
CREDENTIAL_CACHE_FILE_ENV = "EKSBOOT_CREDENTIAL_CACHE_FILE"
CLOUDFORMATION_ENDPOINT_ENV = "AWS_CLOUDFORMATION_ENDPOINT"
CLOUDTRAIL_ENDPOINT_ENV = "AWS_CLOUDTRAIL_ENDPOINT"

SUPPORTED_REGIONS = (
    "us-east-1",
    "us-east-2",
    "us-west-1",
    "us-west-2",
    "ca-central-1",
    "ca-west-1",
    "eu-west-1",
    "eu-west-2",
    "eu-west-3",
    "eu-north-1",
    "eu-south-1",
    "eu-south-2",
    "eu-central-1",
    "eu-central-2",
    "af-south-1",
    "ap-northeast-1",
    "ap-northeast-2",
    "ap-northeast-3",
    "ap-south-1",
    "ap-south-2",
    "ap-east-1",
    "ap-southeast-1",
    "ap-southeast-2",
    "ap-southeast-3",
    "ap-southeast-4",
    "ap-southeast-5",
    "me-south-1",
    "me-central-1",
    "il-central-1",
    "sa-east-1",
    "cn-north-1",
    "cn-northwest-1",
    "us-gov-west-1",
    "us-gov-east-1",
)


class ProviderConfig(BaseModel):
    """AWS provider configuration.

    Only ``region`` is expected to change after a session has been built from it,
    when it is back-filled from the resolved session.
    """

    model_config = ConfigDict(extra="forbid")

    region: str | None = None
    profile: str = ""
    wait_timeout: timedelta = Field(default=timedelta(minutes=25))
    cloudformation_role_arn: str | None = None
    cloudformation_disable_rollback: bool = False
    assume_role_duration: timedelta = Field(default=timedelta(minutes=30))
    connect_timeout: int = 60  # seconds
    read_timeout: int = 60
    max_retry_attempts: int = 13


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: str = "console"
    output: str = "stderr"
    verbosity: int = 3


class EksbootConfig(BaseModel):
    """Main eksboot configuration."""

    model_config = ConfigDict(extra="forbid")

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "EksbootConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            EksbootConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**data)
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
