"""Data types shared by provider collaborators."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CloudCredentials:
    """Effective AWS credentials of a session."""

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    def to_env(self) -> list[str]:
        """Render as environment assignments for child processes."""
        return [
            f"AWS_ACCESS_KEY_ID={self.access_key_id}",
            f"AWS_SECRET_ACCESS_KEY={self.secret_access_key}",
            f"AWS_SESSION_TOKEN={self.session_token or ''}",
        ]


@dataclass
class ClusterInfo:
    """EKS cluster information."""

    name: str
    endpoint: str
    ca_certificate: str
    version: str | None = None
    status: str | None = None
    arn: str | None = None


@dataclass
class ClusterToken:
    """Cluster authentication token."""

    token: str
    expiration: datetime | None = None
