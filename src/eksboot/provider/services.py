"""AWS service access for a provider whose identity is not yet verified."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

import boto3

from eksboot.clients.session import SessionBuilder, client_config
from eksboot.clients.sts_presigner import STSPresigner
from eksboot.core.config import (
    CLOUDFORMATION_ENDPOINT_ENV,
    CLOUDTRAIL_ENDPOINT_ENV,
    ENABLE_CREDENTIAL_CACHE_ENV,
    ProviderConfig,
)
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

_ENDPOINT_OVERRIDES = (
    ("cloudformation", CLOUDFORMATION_ENDPOINT_ENV),
    ("cloudtrail", CLOUDTRAIL_ENDPOINT_ENV),
)


class ProviderServices:
    """Session and service clients built from a ProviderConfig.

    Clients are created lazily and reused. Nothing here talks to Kubernetes;
    that needs a verified ClusterProvider.
    """

    def __init__(
        self,
        config: ProviderConfig,
        session: boto3.Session,
        endpoints: Mapping[str, str] | None = None,
    ):
        """Initialize provider services.

        Args:
            config: Provider configuration, with region already resolved
            session: Session built from the configuration
            endpoints: Endpoint URL overrides by service name
        """
        self.config = config
        self.session = session
        self.endpoints = dict(endpoints or {})
        self._client_config = client_config(config)
        self._clients: dict[str, Any] = {}

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        verbosity: int = 3,
        environ: Mapping[str, str] | None = None,
        builder: SessionBuilder | None = None,
    ) -> ProviderServices:
        """Build the session and read environment switches once.

        Args:
            config: Provider configuration; region is back-filled
            verbosity: Log verbosity passed to the session builder
            environ: Environment to read switches from (defaults to os.environ)
            builder: Session builder override

        Returns:
            ProviderServices instance
        """
        env = os.environ if environ is None else environ

        if builder is None:
            builder = SessionBuilder(
                verbosity=verbosity,
                enable_credential_cache=env.get(ENABLE_CREDENTIAL_CACHE_ENV, "") != "",
            )
        session = builder.build(config)

        endpoints = {}
        for service, variable in _ENDPOINT_OVERRIDES:
            if variable in env:
                logger.debug("setting_custom_endpoint", service=service, endpoint=env[variable])
                endpoints[service] = env[variable]

        return cls(config, session, endpoints)

    @property
    def region(self) -> str:
        return self.config.region or ""

    @property
    def profile(self) -> str:
        return self.config.profile

    @property
    def wait_timeout(self) -> timedelta:
        """Duration after which any wait operation times out."""
        return self.config.wait_timeout

    @property
    def cloudformation_role_arn(self) -> str | None:
        """Service role CloudFormation uses on the caller's behalf, if any."""
        return self.config.cloudformation_role_arn

    @property
    def cloudformation_disable_rollback(self) -> bool:
        return self.config.cloudformation_disable_rollback

    def client(self, service_name: str) -> Any:
        """Get or create a client for an AWS service.

        Args:
            service_name: boto3 service name

        Returns:
            boto3 client
        """
        if service_name not in self._clients:
            self._clients[service_name] = self.session.client(
                service_name,
                region_name=self.region,
                config=self._client_config,
                endpoint_url=self.endpoints.get(service_name),
            )
        return self._clients[service_name]

    def ec2(self) -> Any:
        return self.client("ec2")

    def ssm(self) -> Any:
        return self.client("ssm")

    def sts(self) -> Any:
        return self.client("sts")

    def eks(self) -> Any:
        return self.client("eks")

    def cloudformation(self) -> Any:
        return self.client("cloudformation")

    def cloudtrail(self) -> Any:
        return self.client("cloudtrail")

    def cloudwatch_logs(self) -> Any:
        return self.client("logs")

    def autoscaling(self) -> Any:
        return self.client("autoscaling")

    def sts_presigner(self) -> STSPresigner:
        return STSPresigner(self.session, self.region)
