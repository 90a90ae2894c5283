"""Authenticated AWS session construction."""

from collections.abc import Callable

import boto3
import botocore.session
from botocore.config import Config
from botocore.credentials import Credentials
from botocore.exceptions import BotoCoreError

from eksboot import __version__
from eksboot.core.config import DEFAULT_REGION, ProviderConfig
from eksboot.core.exceptions import CacheError
from eksboot.credentials.file_cache import (
    CredentialCache,
    FileCacheCredentialProvider,
    get_cache_file_path,
)
from eksboot.utils.logging import AWS_DEBUG_LEVEL, get_logger
from eksboot.utils.retry import register_retry_logging, retry_config
from eksboot.utils.tracing import register_tracing

logger = get_logger(__name__)

USER_AGENT = f"eksboot/{__version__}"


def client_config(config: ProviderConfig) -> Config:
    """botocore client configuration shared by every service client.

    Args:
        config: Provider configuration

    Returns:
        Config with user agent, timeouts and retry settings
    """
    base = Config(
        user_agent_extra=USER_AGENT,
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    )
    return base.merge(retry_config(config.max_retry_attempts))


class SessionBuilder:
    """Builds the boto3 session a provider works with."""

    def __init__(
        self,
        verbosity: int = 3,
        enable_credential_cache: bool = False,
        cache_factory: Callable[[], CredentialCache] | None = None,
    ):
        """Initialize session builder.

        Args:
            verbosity: Log verbosity; AWS_DEBUG_LEVEL and above traces every request
            enable_credential_cache: Serve credentials through the on-disk cache
            cache_factory: Creates the credential cache (defaults to the standard path)
        """
        self.verbosity = verbosity
        self.enable_credential_cache = enable_credential_cache
        self.cache_factory = cache_factory or (lambda: CredentialCache(get_cache_file_path()))

    def build(self, config: ProviderConfig) -> boto3.Session:
        """Build a session for the given provider configuration.

        When ``config.region`` is empty it is back-filled from the resolved
        session. If the session did not resolve a region either, the default
        region is set and the session is built once more; the second build
        always has a region, so it never recurses.

        Args:
            config: Provider configuration, region may be updated in place

        Returns:
            boto3 Session
        """
        botocore_session = self._new_botocore_session(config)

        register_retry_logging(botocore_session)
        if self.verbosity >= AWS_DEBUG_LEVEL:
            register_tracing(botocore_session)

        if self.enable_credential_cache:
            self._install_credential_cache(botocore_session, config)

        session = boto3.Session(botocore_session=botocore_session)

        if not config.region:
            if session.region_name:
                config.region = session.region_name
            else:
                logger.debug("no_region_configured", default_region=DEFAULT_REGION)
                config.region = DEFAULT_REGION
                return self.build(config)

        logger.debug("aws_session_built", region=config.region, profile=config.profile or None)
        return session

    def _new_botocore_session(self, config: ProviderConfig) -> botocore.session.Session:
        botocore_session = botocore.session.Session(profile=config.profile or None)

        if config.region:
            botocore_session.set_config_variable("region", config.region)
            botocore_session.set_config_variable("sts_regional_endpoints", "regional")

        self._apply_assume_role_duration(botocore_session, config)
        return botocore_session

    @staticmethod
    def _apply_assume_role_duration(
        botocore_session: botocore.session.Session, config: ProviderConfig
    ) -> None:
        # botocore's assume-role provider reads the profile lazily from full_config,
        # and prompts for MFA codes on the terminal when the profile has mfa_serial.
        try:
            profiles = botocore_session.full_config.get("profiles", {})
        except BotoCoreError as e:
            logger.debug("profile_config_unavailable", error=str(e))
            return

        profile_config = profiles.get(config.profile or "default")
        if isinstance(profile_config, dict) and "role_arn" in profile_config:
            profile_config.setdefault(
                "duration_seconds", int(config.assume_role_duration.total_seconds())
            )

    def _install_credential_cache(
        self, botocore_session: botocore.session.Session, config: ProviderConfig
    ) -> None:
        try:
            cache = self.cache_factory()
        except CacheError as e:
            logger.warning("credential_cache_disabled", error=str(e))
            return

        def load_live() -> Credentials | None:
            return self._new_botocore_session(config).get_credentials()

        provider = FileCacheCredentialProvider(config.profile, cache, load_live)
        resolver = botocore_session.get_component("credential_provider")
        resolver.providers.insert(0, provider)
        logger.debug("credential_cache_enabled", path=str(cache.path))
