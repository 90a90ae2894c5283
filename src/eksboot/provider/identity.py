"""Caller identity verification."""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from eksboot.core.exceptions import AuthError
from eksboot.utils.logging import get_logger

logger = get_logger(__name__)


def verify_identity(sts_client: Any) -> str:
    """Resolve the ARN of the caller with a single STS call.

    A failed call and a response without an ARN are both reported as AuthError.

    Args:
        sts_client: STS client of the session to check

    Returns:
        Caller ARN

    Raises:
        AuthError: If the identity cannot be resolved
    """
    try:
        response = sts_client.get_caller_identity()
    except (ClientError, BotoCoreError) as e:
        logger.error("caller_identity_failed", error=str(e))
        raise AuthError(
            f"checking AWS STS access - cannot get role ARN for current session: {e}"
        ) from e

    arn = (response or {}).get("Arn")
    if not arn:
        raise AuthError("unexpected response from AWS STS")

    logger.debug("caller_identity_resolved", role_arn=arn)
    return str(arn)
