"""Retry observability for AWS clients.

botocore owns retry decisions and backoff. The hook here only logs failed
attempts as they are evaluated and never returns a value, so the retry
handler's decision and delay are left untouched.
"""

from typing import Any

from botocore.config import Config

from eksboot.utils.logging import get_logger

logger = get_logger(__name__)

RETRY_MODE = "standard"
DEFAULT_MAX_ATTEMPTS = 13


def retry_config(max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> Config:
    """Build the botocore retry configuration used by every client.

    Args:
        max_attempts: Maximum number of attempts, including the first one

    Returns:
        botocore Config carrying only the retry settings
    """
    return Config(retries={"max_attempts": max_attempts, "mode": RETRY_MODE})


def _failure_detail(response: Any, caught_exception: Exception | None) -> str | None:
    if caught_exception is not None:
        return f"{type(caught_exception).__name__}: {caught_exception}"

    if not response:
        return None

    http_response, parsed = response
    status_code = getattr(http_response, "status_code", None)
    if status_code is None or status_code < 400:
        return None

    error = (parsed or {}).get("Error", {})
    code = error.get("Code", "")
    message = error.get("Message", "")
    return f"HTTP {status_code} {code} {message}".strip()


def log_retry_attempt(
    response: Any = None,
    attempts: int = 0,
    caught_exception: Exception | None = None,
    event_name: str = "",
    **kwargs: Any,
) -> None:
    """needs-retry handler logging each failed attempt at debug level.

    Every failure is logged, whether or not botocore goes on to retry it.
    Returns None so the next handler makes the actual retry decision.
    """
    detail = _failure_detail(response, caught_exception)
    if detail is None:
        return None

    # event_name is needs-retry.<service>.<operation>
    _, _, target = event_name.partition(".")
    service, _, operation = target.partition(".")

    logger.debug(
        "aws_request_attempt_failed",
        service=service,
        operation=operation,
        attempt=attempts,
        error=detail,
    )
    return None


def register_retry_logging(botocore_session: Any) -> None:
    """Attach retry logging to every client created from a botocore session.

    Args:
        botocore_session: botocore session to register the handler on
    """
    botocore_session.register("needs-retry", log_retry_attempt, unique_id="eksboot-retry-logging")
