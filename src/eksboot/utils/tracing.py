"""Full AWS request/response tracing for the highest verbosity."""

from typing import Any

from eksboot.utils.logging import get_logger

logger = get_logger(__name__)


def trace_request(request: Any = None, event_name: str = "", **kwargs: Any) -> None:
    """before-send handler. Must return None, a value would replace the HTTP response."""
    if request is None:
        return None

    body = request.body
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    logger.debug(
        "aws_request",
        aws_event=event_name,
        method=request.method,
        url=request.url,
        headers={k: v for k, v in dict(request.headers).items() if k.lower() != "authorization"},
        body=body,
    )
    return None


def trace_response(
    http_response: Any = None,
    parsed: Any = None,
    event_name: str = "",
    **kwargs: Any,
) -> None:
    """after-call handler logging the status and parsed body of a response."""
    logger.debug(
        "aws_response",
        aws_event=event_name,
        status_code=getattr(http_response, "status_code", None),
        body=parsed,
    )


def register_tracing(botocore_session: Any) -> None:
    """Attach request/response tracing to a botocore session.

    Args:
        botocore_session: botocore session to register the handlers on
    """
    botocore_session.register("before-send", trace_request, unique_id="eksboot-trace-request")
    botocore_session.register("after-call", trace_response, unique_id="eksboot-trace-response")
