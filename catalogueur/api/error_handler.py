"""Unified error handling for remote catalog interactions."""

from typing import Optional, Any
import logging

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base exception for catalog errors."""
    pass


class FatalCatalogError(CatalogError):
    """Fatal error (bad credentials, blocked client) requiring a stop."""
    pass


class RetryableCatalogError(CatalogError):
    """Transient error (rate limits, server trouble, network)."""
    pass


class SkippableCatalogError(CatalogError):
    """Non-fatal error, treat the request as answered with nothing."""
    pass


# HTTP status code mapping
HTTP_STATUS_MESSAGES = {
    200: "Success",
    400: "Malformed request",
    401: "Invalid or missing API key",
    403: "Access denied",
    404: "Not found",
    410: "Resource removed",
    429: "Rate limit reached",
    500: "Internal server error",
    502: "Bad gateway",
    503: "Service unavailable",
    504: "Gateway timeout",
}


def get_error_message(status_code: int) -> str:
    """
    Get user-friendly error message for HTTP status code.

    Args:
        status_code: HTTP status code

    Returns:
        Error message string
    """
    return HTTP_STATUS_MESSAGES.get(
        status_code,
        f"Unknown error (HTTP {status_code})"
    )


def handle_http_status(
    status_code: int,
    context: str = "",
    throttle_manager: Optional[Any] = None,
    endpoint: Optional[str] = None,
    retry_after: Optional[Any] = None
) -> None:
    """
    Handle HTTP status code and raise appropriate exception.

    Args:
        status_code: HTTP status code from the catalog
        context: Additional context for error message
        throttle_manager: Optional ThrottleManager for 429 handling
        endpoint: Optional endpoint name for throttle tracking
        retry_after: Optional Retry-After header value

    Raises:
        FatalCatalogError: For 401 and 403
        RetryableCatalogError: For 429 and 5xx
        SkippableCatalogError: For any other non-2xx status
    """
    if 200 <= status_code < 300:
        return

    msg = get_error_message(status_code)
    if context:
        msg = f"{msg} ({context})"

    if status_code == 429 and throttle_manager and endpoint:
        throttle_manager.handle_rate_limit(endpoint, _parse_retry_after(retry_after))

    if status_code in (401, 403):
        raise FatalCatalogError(msg)
    elif status_code == 429 or status_code >= 500:
        raise RetryableCatalogError(msg)
    else:
        raise SkippableCatalogError(msg)


def _parse_retry_after(retry_after: Any) -> Optional[int]:
    """Retry-After arrives as a header string; dates are ignored."""
    if retry_after is None:
        return None
    try:
        return int(retry_after)
    except (TypeError, ValueError):
        return None
