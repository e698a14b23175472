"""API key authentication."""
import secrets
from typing import Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader
import structlog

from ..errors import AuthenticationError

log = structlog.get_logger()

# The key is sent verbatim, without a scheme prefix
api_key_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="API key defined in the configuration file",
)


def api_key_matches(provided: Optional[str], expected: str) -> bool:
    """Constant-time comparison of the provided key against the configured one."""
    if provided is None:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def verify_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """
    Dependency to verify the API key from the Authorization header.

    Args:
        request: Incoming request, used to reach the service configuration
        api_key: Value of the Authorization header

    Returns:
        Validated API key

    Raises:
        AuthenticationError: If the header is missing or does not match
    """
    config = request.app.state.service_config

    if not api_key_matches(api_key, config.api_key):
        log.warning("auth.failed", reason="missing_key" if api_key is None else "invalid_key")
        request.app.state.metrics.auth_failures_total.inc()
        raise AuthenticationError()

    log.debug("auth.success")
    return api_key
