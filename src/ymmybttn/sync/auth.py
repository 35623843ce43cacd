"""Authentication check against the remote catalog."""

import logging

from ymmybttn.errors import AuthError, CatalogTimeoutError, NetworkError
from ymmybttn.utils.formatters import to_db_timestamp, utc_now

logger = logging.getLogger(__name__)


def verify_authentication(client) -> bool:
    """Probe the catalog once to confirm the client's credentials.

    Returns ``True`` on any 2xx response. Raises :class:`AuthError` on a
    403, on any other non-success status, and on network failure. No
    retries here; callers decide whether to try again.
    """
    logger.info("Verifying authentication with the catalog service...")
    try:
        response = client.probe()
    except CatalogTimeoutError as e:
        logger.error("Timed out during authentication: %s", e.message)
        raise AuthError(f"Timed out during authentication: {e.message}") from e
    except NetworkError as e:
        logger.error("Network error during authentication: %s", e.message)
        raise AuthError(f"Network error during authentication: {e.message}") from e

    if response.is_success:
        logger.info("Authentication successful")
        return True
    if response.status_code == 403:
        logger.error("Authentication failed: Access denied (403)")
        raise AuthError("Authentication failed: Access denied. Check RLS policies.")

    logger.error("Authentication failed: HTTP %s", response.status_code)
    raise AuthError(f"Authentication failed: HTTP {response.status_code}")


def record_auth_result(app_state, is_authenticated: bool,
                       error: str | None = None):
    """Store the outcome of an auth check and publish it."""
    checked_at = to_db_timestamp(utc_now())

    def _apply(auth):
        auth.is_authenticated = is_authenticated
        auth.last_auth_check = checked_at
        auth.auth_error = error

    app_state.update_auth_state(_apply)
    app_state.publish_auth_status()
