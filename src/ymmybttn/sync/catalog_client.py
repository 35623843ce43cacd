"""Read-only client for the remote product catalog (Supabase PostgREST)."""

import logging

import httpx

from ymmybttn.config import Config
from ymmybttn.errors import CatalogTimeoutError, NetworkError
from ymmybttn.utils.constants import (
    API_KEY_HEADER,
    AUTHORIZATION_HEADER,
    CATALOG_CONNECT_TIMEOUT,
    CATALOG_REST_PATH,
    PRODUCT_CATALOG_RESOURCE,
)

logger = logging.getLogger(__name__)


class CatalogClient:
    """Issues filtered queries against the catalog's REST endpoint.

    Responses are returned raw, whatever their status, so callers can tell
    an auth rejection from a server error. Only transport-level failures
    raise, as :class:`NetworkError` (or :class:`CatalogTimeoutError`).
    """

    def __init__(self, base_url: str, api_key: str,
                 bearer_token: str | None = None,
                 timeout: float = 30.0,
                 transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.rest_url = self.base_url + CATALOG_REST_PATH
        self._client = httpx.Client(
            base_url=self.rest_url,
            headers={
                API_KEY_HEADER: api_key,
                AUTHORIZATION_HEADER: f"Bearer {bearer_token or api_key}",
            },
            timeout=httpx.Timeout(
                float(timeout), connect=min(CATALOG_CONNECT_TIMEOUT, float(timeout))
            ),
            transport=transport,
        )
        logger.info("Catalog client using %s (API key %s...)",
                    self.rest_url, api_key[:10])

    @classmethod
    def from_config(cls, transport: httpx.BaseTransport | None = None):
        """Build a client from :class:`Config`.

        Raises ``ConfigurationError`` when credentials are missing.
        """
        url, api_key, bearer = Config.get_catalog_credentials()
        return cls(url, api_key, bearer, timeout=Config.CATALOG_TIMEOUT,
                   transport=transport)

    def query(self, resource: str, select: str = "*",
              filters: dict | None = None,
              limit: int | None = None) -> httpx.Response:
        """GET ``resource`` with PostgREST equality filters.

        ``filters={"is_active": True}`` becomes ``is_active=eq.true``.
        """
        params = {"select": select}
        for column, value in (filters or {}).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            params[column] = f"eq.{value}"
        if limit is not None:
            params["limit"] = str(limit)

        try:
            return self._client.get(f"/{resource}", params=params)
        except httpx.TimeoutException as e:
            raise CatalogTimeoutError(
                f"Request to {resource} timed out: {e}"
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(f"Request to {resource} failed: {e}") from e
        except httpx.RequestError as e:
            raise NetworkError(
                f"Request to {resource} could not be completed: {e}"
            ) from e

    def fetch_active_products(self) -> httpx.Response:
        """All catalog rows where ``is_active = true``."""
        return self.query(PRODUCT_CATALOG_RESOURCE, filters={"is_active": True})

    def probe(self) -> httpx.Response:
        """Smallest possible authenticated read: one id, one row."""
        return self.query(
            PRODUCT_CATALOG_RESOURCE, select="catalog_product_id", limit=1
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
