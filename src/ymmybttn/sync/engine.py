"""Smart sync: one fetch, merge, prune and publish pass over the catalog.

A pass makes the local ``products`` table an exact mirror of the remote
catalog's active rows:

1. Capture the pass watermark (UTC) and a monotonic timer.
2. Resolve the local store; it must already be initialized.
3. Publish ``syncing``.
4. Fetch every active product. Nothing local is touched before the
   payload has been fully validated.
5-8. In one transaction: upsert each remote row (remote wins, stamped with
   the watermark), then delete every row not stamped by this pass, commit.
9-10. Recount from the store, publish ``synced`` and ``products-updated``.

Any failure publishes ``error`` with the message and is re-raised typed.
"""

import logging
import sqlite3
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta

from ymmybttn.database.models import Product
from ymmybttn.database.repository import Repository
from ymmybttn.errors import (
    AppError,
    AuthError,
    CatalogTimeoutError,
    DatabaseError,
    InternalError,
    NetworkError,
    SyncError,
    SyncInProgressError,
    SyncTimeoutError,
)
from ymmybttn.io.validators import validate_catalog_row
from ymmybttn.sync.auth import record_auth_result
from ymmybttn.sync.state import ProductSyncStatus
from ymmybttn.utils.constants import PRODUCTS_UPDATED
from ymmybttn.utils.formatters import to_db_timestamp, utc_now

logger = logging.getLogger(__name__)

# How many row problems to quote in a payload error message
_MAX_REPORTED_ROW_ERRORS = 5


@dataclass
class SyncResult:
    success: bool = True
    items_synced: int = 0
    items_deleted: int = 0
    products_count: int = 0
    duration_ms: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class SmartSyncEngine:
    """Runs reconciliation passes of the catalog mirror.

    Only one pass runs at a time per ``AppState``: engines sharing a state
    share its ``sync_lock``, and a concurrent call fails fast with
    :class:`SyncInProgressError` without touching state.
    """

    def __init__(self, app_state, client):
        self.app_state = app_state
        self.client = client

    @property
    def is_running(self) -> bool:
        return self.app_state.sync_lock.locked()

    def run_sync_pass(self) -> SyncResult:
        lock = self.app_state.sync_lock
        if not lock.acquire(blocking=False):
            raise SyncInProgressError("A sync pass is already in progress")
        try:
            return self._run_pass()
        finally:
            lock.release()

    # ── Pass ───────────────────────────────────────────────────

    def _run_pass(self) -> SyncResult:
        logger.info("Starting smart sync operation...")
        pass_start = utc_now()
        started = time.monotonic()

        try:
            db = self.app_state.get_db()
            self._publish_syncing()

            products = self._fetch_products()
            logger.info("Fetched %d products, updating local database...",
                        len(products))

            upserted, deleted = self._merge(db, products, pass_start)
            count = Repository(db).get_product_count()
        except AuthError as e:
            record_auth_result(self.app_state, False, str(e))
            self._publish_error(e)
            raise
        except AppError as e:
            self._publish_error(e)
            raise
        except sqlite3.Error as e:
            error = DatabaseError(str(e))
            self._publish_error(error)
            raise error from e
        except Exception as e:
            logger.exception("Unexpected failure during sync pass")
            error = InternalError(f"Unexpected sync failure: {e}")
            self._publish_error(error)
            raise error from e

        duration_ms = int((time.monotonic() - started) * 1000)
        finished_at = to_db_timestamp(utc_now())

        def _synced(s):
            s.status = ProductSyncStatus.SYNCED
            s.last_synced = finished_at
            s.products_count = count
            s.error_message = None

        self.app_state.update_product_sync_state(_synced)
        self.app_state.emit(PRODUCTS_UPDATED)
        self.app_state.publish_sync_status()

        logger.info(
            "Smart sync completed successfully in %dms. "
            "Upserted: %d, Deleted: %d",
            duration_ms, upserted, deleted,
        )
        return SyncResult(
            success=True,
            items_synced=upserted,
            items_deleted=deleted,
            products_count=count,
            duration_ms=duration_ms,
        )

    # ── Steps ──────────────────────────────────────────────────

    def _fetch_products(self) -> list[Product]:
        try:
            response = self.client.fetch_active_products()
        except CatalogTimeoutError as e:
            raise SyncTimeoutError(
                f"Fetching products timed out: {e.message}"
            ) from e
        except NetworkError as e:
            raise SyncError(
                f"Network request to fetch products failed: {e.message}"
            ) from e

        if not response.is_success:
            status = f"{response.status_code} {response.reason_phrase}".strip()
            body = response.text or "(empty body)"
            logger.error("Catalog request failed with status %s: %s",
                         status, body)
            if response.status_code == 403:
                raise AuthError(
                    f"Authentication failed during sync. "
                    f"Status: {status}. Body: {body}"
                )
            raise SyncError(
                f"Catalog returned a non-success status: {status}. "
                f"Body: {body}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise SyncError(f"Failed to parse product data: {e}") from e

        if not isinstance(payload, list):
            raise SyncError(
                "Failed to parse product data: expected a list of products, "
                f"got {type(payload).__name__}"
            )

        problems = []
        for index, row in enumerate(payload):
            problems.extend(validate_catalog_row(row, index))
        if problems:
            raise SyncError(
                "Failed to parse product data: "
                + "; ".join(problems[:_MAX_REPORTED_ROW_ERRORS])
            )

        return [
            Product(**{name: row.get(name) for name in Product.REMOTE_FIELDS})
            for row in payload
        ]

    def _merge(self, db, products: list[Product],
               pass_start: datetime) -> tuple[int, int]:
        """Upsert then prune inside one transaction. Returns (upserted, deleted)."""
        synced_at = to_db_timestamp(utc_now())
        with db.transaction() as conn:
            watermark = self._watermark(conn, pass_start)
            for product in products:
                Repository.upsert_product(conn, product, watermark, synced_at)
            deleted = Repository.delete_stale_products(conn, watermark)

        if deleted > 0:
            logger.info("Removed %d products no longer in catalog", deleted)
        return len(products), deleted

    @staticmethod
    def _watermark(conn, pass_start: datetime) -> str:
        """The pass watermark, kept strictly above every stored one.

        If the clock stepped backwards since the last pass, rows stamped by
        that pass would otherwise look fresher than this one and survive
        the prune.
        """
        watermark = to_db_timestamp(pass_start)
        row = conn.execute("SELECT MAX(last_synced_at) FROM products").fetchone()
        newest = row[0] if row else None
        if newest and newest >= watermark:
            bumped = datetime.fromisoformat(newest) + timedelta(microseconds=1)
            logger.warning("Clock is behind the last sync watermark (%s); "
                           "advancing watermark", newest)
            watermark = to_db_timestamp(bumped)
        return watermark

    # ── State publication ──────────────────────────────────────

    def _publish_syncing(self):
        def _syncing(s):
            s.status = ProductSyncStatus.SYNCING
            s.error_message = None

        self.app_state.update_product_sync_state(_syncing)
        self.app_state.publish_sync_status()

    def _publish_error(self, error: Exception):
        message = str(error)
        logger.error("Smart sync failed: %s", message)

        def _failed(s):
            s.status = ProductSyncStatus.ERROR
            s.error_message = message

        self.app_state.update_product_sync_state(_failed)
        self.app_state.publish_sync_status()
