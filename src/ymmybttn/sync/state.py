"""Process-wide application state and its publish/subscribe hub.

``AppState`` owns the in-memory product-sync and auth status plus the
handle to the local store. Every read and write of the status records goes
through one lock; readers always get a copy.
"""

import copy
import logging
import threading
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Optional

from ymmybttn.errors import InternalError
from ymmybttn.utils.constants import AUTH_STATUS_CHANGED, SYNC_STATUS_CHANGED

logger = logging.getLogger(__name__)


class ProductSyncStatus(str, Enum):
    SYNCED = "synced"
    SYNCING = "syncing"
    ERROR = "error"


@dataclass
class ProductSyncState:
    status: ProductSyncStatus = ProductSyncStatus.SYNCED
    last_synced: Optional[str] = None
    products_count: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class AuthState:
    is_authenticated: bool = False
    last_auth_check: Optional[str] = None
    auth_error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class AppState:
    """Shared state container with best-effort event delivery."""

    def __init__(self, db=None):
        self._lock = threading.Lock()
        # Held for the whole of a sync pass; see SmartSyncEngine
        self.sync_lock = threading.Lock()
        self._db = db
        self._product_sync_state = ProductSyncState()
        self._auth_state = AuthState()
        self._subscribers: dict[str, list[Callable]] = {}

    # ── Local store handle ─────────────────────────────────────

    def set_db(self, db):
        with self._lock:
            self._db = db

    def get_db(self):
        """Return the store handle, or raise if it was never initialized."""
        with self._lock:
            if self._db is None:
                raise InternalError("Database not initialized")
            return self._db

    # ── State records ──────────────────────────────────────────

    def update_product_sync_state(
        self, updater: Callable[[ProductSyncState], None]
    ) -> ProductSyncState:
        """Apply ``updater`` under the lock and return the new snapshot."""
        with self._lock:
            updater(self._product_sync_state)
            return copy.copy(self._product_sync_state)

    def get_product_sync_state(self) -> ProductSyncState:
        with self._lock:
            return copy.copy(self._product_sync_state)

    def update_auth_state(
        self, updater: Callable[[AuthState], None]
    ) -> AuthState:
        """Apply ``updater`` under the lock and return the new snapshot."""
        with self._lock:
            updater(self._auth_state)
            return copy.copy(self._auth_state)

    def get_auth_state(self) -> AuthState:
        with self._lock:
            return copy.copy(self._auth_state)

    # ── Events ─────────────────────────────────────────────────

    def subscribe(self, event: str, callback: Callable):
        with self._lock:
            self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable):
        with self._lock:
            callbacks = self._subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def emit(self, event: str, payload: dict | None = None):
        """Deliver ``payload`` to every current subscriber of ``event``.

        Fire-and-forget: a failing subscriber is logged and skipped, and
        never affects the publisher or the remaining subscribers.
        """
        with self._lock:
            callbacks = list(self._subscribers.get(event, []))
        for callback in callbacks:
            try:
                callback(payload if payload is not None else {})
            except Exception as e:
                logger.warning("Subscriber for %s failed: %s", event, e)

    def publish_sync_status(self):
        self.emit(SYNC_STATUS_CHANGED, self.get_product_sync_state().to_dict())

    def publish_auth_status(self):
        self.emit(AUTH_STATUS_CHANGED, self.get_auth_state().to_dict())
