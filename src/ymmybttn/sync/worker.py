"""Background sync: runs passes in a QThread on a QTimer schedule."""

import logging

from PySide6.QtCore import QObject, QThread, QTimer, Signal

from ymmybttn.config import Config
from ymmybttn.errors import AppError
from ymmybttn.utils.constants import (
    AUTH_STATUS_CHANGED,
    MIN_SYNC_INTERVAL_MINUTES,
    PRODUCTS_UPDATED,
    SYNC_STATUS_CHANGED,
)

logger = logging.getLogger(__name__)


class SyncWorker(QThread):
    """Runs a single sync pass (or the startup flow) in a thread."""

    sync_finished = Signal(dict)  # SyncResult as dict
    sync_failed = Signal(str, str)  # error_type, message

    def __init__(self, service, startup: bool = False):
        super().__init__()
        self.service = service
        self.startup = startup

    def run(self):
        try:
            if self.startup:
                result = self.service.start_product_sync()
            else:
                result = self.service.force_sync()
            self.sync_finished.emit(result.to_dict())
        except AppError as e:
            self.sync_failed.emit(e.error_type, str(e))
        except Exception as e:
            logger.exception("Unexpected error in sync worker")
            self.sync_failed.emit("internal", str(e))


class SyncScheduler(QObject):
    """Schedules periodic sync passes with a QTimer."""

    sync_completed = Signal(dict)
    sync_failed = Signal(str, str)

    def __init__(self, service, parent=None):
        super().__init__(parent)
        self.service = service
        self._worker: SyncWorker | None = None
        self._timer: QTimer | None = None
        self._last_result: dict | None = None
        self._last_error: str = ""

    def _get_interval_ms(self) -> int:
        """Interval in milliseconds from Config (minutes -> ms)."""
        minutes = max(Config.SYNC_INTERVAL_MINUTES, MIN_SYNC_INTERVAL_MINUTES)
        return minutes * 60 * 1000

    def start(self) -> bool:
        """Start the periodic timer. Returns False when sync is disabled."""
        if not Config.SYNC_ENABLED:
            logger.info("Product sync disabled; scheduler not started")
            return False
        if self._timer is None:
            self._timer = QTimer(self)
            self._timer.timeout.connect(self.run_now)
        self._timer.start(self._get_interval_ms())
        return True

    def stop(self):
        if self._timer is not None:
            self._timer.stop()

    @property
    def enabled(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    @property
    def is_running(self) -> bool:
        return self._worker is not None

    @property
    def last_result(self) -> dict | None:
        return self._last_result

    @property
    def last_error(self) -> str:
        return self._last_error

    def run_now(self, startup: bool = False) -> bool:
        """Trigger a pass now. Returns False if one is already running."""
        if self._worker is not None:
            logger.info("Sync already running; trigger ignored")
            return False

        worker = SyncWorker(self.service, startup=startup)
        worker.sync_finished.connect(self._on_sync_finished)
        worker.sync_failed.connect(self._on_sync_failed)
        worker.finished.connect(self._on_worker_done)
        self._worker = worker
        worker.start()
        return True

    def wait(self, msecs: int = 30000) -> bool:
        """Block until the current worker (if any) exits."""
        if self._worker is None:
            return True
        return self._worker.wait(msecs)

    def _on_sync_finished(self, result: dict):
        self._last_result = result
        self._last_error = ""
        self.sync_completed.emit(result)

    def _on_sync_failed(self, error_type: str, message: str):
        self._last_error = message
        self.sync_failed.emit(error_type, message)

    def _on_worker_done(self):
        worker = self._worker
        self._worker = None
        if worker is not None:
            worker.deleteLater()


class StateSignalBridge(QObject):
    """Re-emits AppState events as Qt signals for widgets to connect to."""

    sync_status_changed = Signal(dict)
    products_updated = Signal()
    auth_status_changed = Signal(dict)

    def __init__(self, app_state, parent=None):
        super().__init__(parent)
        self.app_state = app_state
        self._handlers = {
            SYNC_STATUS_CHANGED: self.sync_status_changed.emit,
            PRODUCTS_UPDATED: lambda _payload: self.products_updated.emit(),
            AUTH_STATUS_CHANGED: self.auth_status_changed.emit,
        }
        for event, handler in self._handlers.items():
            app_state.subscribe(event, handler)

    def detach(self):
        """Stop forwarding events."""
        for event, handler in self._handlers.items():
            self.app_state.unsubscribe(event, handler)
