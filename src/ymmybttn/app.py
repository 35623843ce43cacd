"""Application entry point: opens the local store and starts catalog sync."""

import logging
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from ymmybttn.config import Config
from ymmybttn.database.connection import DatabaseConnection
from ymmybttn.database.schema import initialize_database
from ymmybttn.sync.service import SyncService
from ymmybttn.sync.state import AppState
from ymmybttn.sync.worker import StateSignalBridge, SyncScheduler
from ymmybttn.utils.constants import APP_NAME, APP_ORGANIZATION

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=(level or Config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_app_state() -> AppState:
    """Open (and migrate) the local database and wrap it in an AppState.

    The returned state has no database when initialization fails; sync
    passes then report "Database not initialized" instead of crashing.
    """
    state = AppState()
    try:
        db = DatabaseConnection(
            Config.DATABASE_PATH, busy_timeout=Config.DATABASE_BUSY_TIMEOUT
        )
        initialize_database(db)
        state.set_db(db)
        logger.info("Database initialized at %s", Config.DATABASE_PATH)
    except Exception:
        logger.exception("Failed to initialize database")
    return state


def _log_status(status: dict):
    if status.get("error_message"):
        logger.warning("Sync status: %s (%s)", status["status"],
                       status["error_message"])
    else:
        logger.info("Sync status: %s, %s products", status["status"],
                    status["products_count"])


def main():
    """Run the sync backend until the event loop exits."""
    configure_logging()

    app = QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)

    state = build_app_state()
    bridge = StateSignalBridge(state)
    bridge.sync_status_changed.connect(_log_status)

    scheduler = SyncScheduler(SyncService(state))
    scheduler.sync_failed.connect(
        lambda kind, message: logger.error("Sync failed (%s): %s", kind, message)
    )

    if Config.SYNC_ENABLED:
        # Startup pass verifies credentials first; the timer takes over after.
        QTimer.singleShot(0, lambda: scheduler.run_now(startup=True))
        scheduler.start()

    exit_code = app.exec()
    scheduler.stop()
    scheduler.wait()
    bridge.detach()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
