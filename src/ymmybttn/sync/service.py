"""Sync service: builds a catalog client from Config and drives passes."""

import logging

from ymmybttn.config import Config
from ymmybttn.errors import AuthError, ConfigurationError
from ymmybttn.sync.auth import record_auth_result, verify_authentication
from ymmybttn.sync.catalog_client import CatalogClient
from ymmybttn.sync.engine import SmartSyncEngine, SyncResult
from ymmybttn.sync.state import ProductSyncStatus

logger = logging.getLogger(__name__)


class SyncService:
    """Entry points used at startup, by the scheduler, and by commands.

    A fresh client is built from :class:`Config` for every call so that
    credential changes take effect without a restart.
    """

    def __init__(self, app_state, client_factory=None):
        self.app_state = app_state
        self._client_factory = client_factory or CatalogClient.from_config

    def verify(self) -> bool:
        """Check credentials and publish the resulting auth state."""
        with self._open_client() as client:
            return self._verify_with(client)

    def start_product_sync(self) -> SyncResult:
        """Startup flow: verify authentication, then run one full pass."""
        logger.info("Starting product sync system...")
        with self._open_client() as client:
            self._verify_with(client)
            result = SmartSyncEngine(self.app_state, client).run_sync_pass()
        self._remember_success()
        logger.info("Initial sync complete.")
        return result

    def force_sync(self) -> SyncResult:
        """Manual or scheduled trigger: run one pass without re-verifying."""
        logger.info("Force sync requested...")
        with self._open_client() as client:
            result = SmartSyncEngine(self.app_state, client).run_sync_pass()
        self._remember_success()
        return result

    def _open_client(self):
        """Build a catalog client, publishing missing credentials as errors."""
        try:
            return self._client_factory()
        except ConfigurationError as e:
            message = str(e)
            logger.error("Cannot reach the catalog: %s", message)

            def _failed(s):
                s.status = ProductSyncStatus.ERROR
                s.error_message = message

            self.app_state.update_product_sync_state(_failed)
            self.app_state.publish_sync_status()
            record_auth_result(self.app_state, False, message)
            raise

    def _verify_with(self, client) -> bool:
        try:
            verify_authentication(client)
        except AuthError as e:
            record_auth_result(self.app_state, False, str(e))
            raise
        record_auth_result(self.app_state, True, None)
        return True

    def _remember_success(self):
        last = self.app_state.get_product_sync_state().last_synced
        if last:
            Config.update_last_sync(last)
