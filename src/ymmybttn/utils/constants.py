"""Application-wide constants."""

APP_NAME = "ymmybttn"
APP_VERSION = "0.3.0"
APP_ORGANIZATION = "ymmybttn"

DATABASE_FILENAME = "ymmybttn.db"

# ── Remote catalog ───────────────────────────────────────────────
CATALOG_REST_PATH = "/rest/v1"
PRODUCT_CATALOG_RESOURCE = "product_catalog"
API_KEY_HEADER = "apikey"
AUTHORIZATION_HEADER = "Authorization"
CATALOG_CONNECT_TIMEOUT = 10.0

# ── Events published by AppState ─────────────────────────────────
SYNC_STATUS_CHANGED = "sync-status-changed"
PRODUCTS_UPDATED = "products-updated"
AUTH_STATUS_CHANGED = "auth-status-changed"

# ── Local prices ─────────────────────────────────────────────────
PRICE_SOURCE_TYPES = ["manual_entry", "csv_import", "invoice_scan"]

# Minimum scheduler interval (minutes)
MIN_SYNC_INTERVAL_MINUTES = 1
