"""Database schema definition, initialization, and migrations."""

SCHEMA_VERSION = 2

# Each statement is a separate string to avoid executescript issues
_SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY
    )""",

    # Product catalog mirror (read-only copy of the remote catalog)
    """CREATE TABLE IF NOT EXISTS products (
        catalog_product_id TEXT PRIMARY KEY,
        product_name TEXT NOT NULL,
        category_id TEXT,
        preferred_measurement TEXT NOT NULL,
        measurement_type TEXT NOT NULL,
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        updated_at TIMESTAMP,
        last_synced_at TIMESTAMP,
        synced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS restaurants (
        restaurant_id TEXT PRIMARY KEY,
        restaurant_name TEXT NOT NULL,
        organization_id TEXT NOT NULL,
        synced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS distributors (
        distributor_id TEXT PRIMARY KEY,
        distributor_name TEXT NOT NULL,
        distributor_code TEXT,
        synced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    """CREATE TABLE IF NOT EXISTS distributor_specs (
        spec_id TEXT PRIMARY KEY,
        catalog_product_id TEXT NOT NULL,
        distributor_id TEXT NOT NULL,
        distributor_item_code TEXT,
        case_packs INTEGER NOT NULL DEFAULT 1 CHECK (case_packs > 0),
        pack_size REAL NOT NULL CHECK (pack_size > 0),
        pack_unit_of_measure TEXT NOT NULL,
        total_preferred_units REAL NOT NULL CHECK (total_preferred_units > 0),
        synced_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (distributor_id) REFERENCES distributors(distributor_id)
            ON DELETE CASCADE
    )""",

    # Locally observed prices. No foreign key to products: a sync pass
    # that prunes a catalog row must leave price history alone.
    """CREATE TABLE IF NOT EXISTS local_current_prices (
        price_id TEXT PRIMARY KEY,
        restaurant_id TEXT NOT NULL,
        catalog_product_id TEXT NOT NULL,
        distributor_id TEXT NOT NULL,
        case_price REAL NOT NULL CHECK (case_price >= 0),
        total_preferred_units REAL NOT NULL CHECK (total_preferred_units > 0),
        unit_price REAL NOT NULL DEFAULT 0,
        effective_date DATE NOT NULL,
        source_type TEXT NOT NULL DEFAULT 'manual_entry'
            CHECK (source_type IN ('manual_entry', 'csv_import', 'invoice_scan')),
        source_file_name TEXT,
        source_file_hash TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (restaurant_id) REFERENCES restaurants(restaurant_id)
            ON DELETE CASCADE,
        FOREIGN KEY (distributor_id) REFERENCES distributors(distributor_id)
            ON DELETE CASCADE
    )""",

    "CREATE INDEX IF NOT EXISTS idx_products_last_synced ON products(last_synced_at)",
    "CREATE INDEX IF NOT EXISTS idx_products_name ON products(product_name)",
    "CREATE INDEX IF NOT EXISTS idx_specs_product ON distributor_specs(catalog_product_id)",
    "CREATE INDEX IF NOT EXISTS idx_prices_restaurant ON local_current_prices(restaurant_id)",
    "CREATE INDEX IF NOT EXISTS idx_prices_product ON local_current_prices(catalog_product_id)",

    # Record schema version
    f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})",
]


# ── Migration from v1 → v2 ──────────────────────────────────────
# v1 stamped products only with synced_at; v2 adds the sync watermark.
_MIGRATION_V2_STATEMENTS = [
    "ALTER TABLE products ADD COLUMN last_synced_at TIMESTAMP",
    "CREATE INDEX IF NOT EXISTS idx_products_last_synced ON products(last_synced_at)",
    "INSERT OR REPLACE INTO schema_version (version) VALUES (2)",
]


def _get_schema_version(conn) -> int:
    """Get the current schema version, or 0 if no schema exists."""
    try:
        row = conn.execute(
            "SELECT MAX(version) as v FROM schema_version"
        ).fetchone()
        return row["v"] if row and row["v"] else 0
    except Exception:
        return 0


def _migrate_v1_to_v2(conn):
    """Upgrade schema from v1 to v2, creating any tables v1 lacked."""
    for stmt in _MIGRATION_V2_STATEMENTS:
        conn.execute(stmt)
    for stmt in _SCHEMA_STATEMENTS:
        conn.execute(stmt)


def get_schema_version(db_connection) -> int:
    with db_connection.get_connection() as conn:
        return _get_schema_version(conn)


def initialize_database(db_connection):
    """Create all tables and indexes, or migrate an older database.

    On a fresh database, creates the full schema directly.
    On an existing database, applies migrations incrementally.
    """
    with db_connection.get_connection() as conn:
        conn.execute("PRAGMA foreign_keys = ON")

        version = _get_schema_version(conn)

        if version == 0:
            for stmt in _SCHEMA_STATEMENTS:
                conn.execute(stmt)
        elif version < SCHEMA_VERSION:
            if version < 2:
                _migrate_v1_to_v2(conn)
