"""Repository layer: catalog mirror statements and local CRUD queries."""

import sqlite3
import uuid
from typing import Optional

from ymmybttn.errors import AlreadyExistsError, NotFoundError, ValidationError
from ymmybttn.io.validators import validate_price_entry

from .connection import DatabaseConnection
from .models import (
    Distributor,
    DistributorSpec,
    LocalCurrentPrice,
    PriceWithDetails,
    Product,
    Restaurant,
)

_UPSERT_PRODUCT_SQL = """
    INSERT INTO products (
        catalog_product_id,
        product_name,
        category_id,
        preferred_measurement,
        measurement_type,
        description,
        is_active,
        updated_at,
        last_synced_at,
        synced_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT(catalog_product_id) DO UPDATE SET
        product_name = excluded.product_name,
        category_id = excluded.category_id,
        preferred_measurement = excluded.preferred_measurement,
        measurement_type = excluded.measurement_type,
        description = excluded.description,
        is_active = excluded.is_active,
        updated_at = excluded.updated_at,
        last_synced_at = excluded.last_synced_at,
        synced_at = excluded.synced_at
"""


class Repository:
    """Provides all database operations for the application."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    # ── Products (catalog mirror) ───────────────────────────────

    def get_all_products(self) -> list[Product]:
        rows = self.db.execute(
            "SELECT * FROM products ORDER BY product_name"
        )
        return [Product(**dict(r)) for r in rows]

    def get_product_by_id(self, catalog_product_id: str) -> Optional[Product]:
        rows = self.db.execute(
            "SELECT * FROM products WHERE catalog_product_id = ?",
            (catalog_product_id,),
        )
        return Product(**dict(rows[0])) if rows else None

    def search_products(self, query: str) -> list[Product]:
        pattern = f"%{query}%"
        rows = self.db.execute(
            "SELECT * FROM products "
            "WHERE product_name LIKE ? OR description LIKE ? "
            "ORDER BY product_name",
            (pattern, pattern),
        )
        return [Product(**dict(r)) for r in rows]

    def get_product_count(self) -> int:
        return self.db.scalar("SELECT COUNT(*) FROM products") or 0

    @staticmethod
    def upsert_product(conn: sqlite3.Connection, product: Product,
                       watermark: str, synced_at: str):
        """Insert or overwrite one mirrored product; the incoming row wins.

        Runs on the caller's connection so it joins the caller's
        transaction.
        """
        conn.execute(
            _UPSERT_PRODUCT_SQL,
            (
                product.catalog_product_id,
                product.product_name,
                product.category_id,
                product.preferred_measurement,
                product.measurement_type,
                product.description,
                int(product.is_active),
                product.updated_at,
                watermark,
                synced_at,
            ),
        )

    @staticmethod
    def delete_stale_products(conn: sqlite3.Connection, watermark: str) -> int:
        """Delete products not stamped with ``watermark`` (or newer).

        Returns the number of rows removed.
        """
        cursor = conn.execute(
            "DELETE FROM products "
            "WHERE last_synced_at < ? OR last_synced_at IS NULL",
            (watermark,),
        )
        return cursor.rowcount

    # ── Restaurants ─────────────────────────────────────────────

    def get_all_restaurants(self) -> list[Restaurant]:
        rows = self.db.execute(
            "SELECT * FROM restaurants ORDER BY restaurant_name"
        )
        return [Restaurant(**dict(r)) for r in rows]

    def get_restaurant_by_id(self, restaurant_id: str) -> Optional[Restaurant]:
        rows = self.db.execute(
            "SELECT * FROM restaurants WHERE restaurant_id = ?",
            (restaurant_id,),
        )
        return Restaurant(**dict(rows[0])) if rows else None

    def create_restaurant(self, restaurant: Restaurant) -> str:
        if not restaurant.restaurant_id:
            restaurant.restaurant_id = str(uuid.uuid4())
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    "INSERT INTO restaurants "
                    "(restaurant_id, restaurant_name, organization_id) "
                    "VALUES (?, ?, ?)",
                    (restaurant.restaurant_id, restaurant.restaurant_name,
                     restaurant.organization_id),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyExistsError(
                f"Restaurant '{restaurant.restaurant_id}'"
            ) from e
        return restaurant.restaurant_id

    # ── Distributors ────────────────────────────────────────────

    def get_all_distributors(self) -> list[Distributor]:
        rows = self.db.execute(
            "SELECT * FROM distributors ORDER BY distributor_name"
        )
        return [Distributor(**dict(r)) for r in rows]

    def get_distributor_by_id(self, distributor_id: str) -> Optional[Distributor]:
        rows = self.db.execute(
            "SELECT * FROM distributors WHERE distributor_id = ?",
            (distributor_id,),
        )
        return Distributor(**dict(rows[0])) if rows else None

    def create_distributor(self, distributor: Distributor) -> str:
        if not distributor.distributor_id:
            distributor.distributor_id = str(uuid.uuid4())
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    "INSERT INTO distributors "
                    "(distributor_id, distributor_name, distributor_code) "
                    "VALUES (?, ?, ?)",
                    (distributor.distributor_id, distributor.distributor_name,
                     distributor.distributor_code),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyExistsError(
                f"Distributor '{distributor.distributor_id}'"
            ) from e
        return distributor.distributor_id

    # ── Distributor specs ───────────────────────────────────────

    def get_specs_for_product(self, catalog_product_id: str) -> list[DistributorSpec]:
        rows = self.db.execute(
            "SELECT * FROM distributor_specs WHERE catalog_product_id = ? "
            "ORDER BY distributor_id",
            (catalog_product_id,),
        )
        return [DistributorSpec(**dict(r)) for r in rows]

    def create_distributor_spec(self, spec: DistributorSpec) -> str:
        if not spec.spec_id:
            spec.spec_id = str(uuid.uuid4())
        with self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO distributor_specs (spec_id, catalog_product_id, "
                "distributor_id, distributor_item_code, case_packs, pack_size, "
                "pack_unit_of_measure, total_preferred_units) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (spec.spec_id, spec.catalog_product_id, spec.distributor_id,
                 spec.distributor_item_code, spec.case_packs, spec.pack_size,
                 spec.pack_unit_of_measure, spec.total_preferred_units),
            )
        return spec.spec_id

    # ── Local prices ────────────────────────────────────────────

    def record_price(self, price: LocalCurrentPrice) -> str:
        """Validate and store a locally observed distributor price.

        Computes ``unit_price`` from the case price. Returns the price id.
        """
        errors = validate_price_entry({
            "restaurant_id": price.restaurant_id,
            "catalog_product_id": price.catalog_product_id,
            "distributor_id": price.distributor_id,
            "case_price": price.case_price,
            "total_preferred_units": price.total_preferred_units,
            "effective_date": price.effective_date,
            "source_type": price.source_type,
        })
        if errors:
            raise ValidationError("; ".join(errors))

        if self.get_restaurant_by_id(price.restaurant_id) is None:
            raise NotFoundError(f"Restaurant '{price.restaurant_id}'")
        if self.get_distributor_by_id(price.distributor_id) is None:
            raise NotFoundError(f"Distributor '{price.distributor_id}'")

        if not price.price_id:
            price.price_id = str(uuid.uuid4())
        price.case_price = float(price.case_price)
        price.total_preferred_units = float(price.total_preferred_units)
        price.effective_date = str(price.effective_date)
        price.unit_price = price.compute_unit_price()

        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    "INSERT INTO local_current_prices (price_id, restaurant_id, "
                    "catalog_product_id, distributor_id, case_price, "
                    "total_preferred_units, unit_price, effective_date, "
                    "source_type, source_file_name, source_file_hash) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (price.price_id, price.restaurant_id,
                     price.catalog_product_id, price.distributor_id,
                     price.case_price, price.total_preferred_units,
                     price.unit_price, price.effective_date,
                     price.source_type, price.source_file_name,
                     price.source_file_hash),
                )
        except sqlite3.IntegrityError as e:
            raise AlreadyExistsError(f"Price '{price.price_id}'") from e
        return price.price_id

    def get_current_prices(self, restaurant_id: str) -> list[LocalCurrentPrice]:
        rows = self.db.execute(
            "SELECT * FROM local_current_prices WHERE restaurant_id = ? "
            "ORDER BY effective_date DESC, created_at DESC",
            (restaurant_id,),
        )
        return [LocalCurrentPrice(**dict(r)) for r in rows]

    def get_price_comparison(self, restaurant_id: str) -> list[PriceWithDetails]:
        """Latest price per product/distributor, flagging the cheapest unit price.

        Prices for products no longer in the catalog mirror are still
        listed, with an empty product name.
        """
        rows = self.db.execute(
            """SELECT lp.*,
                      COALESCE(p.product_name, '') AS product_name,
                      COALESCE(p.preferred_measurement, '') AS preferred_measurement,
                      COALESCE(d.distributor_name, '') AS distributor_name
               FROM local_current_prices lp
               LEFT JOIN products p
                      ON p.catalog_product_id = lp.catalog_product_id
               LEFT JOIN distributors d
                      ON d.distributor_id = lp.distributor_id
               WHERE lp.restaurant_id = ?
               ORDER BY lp.effective_date DESC, lp.created_at DESC""",
            (restaurant_id,),
        )

        latest: dict[tuple[str, str], PriceWithDetails] = {}
        for r in rows:
            data = dict(r)
            key = (data["catalog_product_id"], data["distributor_id"])
            if key in latest:
                continue
            details = PriceWithDetails(
                product_name=data.pop("product_name"),
                distributor_name=data.pop("distributor_name"),
                preferred_measurement=data.pop("preferred_measurement"),
            )
            details.price = LocalCurrentPrice(**data)
            latest[key] = details

        cheapest: dict[str, PriceWithDetails] = {}
        for details in latest.values():
            product_id = details.price.catalog_product_id
            best = cheapest.get(product_id)
            if best is None or details.price.unit_price < best.price.unit_price:
                cheapest[product_id] = details
        for details in cheapest.values():
            details.is_winner = True

        return sorted(
            latest.values(),
            key=lambda d: (d.product_name, d.price.unit_price),
        )
