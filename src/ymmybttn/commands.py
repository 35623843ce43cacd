"""Command handler: dispatches UI commands to the sync service and repository."""

import json
import logging
import sqlite3

from ymmybttn.database.models import LocalCurrentPrice
from ymmybttn.database.repository import Repository
from ymmybttn.errors import AppError, DatabaseError
from ymmybttn.utils.formatters import format_currency, format_time_ago

logger = logging.getLogger(__name__)


class CommandHandler:
    """Executes named commands and returns JSON strings.

    Errors come back as ``{"error": message, "error_type": kind}`` so the
    caller never has to handle exceptions.
    """

    def __init__(self, app_state, sync_service):
        self.app_state = app_state
        self.sync_service = sync_service

    def execute(self, command: str, arguments: str = "") -> str:
        """Run a command and return a JSON string result."""
        try:
            args = json.loads(arguments) if arguments else {}
        except json.JSONDecodeError as e:
            return json.dumps({"error": f"Invalid arguments: {e}",
                               "error_type": "validation"})

        dispatch = {
            "ping": self._ping,
            "force_sync": self._force_sync,
            "get_sync_status": self._get_sync_status,
            "get_auth_status": self._get_auth_status,
            "get_products": self._get_all_products,
            "get_all_products": self._get_all_products,
            "get_restaurants": self._get_restaurants,
            "get_distributors": self._get_distributors,
            "get_current_prices": self._get_current_prices,
            "get_price_comparison": self._get_price_comparison,
            "record_price": self._record_price,
        }

        handler = dispatch.get(command)
        if not handler:
            return json.dumps({"error": f"Unknown command: {command}",
                               "error_type": "not_found"})

        try:
            result = handler(**args)
            return json.dumps(result, default=str)
        except AppError as e:
            logger.warning("Command %s failed: %s", command, e)
            return json.dumps({"error": str(e), "error_type": e.error_type})
        except sqlite3.Error as e:
            logger.error("Command %s hit a database error: %s", command, e)
            error = DatabaseError(str(e))
            return json.dumps({"error": str(error),
                               "error_type": error.error_type})
        except TypeError as e:
            return json.dumps({"error": f"Invalid arguments: {e}",
                               "error_type": "validation"})

    def _repo(self) -> Repository:
        return Repository(self.app_state.get_db())

    def _ping(self) -> str:
        return "pong"

    def _force_sync(self) -> dict:
        return self.sync_service.force_sync().to_dict()

    def _get_sync_status(self) -> dict:
        state = self.app_state.get_product_sync_state().to_dict()
        state["last_synced_human"] = format_time_ago(state["last_synced"])
        return state

    def _get_auth_status(self) -> dict:
        return self.app_state.get_auth_state().to_dict()

    def _get_all_products(self) -> list[dict]:
        return [p.to_dict() for p in self._repo().get_all_products()]

    def _get_restaurants(self) -> list[dict]:
        return [vars(r) for r in self._repo().get_all_restaurants()]

    def _get_distributors(self) -> list[dict]:
        return [vars(d) for d in self._repo().get_all_distributors()]

    def _get_current_prices(self, restaurant_id: str = "") -> list[dict]:
        return [vars(p) for p in self._repo().get_current_prices(restaurant_id)]

    def _get_price_comparison(self, restaurant_id: str = "") -> list[dict]:
        rows = self._repo().get_price_comparison(restaurant_id)
        return [
            {
                "catalog_product_id": d.price.catalog_product_id,
                "product_name": d.product_name,
                "distributor_name": d.distributor_name,
                "case_price": format_currency(d.price.case_price),
                "unit_price": d.price.unit_price,
                "preferred_measurement": d.preferred_measurement,
                "effective_date": d.price.effective_date,
                "is_winner": d.is_winner,
            }
            for d in rows
        ]

    def _record_price(self, restaurant_id: str = "",
                      catalog_product_id: str = "",
                      distributor_id: str = "",
                      case_price: float = 0.0,
                      total_preferred_units: float = 0.0,
                      effective_date: str = "",
                      source_type: str = "manual_entry") -> dict:
        price = LocalCurrentPrice(
            restaurant_id=restaurant_id,
            catalog_product_id=catalog_product_id,
            distributor_id=distributor_id,
            case_price=case_price,
            total_preferred_units=total_preferred_units,
            effective_date=effective_date,
            source_type=source_type,
        )
        price_id = self._repo().record_price(price)
        return {"price_id": price_id, "unit_price": price.unit_price}
