"""Validation rules for catalog payloads and locally entered prices."""

from datetime import date

from ymmybttn.utils.constants import PRICE_SOURCE_TYPES

_REQUIRED_CATALOG_TEXT = (
    "catalog_product_id",
    "product_name",
    "preferred_measurement",
    "measurement_type",
)
_OPTIONAL_CATALOG_TEXT = ("category_id", "description", "updated_at")


def validate_catalog_row(row, index: int) -> list[str]:
    """Validate one product object from the remote catalog.

    Returns a list of error strings (empty when the row is usable).
    """
    if not isinstance(row, dict):
        return [f"Row {index}: expected an object, got {type(row).__name__}"]

    errors = []
    for key in _REQUIRED_CATALOG_TEXT:
        value = row.get(key)
        if not isinstance(value, str):
            errors.append(f"Row {index}: {key} is required and must be a string")
        elif key == "catalog_product_id" and not value.strip():
            errors.append(f"Row {index}: catalog_product_id cannot be empty")

    for key in _OPTIONAL_CATALOG_TEXT:
        value = row.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"Row {index}: {key} must be a string or null")

    if not isinstance(row.get("is_active"), bool):
        errors.append(f"Row {index}: is_active is required and must be a boolean")

    return errors


def validate_price_entry(entry: dict) -> list[str]:
    """Validate a locally entered distributor price. Returns error strings."""
    errors = []

    for key in ("restaurant_id", "catalog_product_id", "distributor_id"):
        if not str(entry.get(key) or "").strip():
            errors.append(f"{key} is required")

    try:
        case_price = float(entry.get("case_price"))
        if case_price < 0:
            errors.append("case_price cannot be negative")
    except (ValueError, TypeError):
        errors.append("case_price must be a number")

    try:
        units = float(entry.get("total_preferred_units"))
        if units <= 0:
            errors.append("total_preferred_units must be greater than zero")
    except (ValueError, TypeError):
        errors.append("total_preferred_units must be a number")

    effective = str(entry.get("effective_date") or "").strip()
    if not effective:
        errors.append("effective_date is required")
    else:
        try:
            date.fromisoformat(effective)
        except ValueError:
            errors.append("effective_date must be an ISO date (YYYY-MM-DD)")

    source = entry.get("source_type", "manual_entry")
    if source not in PRICE_SOURCE_TYPES:
        errors.append(
            f"source_type must be one of {', '.join(PRICE_SOURCE_TYPES)}"
        )

    return errors
