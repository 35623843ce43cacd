"""Data models for the database layer."""

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class Product:
    """A row of the local catalog mirror."""

    catalog_product_id: str = ""
    product_name: str = ""
    category_id: Optional[str] = None
    preferred_measurement: str = ""
    measurement_type: str = ""
    description: Optional[str] = None
    is_active: bool = True
    updated_at: Optional[str] = None
    last_synced_at: Optional[str] = None
    synced_at: Optional[str] = None

    # Fields the remote catalog is authoritative for
    REMOTE_FIELDS = (
        "catalog_product_id", "product_name", "category_id",
        "preferred_measurement", "measurement_type", "description",
        "is_active", "updated_at",
    )

    def __post_init__(self):
        self.is_active = bool(self.is_active)

    def remote_values(self) -> dict:
        """The subset of fields mirrored from the remote catalog."""
        return {name: getattr(self, name) for name in self.REMOTE_FIELDS}

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Restaurant:
    restaurant_id: str = ""
    restaurant_name: str = ""
    organization_id: str = ""
    synced_at: Optional[str] = None


@dataclass
class Distributor:
    distributor_id: str = ""
    distributor_name: str = ""
    distributor_code: Optional[str] = None
    synced_at: Optional[str] = None


@dataclass
class DistributorSpec:
    spec_id: str = ""
    catalog_product_id: str = ""
    distributor_id: str = ""
    distributor_item_code: Optional[str] = None
    case_packs: int = 1
    pack_size: float = 0.0
    pack_unit_of_measure: str = ""
    total_preferred_units: float = 0.0
    synced_at: Optional[str] = None


@dataclass
class LocalCurrentPrice:
    """A distributor price observed locally (never synced down)."""

    price_id: str = ""
    restaurant_id: str = ""
    catalog_product_id: str = ""
    distributor_id: str = ""
    case_price: float = 0.0
    total_preferred_units: float = 0.0
    unit_price: float = 0.0
    effective_date: str = ""
    source_type: str = "manual_entry"
    source_file_name: Optional[str] = None
    source_file_hash: Optional[str] = None
    created_at: Optional[str] = None

    def compute_unit_price(self) -> float:
        if not self.total_preferred_units:
            return 0.0
        return round(self.case_price / self.total_preferred_units, 4)


@dataclass
class PriceWithDetails:
    """View model: a price joined with its product and distributor names."""

    price: LocalCurrentPrice = field(default_factory=LocalCurrentPrice)
    product_name: str = ""
    distributor_name: str = ""
    preferred_measurement: str = ""
    is_winner: bool = False
