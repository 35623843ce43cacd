"""Tests for the Repository: catalog mirror statements and local prices."""

import pytest

from ymmybttn.database.models import (
    Distributor,
    DistributorSpec,
    LocalCurrentPrice,
    Product,
    Restaurant,
)
from ymmybttn.database.repository import Repository
from ymmybttn.errors import AlreadyExistsError, NotFoundError, ValidationError

W1 = "2026-10-01T00:00:00.000000+00:00"
W2 = "2026-10-02T00:00:00.000000+00:00"


def _product(pid, name=None, **kw):
    return Product(
        catalog_product_id=pid,
        product_name=name or f"Product {pid}",
        preferred_measurement="lb",
        measurement_type="weight",
        **kw,
    )


def _upsert(db, product, watermark=W1):
    with db.transaction() as conn:
        Repository.upsert_product(conn, product, watermark, watermark)


@pytest.fixture
def restaurant(repo):
    repo.create_restaurant(Restaurant("r1", "Main St Kitchen", "org-1"))
    return "r1"


@pytest.fixture
def distributors(repo):
    repo.create_distributor(Distributor("d1", "Sysco", "SYS"))
    repo.create_distributor(Distributor("d2", "US Foods", "USF"))
    return ["d1", "d2"]


def _price(pid="p1", distributor="d1", case=40.0, units=50.0,
           date="2026-10-01", **kw):
    return LocalCurrentPrice(
        restaurant_id="r1",
        catalog_product_id=pid,
        distributor_id=distributor,
        case_price=case,
        total_preferred_units=units,
        effective_date=date,
        **kw,
    )


class TestProductMirror:
    def test_upsert_inserts(self, db, repo):
        _upsert(db, _product("p1", description="Flour"))
        stored = repo.get_product_by_id("p1")
        assert stored.product_name == "Product p1"
        assert stored.description == "Flour"
        assert stored.is_active is True
        assert stored.last_synced_at == W1

    def test_upsert_overwrites_every_remote_field(self, db, repo):
        _upsert(db, _product("p1", category_id="c1", description="old"))
        _upsert(db, Product(
            catalog_product_id="p1", product_name="Renamed",
            category_id=None, preferred_measurement="each",
            measurement_type="count", description=None,
            is_active=False, updated_at="2026-10-02T00:00:00+00:00",
        ), W2)
        stored = repo.get_product_by_id("p1")
        assert stored.product_name == "Renamed"
        assert stored.category_id is None
        assert stored.preferred_measurement == "each"
        assert stored.description is None
        assert stored.is_active is False
        assert stored.last_synced_at == W2
        assert repo.get_product_count() == 1

    def test_delete_stale_removes_older_and_unstamped(self, db, repo):
        _upsert(db, _product("old"), W1)
        _upsert(db, _product("fresh"), W2)
        db.execute(
            "INSERT INTO products (catalog_product_id, product_name, "
            "preferred_measurement, measurement_type) "
            "VALUES ('legacy', 'Legacy', 'lb', 'weight')"
        )
        with db.transaction() as conn:
            deleted = repo.delete_stale_products(conn, W2)
        assert deleted == 2
        assert [p.catalog_product_id for p in repo.get_all_products()] == ["fresh"]

    def test_get_all_sorted_by_name(self, db, repo):
        _upsert(db, _product("a", "Zucchini"))
        _upsert(db, _product("b", "Apples"))
        assert [p.product_name for p in repo.get_all_products()] == [
            "Apples", "Zucchini",
        ]

    def test_search(self, db, repo):
        _upsert(db, _product("a", "Bread Flour"))
        _upsert(db, _product("b", "Olive Oil", description="extra virgin"))
        assert [p.catalog_product_id for p in repo.search_products("flour")] == ["a"]
        assert [p.catalog_product_id for p in repo.search_products("virgin")] == ["b"]

    def test_missing_product_is_none(self, repo):
        assert repo.get_product_by_id("nope") is None
        assert repo.get_product_count() == 0


class TestRestaurantsAndDistributors:
    def test_create_generates_id(self, repo):
        rid = repo.create_restaurant(Restaurant(restaurant_name="Cafe",
                                                organization_id="o"))
        assert rid
        assert repo.get_restaurant_by_id(rid).restaurant_name == "Cafe"

    def test_duplicate_restaurant(self, repo, restaurant):
        with pytest.raises(AlreadyExistsError):
            repo.create_restaurant(Restaurant("r1", "Again", "org-1"))

    def test_duplicate_distributor(self, repo, distributors):
        with pytest.raises(AlreadyExistsError):
            repo.create_distributor(Distributor("d1", "Dup"))

    def test_distributors_sorted(self, repo, distributors):
        assert [d.distributor_name for d in repo.get_all_distributors()] == [
            "Sysco", "US Foods",
        ]

    def test_specs_for_product(self, repo, distributors):
        repo.create_distributor_spec(DistributorSpec(
            catalog_product_id="p1", distributor_id="d1",
            pack_size=25, pack_unit_of_measure="lb", case_packs=2,
            total_preferred_units=50,
        ))
        specs = repo.get_specs_for_product("p1")
        assert len(specs) == 1
        assert specs[0].total_preferred_units == 50
        assert repo.get_specs_for_product("p2") == []


class TestRecordPrice:
    def test_computes_unit_price(self, repo, restaurant, distributors):
        price = _price(case=37.0, units=50.0)
        price_id = repo.record_price(price)
        stored = repo.get_current_prices("r1")
        assert stored[0].price_id == price_id
        assert stored[0].unit_price == pytest.approx(0.74)

    def test_unit_price_rounded(self, repo, restaurant, distributors):
        price = _price(case=10.0, units=3.0)
        repo.record_price(price)
        assert price.unit_price == 3.3333

    def test_invalid_entry(self, repo, restaurant, distributors):
        with pytest.raises(ValidationError) as exc:
            repo.record_price(_price(case=-1, units=0))
        assert "case_price cannot be negative" in str(exc.value)
        assert "total_preferred_units must be greater than zero" in str(exc.value)

    def test_unknown_restaurant(self, repo, distributors):
        with pytest.raises(NotFoundError, match="Restaurant"):
            repo.record_price(_price())

    def test_unknown_distributor(self, repo, restaurant):
        with pytest.raises(NotFoundError, match="Distributor"):
            repo.record_price(_price(distributor="d9"))

    def test_duplicate_price_id(self, repo, restaurant, distributors):
        repo.record_price(_price(price_id="fixed"))
        with pytest.raises(AlreadyExistsError):
            repo.record_price(_price(price_id="fixed"))

    def test_current_prices_newest_first(self, repo, restaurant, distributors):
        repo.record_price(_price(date="2026-09-01"))
        repo.record_price(_price(date="2026-10-01"))
        dates = [p.effective_date for p in repo.get_current_prices("r1")]
        assert dates == ["2026-10-01", "2026-09-01"]


class TestPriceComparison:
    def test_cheapest_unit_price_wins(self, db, repo, restaurant, distributors):
        _upsert(db, _product("p1", "Flour"))
        repo.record_price(_price(distributor="d1", case=40.0, units=50.0))
        repo.record_price(_price(distributor="d2", case=30.0, units=50.0))

        rows = repo.get_price_comparison("r1")
        assert [r.distributor_name for r in rows] == ["US Foods", "Sysco"]
        assert [r.is_winner for r in rows] == [True, False]
        assert rows[0].product_name == "Flour"
        assert rows[0].preferred_measurement == "lb"

    def test_only_latest_price_per_distributor(self, repo, restaurant,
                                               distributors):
        repo.record_price(_price(distributor="d1", case=10.0,
                                 date="2026-09-01"))
        repo.record_price(_price(distributor="d1", case=45.0,
                                 date="2026-10-01"))
        repo.record_price(_price(distributor="d2", case=30.0))

        rows = repo.get_price_comparison("r1")
        assert len(rows) == 2
        by_dist = {r.price.distributor_id: r for r in rows}
        assert by_dist["d1"].price.case_price == 45.0
        assert by_dist["d2"].is_winner is True

    def test_unmirrored_product_still_listed(self, repo, restaurant,
                                             distributors):
        repo.record_price(_price(pid="gone"))
        rows = repo.get_price_comparison("r1")
        assert rows[0].product_name == ""
        assert rows[0].is_winner is True
