"""
Unit tests for Repository pattern implementation.

Tests CRUD operations for:
- Restaurants, menus, categories, dishes (soft delete, ordering)
- Allergen / ingredient catalog and the menus referencing an entry
- QR codes and scans
- Orders
"""

from decimal import Decimal

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.sample_menus import seed_trattoria

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.models import QRScan
from qrmenu.database.repository import (
    AllergenRepository,
    CategoryRepository,
    DishRepository,
    IngredientRepository,
    MenuRepository,
    OrderRepository,
    OwnerRepository,
    ArticleRepository,
    QRCodeRepository,
    RestaurantRepository,
    ReviewRepository,
    to_decimal,
)


@pytest.fixture
def db_manager():
    """Create in-memory database."""
    DatabaseManager.reset_instance()
    manager = DatabaseManager(db_path=":memory:")
    yield manager
    DatabaseManager.reset_instance()


@pytest.fixture
def ids(db_manager):
    return seed_trattoria(db_manager)


def test_to_decimal():
    assert to_decimal(5) == Decimal("5.00")
    assert to_decimal(6.1) == Decimal("6.10")
    assert to_decimal("7.555") == Decimal("7.56")


class TestOwnerRepository:

    def test_email_is_normalized(self, db_manager):
        with db_manager.session_scope() as db:
            repo = OwnerRepository(db)
            owner = repo.create(email="  Chef@Example.TEST ", password_hash="x")

            assert owner.email == "chef@example.test"
            assert repo.get_by_email("CHEF@example.test").id == owner.id
            assert owner.id.startswith("own_")


class TestRestaurantRepository:

    def test_create_generates_slug(self, db_manager, ids):
        with db_manager.session_scope() as db:
            restaurant = RestaurantRepository(db).get(ids["restaurant"])

            assert restaurant.slug.startswith("trattoria-roma-")

    def test_soft_delete(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = RestaurantRepository(db)
            assert repo.delete(ids["restaurant"]) is True

            assert repo.get(ids["restaurant"]) is None
            assert repo.get(ids["restaurant"], include_inactive=True) is not None
            assert repo.list_by_owner(ids["owner"]) == []

    def test_menu_ids_include_inactive(self, db_manager, ids):
        with db_manager.session_scope() as db:
            MenuRepository(db).delete(ids["dinner"])
            menu_ids = RestaurantRepository(db).menu_ids(ids["restaurant"])

        assert set(menu_ids) == {ids["lunch"], ids["dinner"]}


class TestMenuRepository:

    def test_list_by_restaurant_is_ordered(self, db_manager, ids):
        with db_manager.session_scope() as db:
            names = [m.name for m in MenuRepository(db).list_by_restaurant(ids["restaurant"])]

        assert names == ["Pranzo", "Cena"]

    def test_update_availability(self, db_manager, ids):
        with db_manager.session_scope() as db:
            menu = MenuRepository(db).update(ids["lunch"], availability={"days": ["mon", "tue"]})

            assert menu.availability == {"days": ["mon", "tue"]}


class TestCategoryRepository:

    def test_auto_sort_order(self, db_manager, ids):
        with db_manager.session_scope() as db:
            category = CategoryRepository(db).create(menu_id=ids["lunch"], name="Dolci")

            assert category.sort_order == 3

    def test_reorder_ignores_unknown_ids(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = CategoryRepository(db)
            updated = repo.reorder(ids["lunch"], [ids["primi"], "cat_unknown", ids["antipasti"]])
            names = [c.name for c in repo.list_by_menu(ids["lunch"])]

        assert updated == 2
        assert names == ["Primi", "Antipasti"]


class TestDishRepository:

    def test_price_stored_as_decimal(self, db_manager, ids):
        with db_manager.session_scope() as db:
            dish = DishRepository(db).get(ids["bruschetta"])

            assert dish.price == Decimal("5.00")
            assert dish.price_value == 5.0

    def test_update_price_and_allergens(self, db_manager, ids):
        with db_manager.session_scope() as db:
            dish = DishRepository(db).update(
                ids["bruschetta"], price=6, allergen_ids=[ids["lactose"]]
            )

            assert dish.price == Decimal("6.00")
            assert [a.name for a in dish.allergens] == ["Lattosio"]

    def test_list_active_for_menu(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = DishRepository(db)
            repo.delete(ids["caprese"])
            dishes = repo.list_active_for_menu(
                ids["lunch"], [ids["bruschetta"], ids["caprese"], ids["saltimbocca"]]
            )

            assert [d.id for d in dishes] == [ids["bruschetta"]]

    def test_gallery_images_json(self, db_manager, ids):
        with db_manager.session_scope() as db:
            dish = DishRepository(db).update(
                ids["caprese"], gallery_images=[{"url": "/img/caprese.jpg"}]
            )

            assert dish.gallery_images == [{"url": "/img/caprese.jpg"}]


class TestCatalogRepositories:

    def test_list_sorted_by_name(self, db_manager, ids):
        with db_manager.session_scope() as db:
            names = [a.name for a in AllergenRepository(db).list_all()]

        assert names == ["Glutine", "Lattosio"]

    def test_referencing_menus(self, db_manager, ids):
        with db_manager.session_scope() as db:
            refs = AllergenRepository(db).referencing_menus(ids["gluten"])
            tomato_refs = IngredientRepository(db).referencing_menus(ids["tomato"])

        assert refs == {(ids["lunch"], ids["restaurant"])}
        assert tomato_refs == {(ids["lunch"], ids["restaurant"])}

    def test_find_or_create_matches_case_insensitively(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = AllergenRepository(db)

            assert repo.find_or_create(" glutine ").id == ids["gluten"]
            created = repo.find_or_create("Sesamo")
            assert created.name == "Sesamo"
            assert repo.find_or_create("SESAMO").id == created.id
            assert len(repo.list_all()) == 3

    def test_delete_removes_links(self, db_manager, ids):
        with db_manager.session_scope() as db:
            assert AllergenRepository(db).delete(ids["gluten"]) is True

        with db_manager.session_scope() as db:
            dish = DishRepository(db).get(ids["bruschetta"])
            assert dish.allergens == []


class TestQRCodeRepository:

    def test_record_scan(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = QRCodeRepository(db)
            qr_code = repo.get_active_by_code(ids["qr_code"])
            repo.record_scan(qr_code, ip_address="10.0.0.1", user_agent="pytest")

        with db_manager.session_scope() as db:
            qr_code = QRCodeRepository(db).get_active_by_code(ids["qr_code"])

            assert qr_code.scan_count == 1
            assert qr_code.last_scanned is not None
            assert db.query(QRScan).count() == 1

    def test_generated_codes_are_unique(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = QRCodeRepository(db)
            codes = {repo.create(ids["restaurant"], ids["lunch"]).code for _ in range(5)}

        assert len(codes) == 5


class TestOrderRepository:

    def test_create_computes_total(self, db_manager, ids):
        with db_manager.session_scope() as db:
            dishes = DishRepository(db)
            order = OrderRepository(db).create(
                restaurant_id=ids["restaurant"],
                menu_id=ids["lunch"],
                lines=[(dishes.get(ids["bruschetta"]), 2), (dishes.get(ids["caprese"]), 1)],
                table_number="4",
            )
            data = order.to_dict()

        assert data["total"] == 17.5
        assert data["status"] == "pending"
        assert [item["quantity"] for item in data["items"]] == [2, 1]

    def test_list_and_update_status(self, db_manager, ids):
        with db_manager.session_scope() as db:
            dish = DishRepository(db).get(ids["bruschetta"])
            repo = OrderRepository(db)
            order = repo.create(ids["restaurant"], ids["lunch"], [(dish, 1)])
            repo.update_status(order.id, "ready")

            assert [o.id for o in repo.list_by_restaurant(ids["restaurant"], status="ready")] == [order.id]
            assert repo.list_by_restaurant(ids["restaurant"], status="pending") == []


class TestReviewRepository:

    def test_create_is_pending(self, db_manager, ids):
        with db_manager.session_scope() as db:
            review = ReviewRepository(db).create(ids["restaurant"], "Anna", 5, "Ottimo")

            assert review.id.startswith("rev_")
            assert review.is_approved is False

    def test_approved_only(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = ReviewRepository(db)
            pending = repo.create(ids["restaurant"], "Anna", 3)
            approved = repo.create(ids["restaurant"], "Bruno", 4)
            repo.update(approved.id, is_approved=True)

            assert [r.id for r in repo.list_by_restaurant(ids["restaurant"], approved_only=True)] == [approved.id]
            assert {r.id for r in repo.list_by_restaurant(ids["restaurant"])} == {pending.id, approved.id}

    def test_delete(self, db_manager, ids):
        with db_manager.session_scope() as db:
            review = ReviewRepository(db).create(ids["restaurant"], "Anna", 3)
            assert ReviewRepository(db).delete(review.id) is True
            assert ReviewRepository(db).delete(review.id) is False


class TestArticleRepository:

    def test_published_at_follows_flag(self, db_manager, ids):
        with db_manager.session_scope() as db:
            repo = ArticleRepository(db)
            draft = repo.create(ids["restaurant"], "Titolo", "Testo")
            live = repo.create(ids["restaurant"], "Live", "Testo", is_published=True)

            assert draft.published_at is None
            assert live.published_at is not None
            assert [a.id for a in repo.list_by_restaurant(ids["restaurant"], published_only=True)] == [live.id]

            repo.update(draft.id, is_published=True)
            assert draft.published_at is not None
            repo.update(live.id, is_published=False)
            assert live.published_at is None

    def test_unknown_fields_ignored(self, db_manager, ids):
        with db_manager.session_scope() as db:
            article = ArticleRepository(db).create(
                ids["restaurant"], "Titolo", "Testo", button_text="Prenota", color="red"
            )

            assert article.button_text == "Prenota"
            assert ArticleRepository(db).update("art_missing", title="x") is None
