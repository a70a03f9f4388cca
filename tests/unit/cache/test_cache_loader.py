"""
Unit tests for MenuCacheLoader.

Builds aggregates from an in-memory SQLite database:
- Menu tree shape, ordering and restaurant summary
- Soft-deleted rows are left out
- Unknown / inactive ids load as None
"""

import json

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.sample_menus import seed_trattoria

from qrmenu.cache.loader import MenuCacheLoader, count_dishes, iter_dishes
from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import (
    CategoryRepository,
    DishRepository,
    MenuRepository,
    RestaurantRepository,
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


class TestLoadMenu:
    """Tests for load_menu."""

    @pytest.mark.asyncio
    async def test_menu_tree(self, db_manager, ids):
        loader = MenuCacheLoader(db_manager)

        menu = await loader.load_menu(ids["lunch"])

        assert menu["id"] == ids["lunch"]
        assert menu["restaurant_id"] == ids["restaurant"]
        assert menu["restaurant"]["name"] == "Trattoria Roma"
        assert [c["name"] for c in menu["categories"]] == ["Antipasti", "Primi"]
        assert [d["name"] for d in menu["categories"][0]["dishes"]] == ["Bruschetta", "Caprese"]
        assert count_dishes(menu) == 3

    @pytest.mark.asyncio
    async def test_dish_payload(self, db_manager, ids):
        menu = await MenuCacheLoader(db_manager).load_menu(ids["lunch"])

        bruschetta = iter_dishes(menu)[0]
        assert bruschetta["price"] == 5.0
        assert isinstance(bruschetta["price"], float)
        assert bruschetta["is_vegetarian"] is True
        assert [a["name"] for a in bruschetta["allergens"]] == ["Glutine"]
        assert [i["name"] for i in bruschetta["ingredients"]] == ["Pomodoro"]
        assert "category_id" not in bruschetta

        carbonara = menu["categories"][1]["dishes"][0]
        assert [a["name"] for a in carbonara["allergens"]] == ["Glutine", "Lattosio"]

    @pytest.mark.asyncio
    async def test_payload_is_json_native(self, db_manager, ids):
        menu = await MenuCacheLoader(db_manager).load_menu(ids["lunch"])

        assert json.loads(json.dumps(menu)) == menu

    @pytest.mark.asyncio
    async def test_soft_deleted_rows_excluded(self, db_manager, ids):
        with db_manager.session_scope() as db:
            DishRepository(db).delete(ids["caprese"])
            CategoryRepository(db).delete(ids["primi"])

        menu = await MenuCacheLoader(db_manager).load_menu(ids["lunch"])

        assert [c["name"] for c in menu["categories"]] == ["Antipasti"]
        assert [d["name"] for d in iter_dishes(menu)] == ["Bruschetta"]

    @pytest.mark.asyncio
    async def test_sort_order(self, db_manager, ids):
        with db_manager.session_scope() as db:
            CategoryRepository(db).reorder(ids["lunch"], [ids["primi"], ids["antipasti"]])

        menu = await MenuCacheLoader(db_manager).load_menu(ids["lunch"])

        assert [c["name"] for c in menu["categories"]] == ["Primi", "Antipasti"]

    @pytest.mark.asyncio
    async def test_unknown_menu(self, db_manager, ids):
        assert await MenuCacheLoader(db_manager).load_menu("menu_missing") is None

    @pytest.mark.asyncio
    async def test_deleted_menu(self, db_manager, ids):
        with db_manager.session_scope() as db:
            MenuRepository(db).delete(ids["dinner"])

        assert await MenuCacheLoader(db_manager).load_menu(ids["dinner"]) is None

    @pytest.mark.asyncio
    async def test_menu_of_deleted_restaurant(self, db_manager, ids):
        with db_manager.session_scope() as db:
            RestaurantRepository(db).delete(ids["restaurant"])

        assert await MenuCacheLoader(db_manager).load_menu(ids["lunch"]) is None


class TestLoadRestaurant:
    """Tests for load_restaurant."""

    @pytest.mark.asyncio
    async def test_restaurant_with_menus(self, db_manager, ids):
        restaurant = await MenuCacheLoader(db_manager).load_restaurant(ids["restaurant"])

        assert restaurant["name"] == "Trattoria Roma"
        assert restaurant["is_active"] is True
        assert [m["name"] for m in restaurant["menus"]] == ["Pranzo", "Cena"]
        assert count_dishes(restaurant["menus"][1]) == 1

    @pytest.mark.asyncio
    async def test_deleted_restaurant(self, db_manager, ids):
        with db_manager.session_scope() as db:
            RestaurantRepository(db).delete(ids["restaurant"])

        assert await MenuCacheLoader(db_manager).load_restaurant(ids["restaurant"]) is None

    @pytest.mark.asyncio
    async def test_identical_state_identical_payload(self, db_manager, ids):
        loader = MenuCacheLoader(db_manager)

        first = await loader.load_restaurant(ids["restaurant"])
        second = await loader.load_restaurant(ids["restaurant"])

        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)
