"""
Endpoint tests for the FastAPI application.

The app runs on an in-memory database; the menu cache is backed by an
in-memory store through dependency overrides.
"""

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.fake_store import InMemoryStore
from fixtures.sample_menus import OWNER_EMAIL, OWNER_PASSWORD, seed_trattoria

from qrmenu.api.auth_routes import hash_password
from qrmenu.api.dependencies import (
    get_assistant,
    get_catalog_service,
    get_menu_cache,
)
from qrmenu.cache.loader import MenuCacheLoader
from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.config.config_loader import AIConfig
from qrmenu.database.connection import DatabaseManager
from qrmenu.services.catalog_service import CatalogService
from qrmenu.services.chat_service import APOLOGY_MESSAGE, MenuAssistant
from qrmenu.web.app import create_app


@pytest.fixture
def env():
    DatabaseManager.reset_instance()
    db_manager = DatabaseManager(db_path=":memory:")
    ids = seed_trattoria(db_manager, password_hash=hash_password(OWNER_PASSWORD))

    store = InMemoryStore()
    cache = MenuCacheService(store, MenuCacheLoader(db_manager))
    catalog = CatalogService(cache, db_manager)

    app = create_app()
    app.dependency_overrides[get_menu_cache] = lambda: cache
    app.dependency_overrides[get_catalog_service] = lambda: catalog

    with TestClient(app) as client:
        yield SimpleNamespace(app=app, client=client, store=store, cache=cache, ids=ids)

    DatabaseManager.reset_instance()


def login(client) -> dict:
    response = client.post("/api/auth/login", json={"email": OWNER_EMAIL, "password": OWNER_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}


class TestAuth:

    def test_register_and_me(self, env):
        response = env.client.post(
            "/api/auth/register",
            json={"email": "new@owner.test", "password": "secret123", "name": "New"},
        )
        assert response.status_code == 200
        token = response.json()["token"]

        me = env.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "new@owner.test"

    def test_duplicate_register(self, env):
        response = env.client.post(
            "/api/auth/register", json={"email": OWNER_EMAIL, "password": "whatever"}
        )
        assert response.status_code == 400

    def test_wrong_password(self, env):
        response = env.client.post("/api/auth/login", json={"email": OWNER_EMAIL, "password": "nope"})
        assert response.status_code == 401

    def test_admin_requires_token(self, env):
        assert env.client.get("/api/restaurants").status_code == 401
        bad = {"Authorization": "Bearer qrm_invalid"}
        assert env.client.get("/api/restaurants", headers=bad).status_code == 401


class TestPublicMenu:

    def test_qr_code_serves_cached_menu_and_counts_scan(self, env):
        response = env.client.get(
            f"/api/public/menu/{env.ids['qr_code']}", headers={"User-Agent": "phone"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Pranzo"
        assert f"menu:{env.ids['lunch']}" in env.store.data

        env.client.get(f"/api/public/menu/{env.ids['qr_code']}")
        headers = login(env.client)
        codes = env.client.get(f"/api/menus/{env.ids['lunch']}/qr-codes", headers=headers).json()
        assert codes[0]["scan_count"] == 2
        assert env.cache.get_stats()["hits"] == 1

    def test_unknown_qr_code(self, env):
        assert env.client.get("/api/public/menu/nope").status_code == 404

    def test_restaurant_and_menu(self, env):
        restaurant = env.client.get(f"/api/public/restaurants/{env.ids['restaurant']}")
        menu = env.client.get(f"/api/public/menus/{env.ids['dinner']}")

        assert [m["name"] for m in restaurant.json()["menus"]] == ["Pranzo", "Cena"]
        assert menu.json()["categories"][0]["name"] == "Secondi"
        assert env.client.get("/api/public/menus/menu_missing").status_code == 404


class TestAdminWritesInvalidate:

    def test_price_change_visible_on_public_menu(self, env):
        headers = login(env.client)
        env.client.get(f"/api/public/menus/{env.ids['lunch']}")

        response = env.client.patch(
            f"/api/dishes/{env.ids['bruschetta']}", json={"price": 6}, headers=headers
        )
        assert response.status_code == 200

        menu = env.client.get(f"/api/public/menus/{env.ids['lunch']}").json()
        assert menu["categories"][0]["dishes"][0]["price"] == 6.0

    def test_create_category_and_dish(self, env):
        headers = login(env.client)

        category = env.client.post(
            f"/api/menus/{env.ids['dinner']}/categories", json={"name": "Dolci"}, headers=headers
        )
        assert category.status_code == 201

        dish = env.client.post(
            f"/api/categories/{category.json()['id']}/dishes",
            json={"name": "Tiramisù", "price": 6.5, "allergen_ids": [env.ids["lactose"]]},
            headers=headers,
        )
        assert dish.status_code == 201

        menu = env.client.get(f"/api/public/menus/{env.ids['dinner']}").json()
        assert [c["name"] for c in menu["categories"]] == ["Secondi", "Dolci"]
        assert menu["categories"][1]["dishes"][0]["allergens"][0]["name"] == "Lattosio"

    def test_other_owner_gets_403(self, env):
        register = env.client.post(
            "/api/auth/register", json={"email": "luigi@osteria.test", "password": "secret123"}
        )
        headers = {"Authorization": f"Bearer {register.json()['token']}"}

        response = env.client.delete(f"/api/dishes/{env.ids['bruschetta']}", headers=headers)

        assert response.status_code == 403

    def test_missing_dish_404(self, env):
        headers = login(env.client)

        response = env.client.patch("/api/dishes/dish_missing", json={"price": 1}, headers=headers)

        assert response.status_code == 404

    def test_allergen_rename(self, env):
        headers = login(env.client)
        env.client.get(f"/api/public/menus/{env.ids['lunch']}")

        response = env.client.patch(
            f"/api/allergens/{env.ids['gluten']}", json={"name": "Gluten"}, headers=headers
        )
        assert response.status_code == 200

        names = [a["name"] for a in env.client.get("/api/allergens").json()]
        assert names == ["Gluten", "Lattosio"]
        menu = env.client.get(f"/api/public/menus/{env.ids['lunch']}").json()
        assert menu["categories"][0]["dishes"][0]["allergens"][0]["name"] == "Gluten"


class TestOrders:

    def test_place_and_manage_order(self, env):
        response = env.client.post("/api/orders", json={
            "menu_id": env.ids["lunch"],
            "items": [{"dish_id": env.ids["bruschetta"], "quantity": 2}],
            "table_number": "3",
        })
        assert response.status_code == 201
        order = response.json()
        assert order["total"] == 10.0

        headers = login(env.client)
        patched = env.client.patch(
            f"/api/orders/{order['id']}", json={"status": "served"}, headers=headers
        )
        assert patched.json()["status"] == "served"

        listed = env.client.get(
            f"/api/restaurants/{env.ids['restaurant']}/orders?status=served", headers=headers
        )
        assert [o["id"] for o in listed.json()] == [order["id"]]

    def test_invalid_dish_400(self, env):
        response = env.client.post("/api/orders", json={
            "menu_id": env.ids["lunch"],
            "items": [{"dish_id": env.ids["saltimbocca"], "quantity": 1}],
        })
        assert response.status_code == 400


class TestChat:

    def test_chat_uses_cached_menu(self, env):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="The Bruschetta costs €5."))]
        ))
        env.app.dependency_overrides[get_assistant] = lambda: MenuAssistant(
            AIConfig(api_key="sk-test"), client=client
        )

        response = env.client.post("/api/ai/chat", json={
            "message": "How much is the bruschetta?",
            "menu_id": env.ids["lunch"],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "The Bruschetta costs €5."
        assert [d["name"] for d in body["mentioned_dishes"]] == ["Bruschetta"]
        assert f"menu:{env.ids['lunch']}" in env.store.data

    def test_chat_without_backend_apologizes(self, env):
        env.app.dependency_overrides[get_assistant] = lambda: MenuAssistant(AIConfig(api_key=""))

        response = env.client.post("/api/ai/chat", json={
            "message": "Hi",
            "restaurant_id": env.ids["restaurant"],
        })

        assert response.status_code == 200
        assert response.json()["response"] == APOLOGY_MESSAGE

    def test_chat_needs_target(self, env):
        assert env.client.post("/api/ai/chat", json={"message": "Hi"}).status_code == 400


class TestDishAnalysis:

    @pytest.fixture
    def backend(self, env):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[
            SimpleNamespace(message=SimpleNamespace(content=(
                '{"allergens": ["Glutine"], "ingredients": ["Pomodoro", "Aglio"], '
                '"isVegetarian": true, "isVegan": true, "isGlutenFree": false, '
                '"isSpicy": false, "spiceLevel": "mild"}'
            )))
        ]))
        env.app.dependency_overrides[get_assistant] = lambda: MenuAssistant(
            AIConfig(api_key="sk-test"), client=client
        )
        return client

    def test_analyze_updates_public_menu(self, env, backend):
        headers = login(env.client)
        env.client.get(f"/api/public/menus/{env.ids['lunch']}")

        response = env.client.post("/api/ai/analyze", json={
            "dish_id": env.ids["bruschetta"],
            "description": "Pane tostato, pomodoro e aglio",
        }, headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert body["cached"] is False
        assert body["analysis"]["ingredients"] == ["Pomodoro", "Aglio"]
        assert body["dish"]["is_vegan"] is True
        assert env.store.ttls[f"ai_analysis_{env.ids['bruschetta']}"] == 7 * 24 * 3600

        menu = env.client.get(f"/api/public/menus/{env.ids['lunch']}").json()
        assert menu["categories"][0]["dishes"][0]["is_vegan"] is True

    def test_second_call_served_from_cache(self, env, backend):
        headers = login(env.client)
        payload = {"dish_id": env.ids["bruschetta"]}

        env.client.post("/api/ai/analyze", json=payload, headers=headers)
        response = env.client.post("/api/ai/analyze", json=payload, headers=headers)

        assert response.json()["cached"] is True
        assert backend.chat.completions.create.await_count == 1

    def test_analyze_requires_owner(self, env, backend):
        payload = {"dish_id": env.ids["bruschetta"]}
        assert env.client.post("/api/ai/analyze", json=payload).status_code == 401

        register = env.client.post(
            "/api/auth/register", json={"email": "luigi@osteria.test", "password": "secret123"}
        )
        headers = {"Authorization": f"Bearer {register.json()['token']}"}
        assert env.client.post("/api/ai/analyze", json=payload, headers=headers).status_code == 403

    def test_unknown_dish_404(self, env, backend):
        headers = login(env.client)

        response = env.client.post("/api/ai/analyze", json={"dish_id": "dish_missing"}, headers=headers)

        assert response.status_code == 404


class TestReviewsAndArticles:

    def test_review_visible_after_approval(self, env):
        url = f"/api/public/restaurants/{env.ids['restaurant']}/reviews"

        created = env.client.post(url, json={"customer_name": "Anna", "rating": 5, "comment": "Ottimo"})
        assert created.status_code == 201
        assert env.client.get(url).json() == []

        headers = login(env.client)
        pending = env.client.get(f"/api/restaurants/{env.ids['restaurant']}/reviews", headers=headers)
        assert [r["id"] for r in pending.json()] == [created.json()["id"]]

        approved = env.client.patch(
            f"/api/reviews/{created.json()['id']}", json={"is_approved": True}, headers=headers
        )
        assert approved.json()["is_approved"] is True
        assert [r["customer_name"] for r in env.client.get(url).json()] == ["Anna"]

        deleted = env.client.delete(f"/api/reviews/{created.json()['id']}", headers=headers)
        assert deleted.status_code == 204

    def test_review_rating_validated(self, env):
        url = f"/api/public/restaurants/{env.ids['restaurant']}/reviews"

        assert env.client.post(url, json={"customer_name": "Anna", "rating": 6}).status_code == 422
        assert env.client.post(
            "/api/public/restaurants/rst_missing/reviews", json={"customer_name": "Anna", "rating": 3}
        ).status_code == 404

    def test_article_lifecycle(self, env):
        headers = login(env.client)
        public_url = f"/api/public/restaurants/{env.ids['restaurant']}/articles"

        created = env.client.post(
            f"/api/restaurants/{env.ids['restaurant']}/articles",
            json={"title": "Menu di primavera", "content": "Novità in arrivo"},
            headers=headers,
        )
        assert created.status_code == 201
        assert env.client.get(public_url).json() == []

        article_id = created.json()["id"]
        env.client.patch(f"/api/articles/{article_id}", json={"is_published": True}, headers=headers)
        assert [a["title"] for a in env.client.get(public_url).json()] == ["Menu di primavera"]

        assert env.client.delete(f"/api/articles/{article_id}", headers=headers).status_code == 204
        assert env.client.get(public_url).json() == []

    def test_owner_endpoints_require_auth(self, env):
        assert env.client.get(f"/api/restaurants/{env.ids['restaurant']}/reviews").status_code == 401
        assert env.client.post(
            f"/api/restaurants/{env.ids['restaurant']}/articles", json={"title": "x", "content": "y"}
        ).status_code == 401


class TestCategoryPresets:

    def test_list_presets(self, env):
        body = env.client.get("/api/categories/presets?cuisine=italian").json()

        assert "pizza" in body["cuisines"]
        assert [c["name"] for c in body["categories"]][:2] == ["Antipasti", "Primi Piatti"]
        assert env.client.get("/api/categories/presets?cuisine=martian").status_code == 400

    def test_apply_to_menu(self, env):
        headers = login(env.client)
        env.client.get(f"/api/public/menus/{env.ids['dinner']}")

        response = env.client.post(
            f"/api/menus/{env.ids['dinner']}/categories/presets",
            json={"cuisine": "italian"},
            headers=headers,
        )

        assert response.status_code == 201
        assert len(response.json()) == 6
        menu = env.client.get(f"/api/public/menus/{env.ids['dinner']}").json()
        assert [c["name"] for c in menu["categories"]][:2] == ["Secondi", "Antipasti"]

    def test_other_owner_gets_403(self, env):
        register = env.client.post(
            "/api/auth/register", json={"email": "luigi@osteria.test", "password": "secret123"}
        )
        headers = {"Authorization": f"Bearer {register.json()['token']}"}

        response = env.client.post(
            f"/api/menus/{env.ids['dinner']}/categories/presets",
            json={"cuisine": "italian"},
            headers=headers,
        )

        assert response.status_code == 403


class TestCacheAdmin:

    def test_invalidate_and_stats(self, env):
        headers = login(env.client)
        env.client.get(f"/api/public/restaurants/{env.ids['restaurant']}")
        env.client.get(f"/api/public/menus/{env.ids['lunch']}")

        response = env.client.post(
            "/api/cache/invalidate", json={"restaurant_id": env.ids["restaurant"]}, headers=headers
        )

        assert response.status_code == 200
        assert env.store.data == {}

        stats = env.client.get("/api/cache/stats", headers=headers).json()
        assert stats["cache"]["invalidations"] >= 3

    def test_clear(self, env):
        headers = login(env.client)
        env.client.get(f"/api/public/menus/{env.ids['lunch']}")

        response = env.client.post("/api/cache/clear", headers=headers)

        assert response.json()["deleted"] == 1
        assert env.store.data == {}

    def test_health(self, env):
        body = env.client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["database"] is True
        assert body["cache"] == "disabled"
