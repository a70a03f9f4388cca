"""
Catalog Service
Single write path for restaurants, menus, categories, dishes and the
allergen/ingredient catalog

Every mutation:
1. checks ownership,
2. writes through the repositories inside one session scope,
3. commits,
4. invalidates the cache entry of every aggregate that embeds the changed row.

Invalidation map:
- dish / category / menu change   -> owning menu + owning restaurant
- dish moved to another menu      -> both menus + their restaurants
- restaurant change               -> restaurant + all of its menus
                                     (menu aggregates embed a restaurant summary)
- allergen / ingredient change    -> every menu with a dish linked to it

HTTP handlers call this service instead of the repositories so no handler
has to remember which cache keys to drop.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from loguru import logger

from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.database.connection import DatabaseManager
from qrmenu.database.models import Category, Dish, Menu, Restaurant
from qrmenu.database.repository import (
    AllergenRepository,
    CategoryRepository,
    DishRepository,
    IngredientRepository,
    MenuRepository,
    QRCodeRepository,
    RestaurantRepository,
)
from qrmenu.services.category_presets import presets_for
from qrmenu.services.errors import NotFoundError, PermissionDeniedError, ValidationError


@dataclass
class TouchedAggregates:
    """Cache entries a committed write made stale."""
    menu_ids: Set[str] = field(default_factory=set)
    restaurant_ids: Set[str] = field(default_factory=set)

    def add_menu(self, menu_id: str, restaurant_id: str) -> None:
        self.menu_ids.add(menu_id)
        self.restaurant_ids.add(restaurant_id)

    def add_restaurant(self, restaurant_id: str, menu_ids: List[str]) -> None:
        self.restaurant_ids.add(restaurant_id)
        self.menu_ids.update(menu_ids)


class CatalogService:
    """Owner-scoped CRUD over the menu tree with cache invalidation."""

    def __init__(
        self,
        cache: MenuCacheService,
        db_manager: Optional[DatabaseManager] = None,
    ):
        self._cache = cache
        self._db_manager = db_manager

    @property
    def db_manager(self) -> DatabaseManager:
        return self._db_manager or DatabaseManager.get_instance()

    async def _invalidate(self, touched: TouchedAggregates) -> None:
        await asyncio.gather(
            *[self._cache.invalidate_menu_cache(m) for m in sorted(touched.menu_ids)],
            *[self._cache.invalidate_restaurant_cache(r) for r in sorted(touched.restaurant_ids)],
        )
        logger.debug(
            f"Invalidated {len(touched.menu_ids)} menu and "
            f"{len(touched.restaurant_ids)} restaurant cache entries"
        )

    # ------------------------------------------------------------------
    # Ownership checks
    # ------------------------------------------------------------------

    @staticmethod
    def _owned_restaurant(db, owner_id: str, restaurant_id: str) -> Restaurant:
        restaurant = RestaurantRepository(db).get(restaurant_id)
        if restaurant is None:
            raise NotFoundError("restaurant", restaurant_id)
        if restaurant.owner_id != owner_id:
            raise PermissionDeniedError("restaurant", restaurant_id)
        return restaurant

    @staticmethod
    def _owned_menu(db, owner_id: str, menu_id: str) -> Menu:
        menu = MenuRepository(db).get(menu_id)
        if menu is None or not menu.restaurant.is_active:
            raise NotFoundError("menu", menu_id)
        if menu.restaurant.owner_id != owner_id:
            raise PermissionDeniedError("menu", menu_id)
        return menu

    @staticmethod
    def _owned_category(db, owner_id: str, category_id: str) -> Category:
        category = CategoryRepository(db).get(category_id)
        if category is None or not category.menu.is_active:
            raise NotFoundError("category", category_id)
        if category.menu.restaurant.owner_id != owner_id:
            raise PermissionDeniedError("category", category_id)
        return category

    @staticmethod
    def _owned_dish(db, owner_id: str, dish_id: str) -> Dish:
        dish = DishRepository(db).get(dish_id)
        if dish is None:
            raise NotFoundError("dish", dish_id)
        if dish.category.menu.restaurant.owner_id != owner_id:
            raise PermissionDeniedError("dish", dish_id)
        return dish

    # ------------------------------------------------------------------
    # Restaurants
    # ------------------------------------------------------------------

    def list_restaurants(self, owner_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            return [r.to_dict() for r in RestaurantRepository(db).list_by_owner(owner_id)]

    def get_restaurant(self, owner_id: str, restaurant_id: str) -> Dict[str, Any]:
        with self.db_manager.session_scope() as db:
            return self._owned_restaurant(db, owner_id, restaurant_id).to_dict()

    async def create_restaurant(self, owner_id: str, name: str, **fields) -> Dict[str, Any]:
        with self.db_manager.session_scope() as db:
            restaurant = RestaurantRepository(db).create(owner_id=owner_id, name=name, **fields)
            result = restaurant.to_dict()

        await self._invalidate(TouchedAggregates(restaurant_ids={result['id']}))
        logger.info(f"Restaurant created: {result['id']} by owner {owner_id}")
        return result

    async def update_restaurant(self, owner_id: str, restaurant_id: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            repo = RestaurantRepository(db)
            restaurant = repo.update(restaurant_id, **fields)
            touched.add_restaurant(restaurant_id, repo.menu_ids(restaurant_id))
            result = restaurant.to_dict()

        await self._invalidate(touched)
        logger.info(f"Restaurant updated: {restaurant_id}")
        return result

    async def delete_restaurant(self, owner_id: str, restaurant_id: str) -> None:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            repo = RestaurantRepository(db)
            repo.delete(restaurant_id)
            touched.add_restaurant(restaurant_id, repo.menu_ids(restaurant_id))

        await self._invalidate(touched)
        logger.info(f"Restaurant deleted: {restaurant_id}")

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def list_menus(self, owner_id: str, restaurant_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            return [m.to_dict() for m in MenuRepository(db).list_by_restaurant(restaurant_id)]

    async def create_menu(self, owner_id: str, restaurant_id: str, name: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            menu = MenuRepository(db).create(restaurant_id=restaurant_id, name=name, **fields)
            touched.add_menu(menu.id, restaurant_id)
            result = menu.to_dict()

        await self._invalidate(touched)
        logger.info(f"Menu created: {result['id']} in restaurant {restaurant_id}")
        return result

    async def update_menu(self, owner_id: str, menu_id: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            MenuRepository(db).update(menu_id, **fields)
            touched.add_menu(menu.id, menu.restaurant_id)
            result = menu.to_dict()

        await self._invalidate(touched)
        logger.info(f"Menu updated: {menu_id}")
        return result

    async def delete_menu(self, owner_id: str, menu_id: str) -> None:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            MenuRepository(db).delete(menu_id)
            touched.add_menu(menu.id, menu.restaurant_id)

        await self._invalidate(touched)
        logger.info(f"Menu deleted: {menu_id}")

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self, owner_id: str, menu_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            self._owned_menu(db, owner_id, menu_id)
            return [c.to_dict() for c in CategoryRepository(db).list_by_menu(menu_id)]

    async def create_category(self, owner_id: str, menu_id: str, name: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            category = CategoryRepository(db).create(menu_id=menu_id, name=name, **fields)
            touched.add_menu(menu.id, menu.restaurant_id)
            result = category.to_dict()

        await self._invalidate(touched)
        logger.info(f"Category created: {result['id']} in menu {menu_id}")
        return result

    async def update_category(self, owner_id: str, category_id: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            category = self._owned_category(db, owner_id, category_id)
            CategoryRepository(db).update(category_id, **fields)
            touched.add_menu(category.menu_id, category.menu.restaurant_id)
            result = category.to_dict()

        await self._invalidate(touched)
        logger.info(f"Category updated: {category_id}")
        return result

    async def delete_category(self, owner_id: str, category_id: str) -> None:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            category = self._owned_category(db, owner_id, category_id)
            CategoryRepository(db).delete(category_id)
            touched.add_menu(category.menu_id, category.menu.restaurant_id)

        await self._invalidate(touched)
        logger.info(f"Category deleted: {category_id}")

    async def reorder_categories(self, owner_id: str, menu_id: str, ordered_ids: List[str]) -> int:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            updated = CategoryRepository(db).reorder(menu_id, ordered_ids)
            touched.add_menu(menu.id, menu.restaurant_id)

        await self._invalidate(touched)
        return updated

    async def apply_category_presets(
        self,
        owner_id: str,
        menu_id: str,
        cuisine: str,
    ) -> List[Dict[str, Any]]:
        """
        Append a cuisine's preset categories to a menu.

        Presets whose name the menu already uses (case-insensitive) are
        skipped. Returns the categories created.
        """
        presets = presets_for(cuisine)
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            repo = CategoryRepository(db)
            taken = {c.name.lower() for c in repo.list_by_menu(menu_id)}
            created = [
                repo.create(menu_id=menu_id, name=preset["name"], description=preset["description"])
                for preset in presets
                if preset["name"].lower() not in taken
            ]
            if created:
                touched.add_menu(menu.id, menu.restaurant_id)
            result = [category.to_dict() for category in created]

        await self._invalidate(touched)
        logger.info(f"Added {len(result)} {cuisine} preset categories to menu {menu_id}")
        return result

    # ------------------------------------------------------------------
    # Dishes
    # ------------------------------------------------------------------

    def list_dishes(self, owner_id: str, category_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            self._owned_category(db, owner_id, category_id)
            return [d.to_dict() for d in DishRepository(db).list_by_category(category_id)]

    async def create_dish(
        self,
        owner_id: str,
        category_id: str,
        name: str,
        price: Any,
        **fields,
    ) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            category = self._owned_category(db, owner_id, category_id)
            dish = DishRepository(db).create(
                category_id=category_id, name=name, price=price, **fields
            )
            touched.add_menu(category.menu_id, category.menu.restaurant_id)
            result = dish.to_dict()

        await self._invalidate(touched)
        logger.info(f"Dish created: {result['id']} in category {category_id}")
        return result

    async def update_dish(self, owner_id: str, dish_id: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            dish = self._owned_dish(db, owner_id, dish_id)
            touched.add_menu(dish.category.menu_id, dish.category.menu.restaurant_id)

            target_id = fields.get('category_id')
            if target_id and target_id != dish.category_id:
                target = self._owned_category(db, owner_id, target_id)
                touched.add_menu(target.menu_id, target.menu.restaurant_id)

            dish = DishRepository(db).update(dish_id, **fields)
            result = dish.to_dict()

        await self._invalidate(touched)
        logger.info(f"Dish updated: {dish_id}")
        return result

    async def delete_dish(self, owner_id: str, dish_id: str) -> None:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            dish = self._owned_dish(db, owner_id, dish_id)
            touched.add_menu(dish.category.menu_id, dish.category.menu.restaurant_id)
            DishRepository(db).delete(dish_id)

        await self._invalidate(touched)
        logger.info(f"Dish deleted: {dish_id}")

    def get_dish(self, owner_id: str, dish_id: str) -> Dict[str, Any]:
        with self.db_manager.session_scope() as db:
            return self._owned_dish(db, owner_id, dish_id).to_dict()

    async def apply_dish_analysis(
        self,
        owner_id: str,
        dish_id: str,
        analysis: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Write an AI analysis onto a dish.

        Dietary flags are overwritten; allergen and ingredient names are
        matched against the catalog case-insensitively, and names the
        catalog does not know yet are added to it.
        """
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            dish = self._owned_dish(db, owner_id, dish_id)
            touched.add_menu(dish.category.menu_id, dish.category.menu.restaurant_id)

            allergen_repo = AllergenRepository(db)
            ingredient_repo = IngredientRepository(db)
            dish = DishRepository(db).update(
                dish_id,
                allergen_ids=[allergen_repo.find_or_create(n).id for n in analysis['allergens']],
                ingredient_ids=[ingredient_repo.find_or_create(n).id for n in analysis['ingredients']],
                is_vegetarian=analysis['is_vegetarian'],
                is_vegan=analysis['is_vegan'],
                is_gluten_free=analysis['is_gluten_free'],
                is_spicy=analysis['is_spicy'],
                ai_analyzed=True,
            )
            result = dish.to_dict()

        await self._invalidate(touched)
        logger.info(
            f"Dish {dish_id} updated from AI analysis "
            f"({len(result['allergens'])} allergens, {len(result['ingredients'])} ingredients)"
        )
        return result

    async def reorder_dishes(self, owner_id: str, category_id: str, ordered_ids: List[str]) -> int:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            category = self._owned_category(db, owner_id, category_id)
            updated = DishRepository(db).reorder(category_id, ordered_ids)
            touched.add_menu(category.menu_id, category.menu.restaurant_id)

        await self._invalidate(touched)
        return updated

    # ------------------------------------------------------------------
    # Allergen / ingredient catalog
    # ------------------------------------------------------------------

    def _catalog_repo(self, db, kind: str):
        if kind == "allergen":
            return AllergenRepository(db)
        if kind == "ingredient":
            return IngredientRepository(db)
        raise ValueError(f"Unknown catalog kind: {kind}")

    def list_catalog(self, kind: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            return [e.to_dict() for e in self._catalog_repo(db, kind).list_all()]

    def create_catalog_entry(self, kind: str, name: str, **fields) -> Dict[str, Any]:
        """New entries are not linked to any dish yet, so nothing is cached stale."""
        with self.db_manager.session_scope() as db:
            repo = self._catalog_repo(db, kind)
            if repo.get_by_name(name) is not None:
                raise ValidationError(f"{kind} '{name}' already exists")
            return repo.create(name, **fields).to_dict()

    async def update_catalog_entry(self, kind: str, entry_id: str, **fields) -> Dict[str, Any]:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            repo = self._catalog_repo(db, kind)
            entry = repo.update(entry_id, **fields)
            if entry is None:
                raise NotFoundError(kind, entry_id)
            for menu_id, restaurant_id in repo.referencing_menus(entry_id):
                touched.add_menu(menu_id, restaurant_id)
            result = entry.to_dict()

        await self._invalidate(touched)
        return result

    async def delete_catalog_entry(self, kind: str, entry_id: str) -> None:
        touched = TouchedAggregates()
        with self.db_manager.session_scope() as db:
            repo = self._catalog_repo(db, kind)
            refs = repo.referencing_menus(entry_id)
            if not repo.delete(entry_id):
                raise NotFoundError(kind, entry_id)
            for menu_id, restaurant_id in refs:
                touched.add_menu(menu_id, restaurant_id)

        await self._invalidate(touched)

    # ------------------------------------------------------------------
    # QR codes (not part of any cached aggregate)
    # ------------------------------------------------------------------

    def create_qr_code(self, owner_id: str, menu_id: str) -> Dict[str, Any]:
        with self.db_manager.session_scope() as db:
            menu = self._owned_menu(db, owner_id, menu_id)
            return QRCodeRepository(db).create(menu.restaurant_id, menu.id).to_dict()

    def list_qr_codes(self, owner_id: str, menu_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            self._owned_menu(db, owner_id, menu_id)
            return [qr.to_dict() for qr in QRCodeRepository(db).list_by_menu(menu_id)]
