"""
Cache Loader
Reads Restaurant and Menu aggregates from the primary store

Only active (non soft-deleted) descendants are included, ordered by
sort_order ascending (ties broken by created_at, then id) so that identical
database state always produces an identical payload. Returned values are
JSON-native dicts: prices are floats, timestamps ISO strings.

No caching happens here; database errors propagate to the caller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import selectinload
from loguru import logger

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.models import Category, Dish, Menu, Restaurant


def _ordered(rows):
    """Active rows by (sort_order, created_at, id)."""
    return sorted(
        (row for row in rows if row.is_active),
        key=lambda row: (row.sort_order or 0, row.created_at or datetime.min, row.id),
    )


def _dish_payload(dish: Dish) -> Dict[str, Any]:
    payload = dish.to_dict()
    payload.pop('category_id', None)
    payload.pop('is_active', None)
    return payload


def _category_payload(category: Category) -> Dict[str, Any]:
    return {
        'id': category.id,
        'name': category.name,
        'description': category.description,
        'cover_image': category.cover_image,
        'sort_order': category.sort_order,
        'dishes': [_dish_payload(dish) for dish in _ordered(category.dishes)],
    }


def _menu_payload(menu: Menu) -> Dict[str, Any]:
    return {
        'id': menu.id,
        'restaurant_id': menu.restaurant_id,
        'name': menu.name,
        'description': menu.description,
        'availability': menu.availability,
        'is_active': menu.is_active,
        'sort_order': menu.sort_order,
        'categories': [_category_payload(c) for c in _ordered(menu.categories)],
    }


_TREE = (
    selectinload(Category.dishes).selectinload(Dish.allergens),
    selectinload(Category.dishes).selectinload(Dish.ingredients),
)


class MenuCacheLoader:
    """
    Authoritative source for the menu cache.

    Example:
        loader = MenuCacheLoader(DatabaseManager())
        menu = await loader.load_menu("menu_123")
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db_manager(self) -> DatabaseManager:
        return self._db_manager or DatabaseManager.get_instance()

    async def load_menu(self, menu_id: str) -> Optional[Dict[str, Any]]:
        """Menu with its restaurant summary, categories and dishes, or None."""
        with self.db_manager.session_scope() as db:
            menu = (
                db.query(Menu)
                .options(
                    selectinload(Menu.restaurant),
                    *[selectinload(Menu.categories).options(opt) for opt in _TREE],
                )
                .filter(Menu.id == menu_id, Menu.is_active == True)
                .first()
            )
            if menu is None or not menu.restaurant.is_active:
                logger.debug(f"Menu {menu_id} not found in primary store")
                return None

            payload = _menu_payload(menu)
            payload['restaurant'] = menu.restaurant.summary()
            logger.debug(f"Loaded menu {menu_id} ({count_dishes(payload)} dishes)")
            return payload

    async def load_restaurant(self, restaurant_id: str) -> Optional[Dict[str, Any]]:
        """Restaurant with its active menus (full tree), or None."""
        with self.db_manager.session_scope() as db:
            restaurant = (
                db.query(Restaurant)
                .options(
                    *[
                        selectinload(Restaurant.menus)
                        .selectinload(Menu.categories)
                        .options(opt)
                        for opt in _TREE
                    ],
                )
                .filter(Restaurant.id == restaurant_id, Restaurant.is_active == True)
                .first()
            )
            if restaurant is None:
                logger.debug(f"Restaurant {restaurant_id} not found in primary store")
                return None

            payload = restaurant.summary()
            payload.update({
                'slug': restaurant.slug,
                'is_active': restaurant.is_active,
                'menus': [_menu_payload(menu) for menu in _ordered(restaurant.menus)],
            })
            return payload


def count_dishes(menu: Dict[str, Any]) -> int:
    """Number of dishes in a menu aggregate."""
    return sum(len(category.get('dishes') or []) for category in menu.get('categories') or [])


def iter_dishes(menu: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten a menu aggregate into its dishes, in display order."""
    return [
        dish
        for category in menu.get('categories') or []
        for dish in category.get('dishes') or []
    ]
