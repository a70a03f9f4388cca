"""
Order Service
Customer order intake and owner-side status tracking

Orders are validated against the primary store, not the cache: a dish must be
active in the ordered menu and its price is read from the database, whatever
the client sent.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import (
    DishRepository,
    MenuRepository,
    OrderRepository,
    RestaurantRepository,
)
from qrmenu.services.errors import NotFoundError, PermissionDeniedError, ValidationError


ORDER_STATUSES = ("pending", "preparing", "ready", "served", "cancelled")

MAX_QUANTITY = 99


class OrderService:
    """Order intake and status updates."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db_manager(self) -> DatabaseManager:
        return self._db_manager or DatabaseManager.get_instance()

    def place_order(
        self,
        menu_id: str,
        items: List[Dict[str, Any]],
        table_number: Optional[str] = None,
        customer_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store a new order.

        Args:
            menu_id: Menu the customer ordered from
            items: [{"dish_id": ..., "quantity": ...}]; repeated dishes are merged

        Raises:
            NotFoundError: unknown or inactive menu
            ValidationError: empty order, bad quantity, dish not in the menu
        """
        if not items:
            raise ValidationError("Order has no items")

        quantities: Dict[str, int] = {}
        for item in items:
            quantity = int(item.get('quantity', 1))
            if quantity < 1 or quantity > MAX_QUANTITY:
                raise ValidationError(f"Invalid quantity {quantity} for dish {item.get('dish_id')}")
            quantities[item['dish_id']] = quantities.get(item['dish_id'], 0) + quantity

        with self.db_manager.session_scope() as db:
            menu = MenuRepository(db).get(menu_id)
            if menu is None or not menu.restaurant.is_active:
                raise NotFoundError("menu", menu_id)

            dishes = {
                dish.id: dish
                for dish in DishRepository(db).list_active_for_menu(menu_id, quantities)
            }
            missing = [dish_id for dish_id in quantities if dish_id not in dishes]
            if missing:
                raise ValidationError(f"Dishes not available in menu {menu_id}: {', '.join(missing)}")

            order = OrderRepository(db).create(
                restaurant_id=menu.restaurant_id,
                menu_id=menu_id,
                lines=[(dishes[dish_id], qty) for dish_id, qty in quantities.items()],
                table_number=table_number,
                customer_name=customer_name,
                notes=notes,
            )
            return order.to_dict()

    def list_orders(
        self,
        owner_id: str,
        restaurant_id: str,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")

        with self.db_manager.session_scope() as db:
            restaurant = RestaurantRepository(db).get(restaurant_id)
            if restaurant is None:
                raise NotFoundError("restaurant", restaurant_id)
            if restaurant.owner_id != owner_id:
                raise PermissionDeniedError("restaurant", restaurant_id)

            orders = OrderRepository(db).list_by_restaurant(restaurant_id, status=status, limit=limit)
            return [order.to_dict() for order in orders]

    def update_order_status(self, owner_id: str, order_id: str, status: str) -> Dict[str, Any]:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")

        with self.db_manager.session_scope() as db:
            repo = OrderRepository(db)
            order = repo.get(order_id)
            if order is None:
                raise NotFoundError("order", order_id)

            restaurant = RestaurantRepository(db).get(order.restaurant_id, include_inactive=True)
            if restaurant is None or restaurant.owner_id != owner_id:
                raise PermissionDeniedError("order", order_id)

            previous = order.status
            order = repo.update_status(order_id, status)
            logger.info(f"Order {order_id} status: {previous} -> {status}")
            return order.to_dict()
