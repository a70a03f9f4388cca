"""
Order Routes
Public order intake and owner order management
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_order_service
from qrmenu.api.models import OrderCreate, OrderStatusUpdate
from qrmenu.services.order_service import OrderService


def create_order_router() -> APIRouter:
    """Create order router."""

    router = APIRouter(prefix="/api", tags=["Orders"])

    @router.post("/orders", status_code=status.HTTP_201_CREATED)
    async def place_order(
        request: OrderCreate,
        orders: OrderService = Depends(get_order_service),
    ):
        """Customer order; prices are taken from the menu, not the request."""
        return orders.place_order(
            menu_id=request.menu_id,
            items=[item.model_dump() for item in request.items],
            table_number=request.table_number,
            customer_name=request.customer_name,
            notes=request.notes,
        )

    @router.get("/restaurants/{restaurant_id}/orders", response_model=List[dict])
    async def list_orders(
        restaurant_id: str,
        status_filter: Optional[str] = Query(default=None, alias="status"),
        limit: int = Query(default=100, ge=1, le=500),
        owner: dict = Depends(require_auth),
        orders: OrderService = Depends(get_order_service),
    ):
        return orders.list_orders(owner["id"], restaurant_id, status=status_filter, limit=limit)

    @router.patch("/orders/{order_id}")
    async def update_order_status(
        order_id: str,
        request: OrderStatusUpdate,
        owner: dict = Depends(require_auth),
        orders: OrderService = Depends(get_order_service),
    ):
        return orders.update_order_status(owner["id"], order_id, request.status)

    return router
