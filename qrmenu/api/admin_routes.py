"""
Admin Routes
Owner-facing CRUD for restaurants, menus, categories, dishes and QR codes

All writes go through CatalogService, which invalidates the menu cache after
each commit. Domain errors (not found / forbidden / invalid) are mapped to
HTTP status codes by the application's exception handlers.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_catalog_service
from qrmenu.api.models import (
    CategoryCreate,
    CategoryUpdate,
    DishCreate,
    DishUpdate,
    MenuCreate,
    MenuUpdate,
    ReorderRequest,
    RestaurantCreate,
    RestaurantUpdate,
)
from qrmenu.services.catalog_service import CatalogService


def create_admin_router() -> APIRouter:
    """Create the owner admin router."""

    router = APIRouter(prefix="/api", tags=["Admin"])

    # ============ Restaurants ============

    @router.get("/restaurants", response_model=List[dict])
    async def list_restaurants(
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.list_restaurants(owner["id"])

    @router.post("/restaurants", status_code=status.HTTP_201_CREATED)
    async def create_restaurant(
        request: RestaurantCreate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        fields = request.model_dump(exclude={"name"}, exclude_none=True)
        return await catalog.create_restaurant(owner["id"], request.name, **fields)

    @router.get("/restaurants/{restaurant_id}")
    async def get_restaurant(
        restaurant_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.get_restaurant(owner["id"], restaurant_id)

    @router.patch("/restaurants/{restaurant_id}")
    async def update_restaurant(
        restaurant_id: str,
        request: RestaurantUpdate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return await catalog.update_restaurant(
            owner["id"], restaurant_id, **request.model_dump(exclude_unset=True)
        )

    @router.delete("/restaurants/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_restaurant(
        restaurant_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        await catalog.delete_restaurant(owner["id"], restaurant_id)

    # ============ Menus ============

    @router.get("/restaurants/{restaurant_id}/menus", response_model=List[dict])
    async def list_menus(
        restaurant_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.list_menus(owner["id"], restaurant_id)

    @router.post("/restaurants/{restaurant_id}/menus", status_code=status.HTTP_201_CREATED)
    async def create_menu(
        restaurant_id: str,
        request: MenuCreate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        fields = request.model_dump(exclude={"name"}, exclude_none=True)
        return await catalog.create_menu(owner["id"], restaurant_id, request.name, **fields)

    @router.patch("/menus/{menu_id}")
    async def update_menu(
        menu_id: str,
        request: MenuUpdate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return await catalog.update_menu(owner["id"], menu_id, **request.model_dump(exclude_unset=True))

    @router.delete("/menus/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_menu(
        menu_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        await catalog.delete_menu(owner["id"], menu_id)

    # ============ QR codes ============

    @router.post("/menus/{menu_id}/qr-codes", status_code=status.HTTP_201_CREATED)
    async def create_qr_code(
        menu_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.create_qr_code(owner["id"], menu_id)

    @router.get("/menus/{menu_id}/qr-codes", response_model=List[dict])
    async def list_qr_codes(
        menu_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.list_qr_codes(owner["id"], menu_id)

    # ============ Categories ============

    @router.get("/menus/{menu_id}/categories", response_model=List[dict])
    async def list_categories(
        menu_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.list_categories(owner["id"], menu_id)

    @router.post("/menus/{menu_id}/categories", status_code=status.HTTP_201_CREATED)
    async def create_category(
        menu_id: str,
        request: CategoryCreate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        fields = request.model_dump(exclude={"name"}, exclude_none=True)
        return await catalog.create_category(owner["id"], menu_id, request.name, **fields)

    @router.put("/menus/{menu_id}/categories/order")
    async def reorder_categories(
        menu_id: str,
        request: ReorderRequest,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        updated = await catalog.reorder_categories(owner["id"], menu_id, request.ordered_ids)
        return {"updated": updated}

    @router.patch("/categories/{category_id}")
    async def update_category(
        category_id: str,
        request: CategoryUpdate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return await catalog.update_category(
            owner["id"], category_id, **request.model_dump(exclude_unset=True)
        )

    @router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_category(
        category_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        await catalog.delete_category(owner["id"], category_id)

    # ============ Dishes ============

    @router.get("/categories/{category_id}/dishes", response_model=List[dict])
    async def list_dishes(
        category_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return catalog.list_dishes(owner["id"], category_id)

    @router.post("/categories/{category_id}/dishes", status_code=status.HTTP_201_CREATED)
    async def create_dish(
        category_id: str,
        request: DishCreate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        fields = request.model_dump(exclude={"name", "price"}, exclude_none=True)
        return await catalog.create_dish(
            owner["id"], category_id, request.name, request.price, **fields
        )

    @router.put("/categories/{category_id}/dishes/order")
    async def reorder_dishes(
        category_id: str,
        request: ReorderRequest,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        updated = await catalog.reorder_dishes(owner["id"], category_id, request.ordered_ids)
        return {"updated": updated}

    @router.patch("/dishes/{dish_id}")
    async def update_dish(
        dish_id: str,
        request: DishUpdate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return await catalog.update_dish(owner["id"], dish_id, **request.model_dump(exclude_unset=True))

    @router.delete("/dishes/{dish_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_dish(
        dish_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        await catalog.delete_dish(owner["id"], dish_id)

    return router
