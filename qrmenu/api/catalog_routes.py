"""
Catalog Routes
Shared allergen and ingredient lists

Reads are public; changes require an owner account. Renaming or deleting an
entry invalidates every cached menu that lists it.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_catalog_service
from qrmenu.api.models import CatalogEntryCreate, CatalogEntryUpdate
from qrmenu.services.catalog_service import CatalogService


def _add_catalog_routes(router: APIRouter, kind: str, path: str) -> None:

    @router.get(f"/{path}", response_model=List[dict], name=f"list_{path}")
    async def list_entries(catalog: CatalogService = Depends(get_catalog_service)):
        return catalog.list_catalog(kind)

    @router.post(f"/{path}", status_code=status.HTTP_201_CREATED, name=f"create_{kind}")
    async def create_entry(
        request: CatalogEntryCreate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        fields = request.model_dump(exclude={"name"}, exclude_none=True)
        return catalog.create_catalog_entry(kind, request.name, **fields)

    @router.patch(f"/{path}/{{entry_id}}", name=f"update_{kind}")
    async def update_entry(
        entry_id: str,
        request: CatalogEntryUpdate,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        return await catalog.update_catalog_entry(
            kind, entry_id, **request.model_dump(exclude_unset=True, exclude_none=True)
        )

    @router.delete(f"/{path}/{{entry_id}}", status_code=status.HTTP_204_NO_CONTENT, name=f"delete_{kind}")
    async def delete_entry(
        entry_id: str,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        await catalog.delete_catalog_entry(kind, entry_id)


def create_catalog_router() -> APIRouter:
    """Create allergen/ingredient router."""

    router = APIRouter(prefix="/api", tags=["Catalog"])
    _add_catalog_routes(router, "allergen", "allergens")
    _add_catalog_routes(router, "ingredient", "ingredients")
    return router
