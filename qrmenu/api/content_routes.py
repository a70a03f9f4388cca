"""
Content Routes
Customer reviews, restaurant articles and category presets

Public endpoints show approved reviews and published articles only; the
owner endpoints see and manage everything of their own restaurants.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_catalog_service, get_content_service
from qrmenu.api.models import (
    ArticleCreate,
    ArticleUpdate,
    CategoryPresetRequest,
    ReviewCreate,
    ReviewUpdate,
)
from qrmenu.services.catalog_service import CatalogService
from qrmenu.services.category_presets import CUISINES, list_presets
from qrmenu.services.content_service import ContentService


def create_content_router() -> APIRouter:
    """Create reviews/articles/presets router."""

    router = APIRouter(prefix="/api", tags=["Content"])

    # ============ Public ============

    @router.post(
        "/public/restaurants/{restaurant_id}/reviews",
        status_code=status.HTTP_201_CREATED,
    )
    async def submit_review(
        restaurant_id: str,
        request: ReviewCreate,
        content: ContentService = Depends(get_content_service),
    ):
        """Customer review; it shows up once the owner approves it."""
        return content.submit_review(
            restaurant_id, request.customer_name, request.rating, request.comment
        )

    @router.get("/public/restaurants/{restaurant_id}/reviews", response_model=List[dict])
    async def list_public_reviews(
        restaurant_id: str,
        content: ContentService = Depends(get_content_service),
    ):
        return content.list_approved_reviews(restaurant_id)

    @router.get("/public/restaurants/{restaurant_id}/articles", response_model=List[dict])
    async def list_public_articles(
        restaurant_id: str,
        content: ContentService = Depends(get_content_service),
    ):
        return content.list_published_articles(restaurant_id)

    # ============ Reviews (owner) ============

    @router.get("/restaurants/{restaurant_id}/reviews", response_model=List[dict])
    async def list_reviews(
        restaurant_id: str,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        return content.list_reviews(owner["id"], restaurant_id)

    @router.patch("/reviews/{review_id}")
    async def update_review(
        review_id: str,
        request: ReviewUpdate,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        return content.update_review(
            owner["id"], review_id, **request.model_dump(exclude_unset=True)
        )

    @router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_review(
        review_id: str,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        content.delete_review(owner["id"], review_id)

    # ============ Articles (owner) ============

    @router.get("/restaurants/{restaurant_id}/articles", response_model=List[dict])
    async def list_articles(
        restaurant_id: str,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        return content.list_articles(owner["id"], restaurant_id)

    @router.post("/restaurants/{restaurant_id}/articles", status_code=status.HTTP_201_CREATED)
    async def create_article(
        restaurant_id: str,
        request: ArticleCreate,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        fields = request.model_dump(exclude={"title", "content"}, exclude_none=True)
        return content.create_article(
            owner["id"], restaurant_id, request.title, request.content, **fields
        )

    @router.patch("/articles/{article_id}")
    async def update_article(
        article_id: str,
        request: ArticleUpdate,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        return content.update_article(
            owner["id"], article_id, **request.model_dump(exclude_unset=True)
        )

    @router.delete("/articles/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_article(
        article_id: str,
        owner: dict = Depends(require_auth),
        content: ContentService = Depends(get_content_service),
    ):
        content.delete_article(owner["id"], article_id)

    # ============ Category presets ============

    @router.get("/categories/presets")
    async def get_category_presets(cuisine: Optional[str] = None):
        """Preset categories, for one cuisine or all of them."""
        return {"cuisines": list(CUISINES), "categories": list_presets(cuisine)}

    @router.post(
        "/menus/{menu_id}/categories/presets",
        response_model=List[dict],
        status_code=status.HTTP_201_CREATED,
    )
    async def apply_category_presets(
        menu_id: str,
        request: CategoryPresetRequest,
        owner: dict = Depends(require_auth),
        catalog: CatalogService = Depends(get_catalog_service),
    ):
        """Append a cuisine's preset categories to a menu, skipping names it already has."""
        return await catalog.apply_category_presets(owner["id"], menu_id, request.cuisine)

    return router
