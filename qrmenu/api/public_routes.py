"""
Public Routes
Customer-facing menu endpoints reached through QR codes

Menu and restaurant payloads are served through the menu cache. Only the
QR code lookup and the scan record touch the primary store directly.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from loguru import logger

from qrmenu.api.dependencies import get_menu_cache
from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import QRCodeRepository


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def resolve_qr_code(code: str, ip_address: Optional[str], user_agent: Optional[str]) -> Optional[str]:
    """Menu id of an active QR code, recording the scan. None if unknown."""
    db_manager = DatabaseManager.get_instance()
    with db_manager.session_scope() as db:
        repo = QRCodeRepository(db)
        qr_code = repo.get_active_by_code(code)
        if qr_code is None:
            return None
        repo.record_scan(qr_code, ip_address=ip_address, user_agent=user_agent)
        return qr_code.menu_id


def create_public_router() -> APIRouter:
    """Create public menu router."""

    router = APIRouter(prefix="/api/public", tags=["Public"])

    @router.get("/menu/{qr_code}")
    async def get_menu_by_qr_code(
        qr_code: str,
        request: Request,
        cache: MenuCacheService = Depends(get_menu_cache),
    ):
        """Menu page opened by scanning a QR code."""
        menu_id = resolve_qr_code(
            qr_code,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        if menu_id is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found")

        menu = await cache.get_menu_with_cache(menu_id)
        if menu is None:
            logger.info(f"QR code {qr_code} points to unavailable menu {menu_id}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not available")
        return menu

    @router.get("/menus/{menu_id}")
    async def get_menu(
        menu_id: str,
        cache: MenuCacheService = Depends(get_menu_cache),
    ):
        menu = await cache.get_menu_with_cache(menu_id)
        if menu is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not found")
        return menu

    @router.get("/restaurants/{restaurant_id}")
    async def get_restaurant(
        restaurant_id: str,
        cache: MenuCacheService = Depends(get_menu_cache),
    ):
        restaurant = await cache.get_restaurant_with_cache(restaurant_id)
        if restaurant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
        return restaurant

    return router
