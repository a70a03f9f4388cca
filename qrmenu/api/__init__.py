"""
QR Menu API
FastAPI routers for the admin, public, AI, content, order and cache endpoints
"""

from qrmenu.api.admin_routes import create_admin_router
from qrmenu.api.auth_routes import create_auth_router, require_auth
from qrmenu.api.cache_routes import create_cache_router
from qrmenu.api.catalog_routes import create_catalog_router
from qrmenu.api.chat_routes import create_chat_router
from qrmenu.api.content_routes import create_content_router
from qrmenu.api.dependencies import cleanup_dependencies, init_dependencies
from qrmenu.api.order_routes import create_order_router
from qrmenu.api.public_routes import create_public_router

__all__ = [
    "create_admin_router",
    "create_auth_router",
    "create_cache_router",
    "create_catalog_router",
    "create_chat_router",
    "create_content_router",
    "create_order_router",
    "create_public_router",
    "require_auth",
    "init_dependencies",
    "cleanup_dependencies",
]
