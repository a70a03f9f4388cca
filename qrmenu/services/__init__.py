"""Service layer for QR Menu."""

from qrmenu.services.analysis_service import DishAnalysisService, analysis_cache_key
from qrmenu.services.catalog_service import CatalogService, TouchedAggregates
from qrmenu.services.category_presets import CUISINES, list_presets, presets_for
from qrmenu.services.chat_service import (
    ChatContextBuilder,
    ChatReply,
    MenuAssistant,
    default_analysis,
    identify_mentioned_dishes,
    parse_analysis,
    render_context,
)
from qrmenu.services.content_service import ContentService
from qrmenu.services.errors import (
    CatalogError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from qrmenu.services.order_service import ORDER_STATUSES, OrderService

__all__ = [
    "DishAnalysisService",
    "analysis_cache_key",
    "CatalogService",
    "TouchedAggregates",
    "ChatContextBuilder",
    "ChatReply",
    "MenuAssistant",
    "default_analysis",
    "identify_mentioned_dishes",
    "parse_analysis",
    "render_context",
    "CUISINES",
    "list_presets",
    "presets_for",
    "ContentService",
    "CatalogError",
    "NotFoundError",
    "PermissionDeniedError",
    "ValidationError",
    "ORDER_STATUSES",
    "OrderService",
]
