"""
Dish Analysis Service
AI analysis of a dish description, written back onto the dish

Flow for ``analyze``:
1. ownership check (through the catalog service),
2. cached analysis under ``ai_analysis_{dish_id}`` is returned as is,
3. otherwise the assistant analyzes the description, the catalog service
   writes flags/allergens/ingredients (and invalidates the menu caches),
   and the analysis is cached for ``analysis_ttl_seconds`` (7 days).

The analysis cache shares the key-value store with the menu cache and
degrades the same way: store faults are logged and treated as a miss.
"""

import json
from typing import Any, Dict, Optional

from loguru import logger

from qrmenu.cache.menu_cache import KeyValueStore
from qrmenu.services.catalog_service import CatalogService
from qrmenu.services.chat_service import MenuAssistant, default_analysis
from qrmenu.services.errors import ValidationError


def analysis_cache_key(dish_id: str) -> str:
    return f"ai_analysis_{dish_id.strip()}"


class DishAnalysisService:
    """Owner-scoped dish analysis with a long-lived result cache."""

    def __init__(
        self,
        assistant: MenuAssistant,
        catalog: CatalogService,
        store: Optional[KeyValueStore] = None,
    ):
        self._assistant = assistant
        self._catalog = catalog
        self._store = store

    @property
    def ttl_seconds(self) -> int:
        return self._assistant.config.analysis_ttl_seconds

    async def _cached(self, key: str) -> Optional[Dict[str, Any]]:
        if self._store is None:
            return None
        try:
            payload = await self._store.get(key)
        except Exception as e:
            logger.warning(f"Analysis cache read failed for {key}: {e}")
            return None
        if payload is None:
            return None

        try:
            value = json.loads(payload)
        except ValueError as e:
            logger.warning(f"Discarding unreadable analysis cache entry {key}: {e}")
            return None
        if not isinstance(value, dict):
            return None
        analysis = default_analysis()
        analysis.update({k: v for k, v in value.items() if k in analysis})
        return analysis

    async def _remember(self, key: str, analysis: Dict[str, Any]) -> None:
        if self._store is None:
            return
        try:
            payload = json.dumps(analysis, sort_keys=True, ensure_ascii=False)
            await self._store.set(key, payload, ttl=self.ttl_seconds)
        except Exception as e:
            logger.warning(f"Analysis cache write failed for {key}: {e}")

    async def analyze(
        self,
        owner_id: str,
        dish_id: str,
        description: Optional[str] = None,
        refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Analyze a dish and apply the result.

        Returns ``{"dish": ..., "analysis": ..., "cached": bool}``. A cached
        analysis is not applied again; ``refresh`` skips the cache. Without a
        ``description`` the dish's stored description is analyzed.

        Raises:
            NotFoundError / PermissionDeniedError: dish missing or not owned
            ValidationError: nothing to analyze
        """
        dish = self._catalog.get_dish(owner_id, dish_id)
        description = (description or dish.get("description") or "").strip()
        if not description:
            raise ValidationError(f"dish {dish_id} has no description to analyze")
        key = analysis_cache_key(dish_id)

        if not refresh:
            cached = await self._cached(key)
            if cached is not None:
                logger.debug(f"Analysis cache HIT for dish {dish_id}")
                return {"dish": dish, "analysis": cached, "cached": True}

        analysis = await self._assistant.analyze_dish(description)
        dish = await self._catalog.apply_dish_analysis(owner_id, dish_id, analysis)
        await self._remember(key, analysis)

        return {"dish": dish, "analysis": analysis, "cached": False}
