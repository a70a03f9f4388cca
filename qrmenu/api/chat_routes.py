"""
AI Routes
Menu assistant for customers, dish analysis for owners
"""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from qrmenu.api.auth_routes import require_auth
from qrmenu.api.dependencies import get_analysis_service, get_assistant, get_context_builder
from qrmenu.api.models import (
    ChatRequest,
    ChatResponse,
    DishAnalysisRequest,
    DishAnalysisResponse,
)
from qrmenu.services.analysis_service import DishAnalysisService
from qrmenu.services.chat_service import ChatContextBuilder, MenuAssistant


def create_chat_router() -> APIRouter:
    """Create AI router."""

    router = APIRouter(prefix="/api/ai", tags=["AI"])

    @router.post("/chat", response_model=ChatResponse)
    async def chat(
        request: ChatRequest,
        builder: ChatContextBuilder = Depends(get_context_builder),
        assistant: MenuAssistant = Depends(get_assistant),
    ):
        """
        Answer a question about a menu.

        The context comes from the cached restaurant/menu aggregates. Backend
        failures are answered with an apology, not an error status.
        """
        if not request.restaurant_id and not request.menu_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="restaurant_id or menu_id is required",
            )

        context = await builder.build(
            restaurant_id=request.restaurant_id,
            menu_id=request.menu_id,
        )
        if not context.get('restaurant') and not context.get('menu'):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not found")

        reply = await assistant.chat(request.message, context)
        return ChatResponse(response=reply.response, mentioned_dishes=reply.mentioned_dishes)

    @router.post("/analyze", response_model=DishAnalysisResponse)
    async def analyze_dish(
        request: DishAnalysisRequest,
        owner: dict = Depends(require_auth),
        analyzer: DishAnalysisService = Depends(get_analysis_service),
    ):
        """
        Analyze a dish description and apply the dietary flags, allergens and
        ingredients to the dish. Results are cached per dish for 7 days.
        """
        result = await analyzer.analyze(
            owner["id"],
            request.dish_id,
            description=request.description,
            refresh=request.refresh,
        )
        logger.info(
            f"Dish {request.dish_id} analyzed for owner {owner['id']} "
            f"(cached={result['cached']})"
        )
        return result

    @router.get("/status")
    async def chat_status(assistant: MenuAssistant = Depends(get_assistant)):
        return assistant.provider_info()

    return router
