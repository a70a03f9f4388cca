"""
API Request/Response Models
Pydantic models for QR Menu API endpoints
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============ Restaurants ============

class RestaurantCreate(BaseModel):
    """Create a restaurant."""
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    address: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    telegram_chat_id: Optional[str] = None


class RestaurantUpdate(BaseModel):
    """Partial restaurant update; omitted fields are left untouched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    cover_image: Optional[str] = None
    telegram_chat_id: Optional[str] = None


# ============ Menus ============

class MenuCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    availability: Optional[Dict[str, Any]] = None
    sort_order: int = 0


class MenuUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None
    availability: Optional[Dict[str, Any]] = None
    sort_order: Optional[int] = None


# ============ Categories ============

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    sort_order: Optional[int] = None


class ReorderRequest(BaseModel):
    """Ids in their new display order."""
    ordered_ids: List[str]


class CategoryPresetRequest(BaseModel):
    """Cuisine whose preset categories are appended to a menu."""
    cuisine: str = Field(..., min_length=1, max_length=32)


# ============ Dishes ============

class DishCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_spicy: bool = False
    gallery_enabled: bool = False
    gallery_images: Optional[List[Dict[str, Any]]] = None
    sort_order: Optional[int] = None
    allergen_ids: Optional[List[str]] = None
    ingredient_ids: Optional[List[str]] = None


class DishUpdate(BaseModel):
    """Partial dish update. ``category_id`` moves the dish."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    price: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[str] = None
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None
    is_spicy: Optional[bool] = None
    gallery_enabled: Optional[bool] = None
    gallery_images: Optional[List[Dict[str, Any]]] = None
    sort_order: Optional[int] = None
    allergen_ids: Optional[List[str]] = None
    ingredient_ids: Optional[List[str]] = None


# ============ Allergens / Ingredients ============

class CatalogEntryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    icon: Optional[str] = None


class CatalogEntryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=64)
    icon: Optional[str] = None


# ============ AI Chat ============

class ChatRequest(BaseModel):
    """Customer question about a restaurant/menu."""
    message: str = Field(..., min_length=1, max_length=2000)
    restaurant_id: Optional[str] = None
    menu_id: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    mentioned_dishes: List[Dict[str, Any]] = []


class DishAnalysisRequest(BaseModel):
    """Owner request to analyze one dish (defaults to its stored description)."""
    dish_id: str = Field(..., min_length=1)
    description: Optional[str] = Field(default=None, max_length=4000)
    refresh: bool = False


class DishAnalysis(BaseModel):
    allergens: List[str] = []
    ingredients: List[str] = []
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_spicy: bool = False
    spice_level: str = "mild"


class DishAnalysisResponse(BaseModel):
    dish: Dict[str, Any]
    analysis: DishAnalysis
    cached: bool = False


# ============ Orders ============

class OrderItemRequest(BaseModel):
    dish_id: str
    quantity: int = Field(default=1, ge=1, le=99)


class OrderCreate(BaseModel):
    menu_id: str
    items: List[OrderItemRequest] = Field(..., min_length=1)
    table_number: Optional[str] = Field(default=None, max_length=16)
    customer_name: Optional[str] = Field(default=None, max_length=128)
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str


# ============ Reviews ============

class ReviewCreate(BaseModel):
    """Customer review; stored unapproved."""
    customer_name: str = Field(..., min_length=1, max_length=128)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)


class ReviewUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)
    is_approved: Optional[bool] = None


# ============ Articles ============

class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    button_text: Optional[str] = Field(default=None, max_length=64)
    button_url: Optional[str] = None
    is_published: bool = False


class ArticleUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = None
    cover_image: Optional[str] = None
    button_text: Optional[str] = Field(default=None, max_length=64)
    button_url: Optional[str] = None
    is_published: Optional[bool] = None


# ============ Cache admin ============

class CacheInvalidateRequest(BaseModel):
    restaurant_id: Optional[str] = None
    menu_id: Optional[str] = None
