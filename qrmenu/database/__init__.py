"""Database module for QR Menu."""

from qrmenu.database.models import (
    Base,
    Owner,
    Restaurant,
    Menu,
    Category,
    Dish,
    Allergen,
    Ingredient,
    QRCode,
    QRScan,
    Order,
    OrderItem,
    Review,
    Article,
)
from qrmenu.database.repository import (
    OwnerRepository,
    RestaurantRepository,
    MenuRepository,
    CategoryRepository,
    DishRepository,
    AllergenRepository,
    IngredientRepository,
    QRCodeRepository,
    OrderRepository,
    ReviewRepository,
    ArticleRepository,
)
from qrmenu.database.connection import DatabaseManager

__all__ = [
    "Base",
    "Owner",
    "Restaurant",
    "Menu",
    "Category",
    "Dish",
    "Allergen",
    "Ingredient",
    "QRCode",
    "QRScan",
    "Order",
    "OrderItem",
    "Review",
    "Article",
    "OwnerRepository",
    "RestaurantRepository",
    "MenuRepository",
    "CategoryRepository",
    "DishRepository",
    "AllergenRepository",
    "IngredientRepository",
    "QRCodeRepository",
    "OrderRepository",
    "ReviewRepository",
    "ArticleRepository",
    "DatabaseManager",
]
