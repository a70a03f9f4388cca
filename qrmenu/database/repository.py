"""
Repository Pattern Implementation for QR Menu
Provides CRUD operations for database models
"""

import secrets
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session as SQLSession
from loguru import logger

from qrmenu.database.models import (
    Allergen, Article, Category, Dish, Ingredient, Menu, Order, OrderItem,
    Owner, QRCode, QRScan, Restaurant, Review,
    dish_allergens, dish_ingredients,
)


# (menu_id, restaurant_id) pairs returned by the "which aggregates embed this row" queries
MenuRef = Tuple[str, str]


def to_decimal(value: Any) -> Decimal:
    """Convert a float/str/int price to a 2-place Decimal."""
    return Decimal(str(value)).quantize(Decimal("0.01"))


class BaseRepository:
    """Base repository with common CRUD operations."""

    def __init__(self, db: SQLSession):
        self.db = db

    @staticmethod
    def generate_id(prefix: str = "") -> str:
        """Generate a unique ID."""
        return f"{prefix}{uuid.uuid4().hex[:16]}"

    def _apply(self, entity: Any, fields: Dict[str, Any]) -> None:
        for key, value in fields.items():
            if hasattr(entity, key):
                setattr(entity, key, value)


class OwnerRepository(BaseRepository):
    """Repository for restaurant owner accounts."""

    def create(self, email: str, password_hash: str, name: Optional[str] = None) -> Owner:
        owner = Owner(
            id=self.generate_id("own_"),
            email=email.strip().lower(),
            name=name,
            password_hash=password_hash,
        )
        self.db.add(owner)
        self.db.flush()
        logger.debug(f"Created owner: {owner.id}")
        return owner

    def get(self, owner_id: str) -> Optional[Owner]:
        return self.db.query(Owner).filter(Owner.id == owner_id).first()

    def get_by_email(self, email: str) -> Optional[Owner]:
        return self.db.query(Owner).filter(Owner.email == email.strip().lower()).first()


class RestaurantRepository(BaseRepository):
    """Repository for Restaurant operations."""

    def create(self, owner_id: str, name: str, **fields) -> Restaurant:
        """Create a new restaurant."""
        restaurant = Restaurant(
            id=self.generate_id("rst_"),
            owner_id=owner_id,
            name=name,
        )
        self._apply(restaurant, fields)
        if not restaurant.slug:
            restaurant.slug = f"{_slugify(name)}-{restaurant.id[-6:]}"

        self.db.add(restaurant)
        self.db.flush()
        logger.debug(f"Created restaurant: {restaurant.id}")
        return restaurant

    def get(self, restaurant_id: str, include_inactive: bool = False) -> Optional[Restaurant]:
        """Get restaurant by ID."""
        query = self.db.query(Restaurant).filter(Restaurant.id == restaurant_id)
        if not include_inactive:
            query = query.filter(Restaurant.is_active == True)
        return query.first()

    def list_by_owner(self, owner_id: str) -> List[Restaurant]:
        return (
            self.db.query(Restaurant)
            .filter(Restaurant.owner_id == owner_id, Restaurant.is_active == True)
            .order_by(Restaurant.created_at, Restaurant.id)
            .all()
        )

    def update(self, restaurant_id: str, **fields) -> Optional[Restaurant]:
        restaurant = self.get(restaurant_id)
        if restaurant:
            self._apply(restaurant, fields)
            restaurant.updated_at = datetime.utcnow()
            self.db.flush()
        return restaurant

    def delete(self, restaurant_id: str) -> bool:
        """Soft delete restaurant."""
        restaurant = self.get(restaurant_id)
        if restaurant:
            restaurant.is_active = False
            restaurant.updated_at = datetime.utcnow()
            self.db.flush()
            return True
        return False

    def menu_ids(self, restaurant_id: str) -> List[str]:
        """All menu ids of a restaurant, active or not."""
        rows = self.db.query(Menu.id).filter(Menu.restaurant_id == restaurant_id).all()
        return [row[0] for row in rows]


class MenuRepository(BaseRepository):
    """Repository for Menu operations."""

    def create(self, restaurant_id: str, name: str, **fields) -> Menu:
        menu = Menu(
            id=self.generate_id("menu_"),
            restaurant_id=restaurant_id,
            name=name,
        )
        self._apply(menu, fields)
        self.db.add(menu)
        self.db.flush()
        logger.debug(f"Created menu: {menu.id}")
        return menu

    def get(self, menu_id: str, include_inactive: bool = False) -> Optional[Menu]:
        query = self.db.query(Menu).filter(Menu.id == menu_id)
        if not include_inactive:
            query = query.filter(Menu.is_active == True)
        return query.first()

    def list_by_restaurant(self, restaurant_id: str) -> List[Menu]:
        return (
            self.db.query(Menu)
            .filter(Menu.restaurant_id == restaurant_id, Menu.is_active == True)
            .order_by(Menu.sort_order, Menu.created_at, Menu.id)
            .all()
        )

    def update(self, menu_id: str, **fields) -> Optional[Menu]:
        menu = self.get(menu_id)
        if menu:
            self._apply(menu, fields)
            menu.updated_at = datetime.utcnow()
            self.db.flush()
        return menu

    def delete(self, menu_id: str) -> bool:
        """Soft delete menu."""
        menu = self.get(menu_id)
        if menu:
            menu.is_active = False
            menu.updated_at = datetime.utcnow()
            self.db.flush()
            return True
        return False


class CategoryRepository(BaseRepository):
    """Repository for Category operations."""

    def create(self, menu_id: str, name: str, sort_order: Optional[int] = None, **fields) -> Category:
        if sort_order is None:
            sort_order = self._next_sort_order(menu_id)
        category = Category(
            id=self.generate_id("cat_"),
            menu_id=menu_id,
            name=name,
            sort_order=sort_order,
        )
        self._apply(category, fields)
        self.db.add(category)
        self.db.flush()
        logger.debug(f"Created category: {category.id}")
        return category

    def _next_sort_order(self, menu_id: str) -> int:
        current = (
            self.db.query(func.max(Category.sort_order))
            .filter(Category.menu_id == menu_id)
            .scalar()
        )
        return (current or 0) + 1

    def get(self, category_id: str, include_inactive: bool = False) -> Optional[Category]:
        query = self.db.query(Category).filter(Category.id == category_id)
        if not include_inactive:
            query = query.filter(Category.is_active == True)
        return query.first()

    def list_by_menu(self, menu_id: str) -> List[Category]:
        return (
            self.db.query(Category)
            .filter(Category.menu_id == menu_id, Category.is_active == True)
            .order_by(Category.sort_order, Category.created_at, Category.id)
            .all()
        )

    def update(self, category_id: str, **fields) -> Optional[Category]:
        category = self.get(category_id)
        if category:
            self._apply(category, fields)
            category.updated_at = datetime.utcnow()
            self.db.flush()
        return category

    def delete(self, category_id: str) -> bool:
        """Soft delete category."""
        category = self.get(category_id)
        if category:
            category.is_active = False
            category.updated_at = datetime.utcnow()
            self.db.flush()
            return True
        return False

    def reorder(self, menu_id: str, ordered_ids: List[str]) -> int:
        """Assign sort_order 1..n following ``ordered_ids``; unknown ids are ignored."""
        categories = {c.id: c for c in self.list_by_menu(menu_id)}
        updated = 0
        for position, category_id in enumerate(ordered_ids, start=1):
            category = categories.get(category_id)
            if category is not None:
                category.sort_order = position
                updated += 1
        self.db.flush()
        return updated


class DishRepository(BaseRepository):
    """Repository for Dish operations."""

    def create(
        self,
        category_id: str,
        name: str,
        price: Any,
        allergen_ids: Optional[Iterable[str]] = None,
        ingredient_ids: Optional[Iterable[str]] = None,
        sort_order: Optional[int] = None,
        **fields,
    ) -> Dish:
        if sort_order is None:
            sort_order = self._next_sort_order(category_id)
        dish = Dish(
            id=self.generate_id("dish_"),
            category_id=category_id,
            name=name,
            price=to_decimal(price),
            sort_order=sort_order,
        )
        self._apply(dish, fields)
        if allergen_ids is not None:
            dish.allergens = self._load(Allergen, allergen_ids)
        if ingredient_ids is not None:
            dish.ingredients = self._load(Ingredient, ingredient_ids)

        self.db.add(dish)
        self.db.flush()
        logger.debug(f"Created dish: {dish.id}")
        return dish

    def _next_sort_order(self, category_id: str) -> int:
        current = (
            self.db.query(func.max(Dish.sort_order))
            .filter(Dish.category_id == category_id)
            .scalar()
        )
        return (current or 0) + 1

    def _load(self, model, ids: Iterable[str]) -> List[Any]:
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return []
        return self.db.query(model).filter(model.id.in_(unique_ids)).all()

    def get(self, dish_id: str, include_inactive: bool = False) -> Optional[Dish]:
        query = self.db.query(Dish).filter(Dish.id == dish_id)
        if not include_inactive:
            query = query.filter(Dish.is_active == True)
        return query.first()

    def list_by_category(self, category_id: str) -> List[Dish]:
        return (
            self.db.query(Dish)
            .filter(Dish.category_id == category_id, Dish.is_active == True)
            .order_by(Dish.sort_order, Dish.created_at, Dish.id)
            .all()
        )

    def list_active_for_menu(self, menu_id: str, dish_ids: Iterable[str]) -> List[Dish]:
        """Active dishes of a menu restricted to ``dish_ids`` (order validation)."""
        return (
            self.db.query(Dish)
            .join(Category, Dish.category_id == Category.id)
            .filter(
                Category.menu_id == menu_id,
                Category.is_active == True,
                Dish.is_active == True,
                Dish.id.in_(list(dish_ids)),
            )
            .all()
        )

    def update(
        self,
        dish_id: str,
        allergen_ids: Optional[Iterable[str]] = None,
        ingredient_ids: Optional[Iterable[str]] = None,
        **fields,
    ) -> Optional[Dish]:
        dish = self.get(dish_id, include_inactive=True)
        if dish:
            if 'price' in fields and fields['price'] is not None:
                fields['price'] = to_decimal(fields['price'])
            self._apply(dish, fields)
            if allergen_ids is not None:
                dish.allergens = self._load(Allergen, allergen_ids)
            if ingredient_ids is not None:
                dish.ingredients = self._load(Ingredient, ingredient_ids)
            dish.updated_at = datetime.utcnow()
            self.db.flush()
        return dish

    def delete(self, dish_id: str) -> bool:
        """Soft delete dish."""
        dish = self.get(dish_id)
        if dish:
            dish.is_active = False
            dish.updated_at = datetime.utcnow()
            self.db.flush()
            return True
        return False

    def reorder(self, category_id: str, ordered_ids: List[str]) -> int:
        dishes = {d.id: d for d in self.list_by_category(category_id)}
        updated = 0
        for position, dish_id in enumerate(ordered_ids, start=1):
            dish = dishes.get(dish_id)
            if dish is not None:
                dish.sort_order = position
                updated += 1
        self.db.flush()
        return updated


class _CatalogRepository(BaseRepository):
    """Shared logic for allergens and ingredients."""

    model = None
    link_table = None
    link_column = None
    id_prefix = ""

    def create(self, name: str, **fields):
        entity = self.model(id=self.generate_id(self.id_prefix), name=name.strip())
        self._apply(entity, fields)
        self.db.add(entity)
        self.db.flush()
        return entity

    def get(self, entity_id: str):
        return self.db.query(self.model).filter(self.model.id == entity_id).first()

    def get_by_name(self, name: str):
        return self.db.query(self.model).filter(self.model.name == name.strip()).first()

    def find_or_create(self, name: str):
        """Entry whose name matches case-insensitively, created when missing."""
        entity = (
            self.db.query(self.model)
            .filter(func.lower(self.model.name) == name.strip().lower())
            .first()
        )
        if entity is None:
            entity = self.create(name)
            logger.debug(f"Created {self.model.__tablename__} entry: {entity.name}")
        return entity

    def list_all(self) -> List[Any]:
        return self.db.query(self.model).order_by(self.model.name).all()

    def update(self, entity_id: str, **fields):
        entity = self.get(entity_id)
        if entity:
            self._apply(entity, fields)
            self.db.flush()
        return entity

    def delete(self, entity_id: str) -> bool:
        """Hard delete; dish links go with it."""
        entity = self.get(entity_id)
        if entity:
            self.db.delete(entity)
            self.db.flush()
            return True
        return False

    def referencing_menus(self, entity_id: str) -> Set[MenuRef]:
        """(menu_id, restaurant_id) of every menu with a dish linked to this entry."""
        rows = (
            self.db.query(Menu.id, Menu.restaurant_id)
            .join(Category, Category.menu_id == Menu.id)
            .join(Dish, Dish.category_id == Category.id)
            .join(self.link_table, self.link_table.c.dish_id == Dish.id)
            .filter(self.link_table.c[self.link_column] == entity_id)
            .distinct()
            .all()
        )
        return {(menu_id, restaurant_id) for menu_id, restaurant_id in rows}


class AllergenRepository(_CatalogRepository):
    """Repository for Allergen operations."""

    model = Allergen
    link_table = dish_allergens
    link_column = "allergen_id"
    id_prefix = "alg_"


class IngredientRepository(_CatalogRepository):
    """Repository for Ingredient operations."""

    model = Ingredient
    link_table = dish_ingredients
    link_column = "ingredient_id"
    id_prefix = "ing_"


class QRCodeRepository(BaseRepository):
    """Repository for QR codes and scan records."""

    def create(self, restaurant_id: str, menu_id: str, code: Optional[str] = None) -> QRCode:
        qr_code = QRCode(
            id=self.generate_id("qr_"),
            code=code or secrets.token_urlsafe(9),
            restaurant_id=restaurant_id,
            menu_id=menu_id,
        )
        self.db.add(qr_code)
        self.db.flush()
        logger.debug(f"Created QR code {qr_code.code} for menu {menu_id}")
        return qr_code

    def get_active_by_code(self, code: str) -> Optional[QRCode]:
        return (
            self.db.query(QRCode)
            .filter(QRCode.code == code, QRCode.is_active == True)
            .first()
        )

    def list_by_menu(self, menu_id: str) -> List[QRCode]:
        return (
            self.db.query(QRCode)
            .filter(QRCode.menu_id == menu_id)
            .order_by(QRCode.created_at, QRCode.id)
            .all()
        )

    def record_scan(
        self,
        qr_code: QRCode,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> QRScan:
        now = datetime.utcnow()
        qr_code.scan_count = (qr_code.scan_count or 0) + 1
        qr_code.last_scanned = now
        scan = QRScan(
            qr_code_id=qr_code.id,
            ip_address=ip_address or "unknown",
            user_agent=(user_agent or "unknown")[:512],
            scanned_at=now,
        )
        self.db.add(scan)
        self.db.flush()
        return scan


class OrderRepository(BaseRepository):
    """Repository for Order operations."""

    def create(
        self,
        restaurant_id: str,
        menu_id: str,
        lines: List[Tuple[Dish, int]],
        table_number: Optional[str] = None,
        customer_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        """Create an order; prices are copied from the dishes."""
        order = Order(
            id=self.generate_id("ord_"),
            restaurant_id=restaurant_id,
            menu_id=menu_id,
            table_number=table_number,
            customer_name=customer_name,
            notes=notes,
            status="pending",
        )
        total = Decimal("0.00")
        for dish, quantity in lines:
            unit_price = to_decimal(dish.price)
            order.items.append(OrderItem(
                dish_id=dish.id,
                name=dish.name,
                unit_price=unit_price,
                quantity=quantity,
            ))
            total += unit_price * quantity
        order.total = total

        self.db.add(order)
        self.db.flush()
        logger.info(f"Created order {order.id} for restaurant {restaurant_id} (total={total})")
        return order

    def get(self, order_id: str) -> Optional[Order]:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def list_by_restaurant(
        self,
        restaurant_id: str,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[Order]:
        query = self.db.query(Order).filter(Order.restaurant_id == restaurant_id)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(desc(Order.created_at), desc(Order.id)).limit(limit).all()

    def update_status(self, order_id: str, status: str) -> Optional[Order]:
        order = self.get(order_id)
        if order:
            order.status = status
            order.updated_at = datetime.utcnow()
            self.db.flush()
        return order


class ReviewRepository(BaseRepository):
    """Repository for customer reviews."""

    def create(
        self,
        restaurant_id: str,
        customer_name: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Review:
        review = Review(
            id=self.generate_id("rev_"),
            restaurant_id=restaurant_id,
            customer_name=customer_name.strip(),
            rating=rating,
            comment=comment,
            is_approved=False,
        )
        self.db.add(review)
        self.db.flush()
        logger.debug(f"Created review {review.id} for restaurant {restaurant_id}")
        return review

    def get(self, review_id: str) -> Optional[Review]:
        return self.db.query(Review).filter(Review.id == review_id).first()

    def list_by_restaurant(self, restaurant_id: str, approved_only: bool = False) -> List[Review]:
        """Newest first."""
        query = self.db.query(Review).filter(Review.restaurant_id == restaurant_id)
        if approved_only:
            query = query.filter(Review.is_approved == True)
        return query.order_by(desc(Review.created_at), desc(Review.id)).all()

    def update(self, review_id: str, **fields) -> Optional[Review]:
        review = self.get(review_id)
        if review:
            self._apply(review, fields)
            review.updated_at = datetime.utcnow()
            self.db.flush()
        return review

    def delete(self, review_id: str) -> bool:
        review = self.get(review_id)
        if review:
            self.db.delete(review)
            self.db.flush()
            return True
        return False


class ArticleRepository(BaseRepository):
    """Repository for restaurant articles."""

    def create(self, restaurant_id: str, title: str, content: str, **fields) -> Article:
        article = Article(
            id=self.generate_id("art_"),
            restaurant_id=restaurant_id,
            title=title,
            content=content,
            is_published=False,
        )
        self._apply(article, fields)
        if article.is_published:
            article.published_at = datetime.utcnow()
        self.db.add(article)
        self.db.flush()
        logger.debug(f"Created article {article.id} for restaurant {restaurant_id}")
        return article

    def get(self, article_id: str) -> Optional[Article]:
        return self.db.query(Article).filter(Article.id == article_id).first()

    def list_by_restaurant(self, restaurant_id: str, published_only: bool = False) -> List[Article]:
        """Newest first."""
        query = self.db.query(Article).filter(Article.restaurant_id == restaurant_id)
        if published_only:
            query = query.filter(Article.is_published == True)
        return query.order_by(desc(Article.created_at), desc(Article.id)).all()

    def update(self, article_id: str, **fields) -> Optional[Article]:
        """Publishing stamps published_at once; unpublishing clears it."""
        article = self.get(article_id)
        if article:
            was_published = bool(article.is_published)
            self._apply(article, fields)
            if article.is_published and not was_published:
                article.published_at = datetime.utcnow()
            elif not article.is_published:
                article.published_at = None
            article.updated_at = datetime.utcnow()
            self.db.flush()
        return article

    def delete(self, article_id: str) -> bool:
        article = self.get(article_id)
        if article:
            self.db.delete(article)
            self.db.flush()
            return True
        return False


def _slugify(text: str) -> str:
    slug = "".join(ch.lower() if ch.isalnum() else "-" for ch in text.strip())
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug.strip("-") or "restaurant"
