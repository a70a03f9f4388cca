"""
Database Models for QR Menu
SQLAlchemy ORM models for the primary store
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Column, String, Text, Integer, Numeric, DateTime,
    Boolean, ForeignKey, Index, Table,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.ext.hybrid import hybrid_property

Base = declarative_base()


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


dish_allergens = Table(
    'dish_allergens',
    Base.metadata,
    Column('dish_id', String(64), ForeignKey('dishes.id', ondelete='CASCADE'), primary_key=True),
    Column('allergen_id', String(64), ForeignKey('allergens.id', ondelete='CASCADE'), primary_key=True),
)

dish_ingredients = Table(
    'dish_ingredients',
    Base.metadata,
    Column('dish_id', String(64), ForeignKey('dishes.id', ondelete='CASCADE'), primary_key=True),
    Column('ingredient_id', String(64), ForeignKey('ingredients.id', ondelete='CASCADE'), primary_key=True),
)


class Owner(Base):
    """Restaurant owner account."""

    __tablename__ = 'owners'

    id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(128))
    password_hash = Column(String(128), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)

    restaurants = relationship("Restaurant", back_populates="owner")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'created_at': _iso(self.created_at),
        }


class Restaurant(Base):
    """Restaurant model."""

    __tablename__ = 'restaurants'

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(64), ForeignKey('owners.id'), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    slug = Column(String(160), unique=True, index=True)
    description = Column(Text)
    address = Column(String(255), nullable=False, default='')
    phone = Column(String(64))
    email = Column(String(255))
    website = Column(String(255))
    logo = Column(String(512))
    cover_image = Column(String(512))
    telegram_chat_id = Column(String(64))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("Owner", back_populates="restaurants")
    menus = relationship("Menu", back_populates="restaurant", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="restaurant", cascade="all, delete-orphan")
    articles = relationship("Article", back_populates="restaurant", cascade="all, delete-orphan")

    def summary(self) -> Dict[str, Any]:
        """Public fields embedded in a menu aggregate."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'website': self.website,
            'logo': self.logo,
            'cover_image': self.cover_image,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.summary(),
            'owner_id': self.owner_id,
            'slug': self.slug,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Menu(Base):
    """Menu model."""

    __tablename__ = 'menus'

    id = Column(String(64), primary_key=True)
    restaurant_id = Column(String(64), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text)
    _availability = Column('availability', Text)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="menus")
    categories = relationship("Category", back_populates="menu", cascade="all, delete-orphan")
    qr_codes = relationship("QRCode", back_populates="menu", cascade="all, delete-orphan")

    @hybrid_property
    def availability(self) -> Optional[Dict[str, Any]]:
        return json.loads(self._availability) if self._availability else None

    @availability.setter
    def availability(self, value: Optional[Dict[str, Any]]):
        self._availability = json.dumps(value, ensure_ascii=False) if value is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'restaurant_id': self.restaurant_id,
            'name': self.name,
            'description': self.description,
            'availability': self.availability,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Category(Base):
    """Menu category model."""

    __tablename__ = 'categories'

    id = Column(String(64), primary_key=True)
    menu_id = Column(String(64), ForeignKey('menus.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text)
    cover_image = Column(String(512))
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    menu = relationship("Menu", back_populates="categories")
    dishes = relationship("Dish", back_populates="category", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'menu_id': self.menu_id,
            'name': self.name,
            'description': self.description,
            'cover_image': self.cover_image,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
        }


class Allergen(Base):
    """Allergen catalog entry."""

    __tablename__ = 'allergens'

    id = Column(String(64), primary_key=True)
    name = Column(String(64), unique=True, nullable=False)
    icon = Column(String(32), default='')

    dishes = relationship("Dish", secondary=dish_allergens, back_populates="allergens")

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'icon': self.icon}


class Ingredient(Base):
    """Ingredient catalog entry."""

    __tablename__ = 'ingredients'

    id = Column(String(64), primary_key=True)
    name = Column(String(64), unique=True, nullable=False)

    dishes = relationship("Dish", secondary=dish_ingredients, back_populates="ingredients")

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name}


class Dish(Base):
    """Dish model."""

    __tablename__ = 'dishes'

    id = Column(String(64), primary_key=True)
    category_id = Column(String(64), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(512))
    is_vegetarian = Column(Boolean, default=False)
    is_vegan = Column(Boolean, default=False)
    is_gluten_free = Column(Boolean, default=False)
    is_spicy = Column(Boolean, default=False)
    ai_analyzed = Column(Boolean, default=False)
    gallery_enabled = Column(Boolean, default=False)
    _gallery_images = Column('gallery_images', Text)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="dishes")
    allergens = relationship("Allergen", secondary=dish_allergens, back_populates="dishes")
    ingredients = relationship("Ingredient", secondary=dish_ingredients, back_populates="dishes")

    @hybrid_property
    def gallery_images(self) -> List[Dict[str, Any]]:
        return json.loads(self._gallery_images) if self._gallery_images else []

    @gallery_images.setter
    def gallery_images(self, value: Optional[List[Dict[str, Any]]]):
        self._gallery_images = json.dumps(value, ensure_ascii=False) if value else None

    @property
    def price_value(self) -> float:
        return float(Decimal(self.price).quantize(Decimal("0.01")))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'category_id': self.category_id,
            'name': self.name,
            'description': self.description,
            'price': self.price_value,
            'image': self.image,
            'is_vegetarian': self.is_vegetarian,
            'is_vegan': self.is_vegan,
            'is_gluten_free': self.is_gluten_free,
            'is_spicy': self.is_spicy,
            'ai_analyzed': bool(self.ai_analyzed),
            'gallery_enabled': self.gallery_enabled,
            'gallery_images': self.gallery_images,
            'sort_order': self.sort_order,
            'is_active': self.is_active,
            'allergens': [a.to_dict() for a in sorted(self.allergens, key=lambda a: a.name)],
            'ingredients': [i.to_dict() for i in sorted(self.ingredients, key=lambda i: i.name)],
        }


class QRCode(Base):
    """QR code pointing at a menu."""

    __tablename__ = 'qr_codes'

    id = Column(String(64), primary_key=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    restaurant_id = Column(String(64), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_id = Column(String(64), ForeignKey('menus.id', ondelete='CASCADE'), nullable=False, index=True)
    is_active = Column(Boolean, default=True)
    scan_count = Column(Integer, default=0)
    last_scanned = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    menu = relationship("Menu", back_populates="qr_codes")
    scans = relationship("QRScan", back_populates="qr_code", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'code': self.code,
            'restaurant_id': self.restaurant_id,
            'menu_id': self.menu_id,
            'is_active': self.is_active,
            'scan_count': self.scan_count,
            'last_scanned': _iso(self.last_scanned),
            'created_at': _iso(self.created_at),
        }


class QRScan(Base):
    """Single QR scan event."""

    __tablename__ = 'qr_scans'

    id = Column(Integer, primary_key=True, autoincrement=True)
    qr_code_id = Column(String(64), ForeignKey('qr_codes.id', ondelete='CASCADE'), nullable=False)
    ip_address = Column(String(64))
    user_agent = Column(String(512))
    scanned_at = Column(DateTime, default=datetime.utcnow, index=True)

    qr_code = relationship("QRCode", back_populates="scans")

    __table_args__ = (
        Index('ix_qr_scans_code_time', 'qr_code_id', 'scanned_at'),
    )


class Order(Base):
    """Customer order."""

    __tablename__ = 'orders'

    id = Column(String(64), primary_key=True)
    restaurant_id = Column(String(64), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    menu_id = Column(String(64), ForeignKey('menus.id'), nullable=False)
    table_number = Column(String(16))
    customer_name = Column(String(128))
    notes = Column(Text)
    status = Column(String(16), default='pending', index=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'restaurant_id': self.restaurant_id,
            'menu_id': self.menu_id,
            'table_number': self.table_number,
            'customer_name': self.customer_name,
            'notes': self.notes,
            'status': self.status,
            'total': float(Decimal(self.total).quantize(Decimal("0.01"))),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'items': [item.to_dict() for item in self.items],
        }


class OrderItem(Base):
    """Order line; name and price are copied from the dish at order time."""

    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(64), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    dish_id = Column(String(64), ForeignKey('dishes.id'), nullable=False)
    name = Column(String(128), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="items")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dish_id': self.dish_id,
            'name': self.name,
            'unit_price': float(Decimal(self.unit_price).quantize(Decimal("0.01"))),
            'quantity': self.quantity,
        }


class Review(Base):
    """Customer review; hidden from the public page until approved."""

    __tablename__ = 'reviews'

    id = Column(String(64), primary_key=True)
    restaurant_id = Column(String(64), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    customer_name = Column(String(128), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    is_approved = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="reviews")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'restaurant_id': self.restaurant_id,
            'customer_name': self.customer_name,
            'rating': self.rating,
            'comment': self.comment,
            'is_approved': self.is_approved,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Article(Base):
    """News/promotion article shown on the restaurant page once published."""

    __tablename__ = 'articles'

    id = Column(String(64), primary_key=True)
    restaurant_id = Column(String(64), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(Text)
    cover_image = Column(String(512))
    button_text = Column(String(64))
    button_url = Column(String(512))
    is_published = Column(Boolean, default=False, index=True)
    published_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="articles")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'restaurant_id': self.restaurant_id,
            'title': self.title,
            'content': self.content,
            'excerpt': self.excerpt,
            'cover_image': self.cover_image,
            'button_text': self.button_text,
            'button_url': self.button_url,
            'is_published': self.is_published,
            'published_at': _iso(self.published_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
