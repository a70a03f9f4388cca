"""
Content Service
Customer reviews and restaurant articles

Neither is embedded in the cached restaurant/menu aggregates, so writes here
never touch the menu cache. Customers submit reviews (held until the owner
approves them); owners manage reviews and articles of their restaurants.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.models import Article, Restaurant, Review
from qrmenu.database.repository import (
    ArticleRepository,
    RestaurantRepository,
    ReviewRepository,
)
from qrmenu.services.errors import NotFoundError, PermissionDeniedError, ValidationError

MIN_RATING = 1
MAX_RATING = 5


def _check_rating(rating: Any) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be an integer from {MIN_RATING} to {MAX_RATING}")
    return rating


class ContentService:
    """Reviews and articles, owner-scoped through the restaurant."""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self._db_manager = db_manager

    @property
    def db_manager(self) -> DatabaseManager:
        return self._db_manager or DatabaseManager.get_instance()

    @staticmethod
    def _owned_restaurant(db, owner_id: str, restaurant_id: str) -> Restaurant:
        restaurant = RestaurantRepository(db).get(restaurant_id)
        if restaurant is None:
            raise NotFoundError("restaurant", restaurant_id)
        if restaurant.owner_id != owner_id:
            raise PermissionDeniedError("restaurant", restaurant_id)
        return restaurant

    @staticmethod
    def _owned_review(db, owner_id: str, review_id: str) -> Review:
        review = ReviewRepository(db).get(review_id)
        if review is None:
            raise NotFoundError("review", review_id)
        if review.restaurant.owner_id != owner_id:
            raise PermissionDeniedError("review", review_id)
        return review

    @staticmethod
    def _owned_article(db, owner_id: str, article_id: str) -> Article:
        article = ArticleRepository(db).get(article_id)
        if article is None:
            raise NotFoundError("article", article_id)
        if article.restaurant.owner_id != owner_id:
            raise PermissionDeniedError("article", article_id)
        return article

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def submit_review(
        self,
        restaurant_id: str,
        customer_name: str,
        rating: int,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store a customer review, pending approval.

        Raises:
            NotFoundError: unknown or inactive restaurant
            ValidationError: blank name or rating outside 1-5
        """
        if not (customer_name or "").strip():
            raise ValidationError("Customer name is required")
        _check_rating(rating)

        with self.db_manager.session_scope() as db:
            if RestaurantRepository(db).get(restaurant_id) is None:
                raise NotFoundError("restaurant", restaurant_id)
            review = ReviewRepository(db).create(restaurant_id, customer_name, rating, comment)
            result = review.to_dict()

        logger.info(f"Review {result['id']} submitted for restaurant {restaurant_id} (rating={rating})")
        return result

    def list_approved_reviews(self, restaurant_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            if RestaurantRepository(db).get(restaurant_id) is None:
                raise NotFoundError("restaurant", restaurant_id)
            reviews = ReviewRepository(db).list_by_restaurant(restaurant_id, approved_only=True)
            return [r.to_dict() for r in reviews]

    def list_reviews(self, owner_id: str, restaurant_id: str) -> List[Dict[str, Any]]:
        """Every review, approved or not, newest first."""
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            return [r.to_dict() for r in ReviewRepository(db).list_by_restaurant(restaurant_id)]

    def update_review(self, owner_id: str, review_id: str, **fields) -> Dict[str, Any]:
        if 'rating' in fields:
            _check_rating(fields['rating'])
        if 'customer_name' in fields and not (fields['customer_name'] or "").strip():
            raise ValidationError("Customer name is required")

        with self.db_manager.session_scope() as db:
            self._owned_review(db, owner_id, review_id)
            result = ReviewRepository(db).update(review_id, **fields).to_dict()

        logger.info(f"Review updated: {review_id} (approved={result['is_approved']})")
        return result

    def delete_review(self, owner_id: str, review_id: str) -> None:
        with self.db_manager.session_scope() as db:
            self._owned_review(db, owner_id, review_id)
            ReviewRepository(db).delete(review_id)
        logger.info(f"Review deleted: {review_id}")

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def list_published_articles(self, restaurant_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            if RestaurantRepository(db).get(restaurant_id) is None:
                raise NotFoundError("restaurant", restaurant_id)
            articles = ArticleRepository(db).list_by_restaurant(restaurant_id, published_only=True)
            return [a.to_dict() for a in articles]

    def list_articles(self, owner_id: str, restaurant_id: str) -> List[Dict[str, Any]]:
        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            return [a.to_dict() for a in ArticleRepository(db).list_by_restaurant(restaurant_id)]

    def create_article(
        self,
        owner_id: str,
        restaurant_id: str,
        title: str,
        content: str,
        **fields,
    ) -> Dict[str, Any]:
        if not (title or "").strip() or not (content or "").strip():
            raise ValidationError("Title and content are required")

        with self.db_manager.session_scope() as db:
            self._owned_restaurant(db, owner_id, restaurant_id)
            article = ArticleRepository(db).create(restaurant_id, title, content, **fields)
            result = article.to_dict()

        logger.info(f"Article created: {result['id']} in restaurant {restaurant_id}")
        return result

    def update_article(self, owner_id: str, article_id: str, **fields) -> Dict[str, Any]:
        for required in ('title', 'content'):
            if required in fields and not (fields[required] or "").strip():
                raise ValidationError(f"Article {required} cannot be empty")

        with self.db_manager.session_scope() as db:
            self._owned_article(db, owner_id, article_id)
            result = ArticleRepository(db).update(article_id, **fields).to_dict()

        logger.info(f"Article updated: {article_id}")
        return result

    def delete_article(self, owner_id: str, article_id: str) -> None:
        with self.db_manager.session_scope() as db:
            self._owned_article(db, owner_id, article_id)
            ArticleRepository(db).delete(article_id)
        logger.info(f"Article deleted: {article_id}")
