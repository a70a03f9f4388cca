"""
Unit tests for ContentService.

Reviews are held until approved; articles are public once published. Both
are scoped to the owner of the restaurant.
"""

from datetime import datetime

import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.sample_menus import seed_trattoria, seed_other_owner

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.models import Review
from qrmenu.services.content_service import ContentService
from qrmenu.services.errors import NotFoundError, PermissionDeniedError, ValidationError


@pytest.fixture
def db_manager():
    """Create in-memory database."""
    DatabaseManager.reset_instance()
    manager = DatabaseManager(db_path=":memory:")
    yield manager
    DatabaseManager.reset_instance()


@pytest.fixture
def ids(db_manager):
    return seed_trattoria(db_manager)


@pytest.fixture
def content(db_manager):
    return ContentService(db_manager)


class TestReviews:

    def test_submitted_review_is_pending(self, content, ids):
        review = content.submit_review(ids["restaurant"], " Anna ", 5, "Ottimo!")

        assert review["customer_name"] == "Anna"
        assert review["is_approved"] is False
        assert content.list_approved_reviews(ids["restaurant"]) == []
        assert [r["id"] for r in content.list_reviews(ids["owner"], ids["restaurant"])] == [review["id"]]

    def test_approved_review_is_public(self, content, ids):
        review = content.submit_review(ids["restaurant"], "Anna", 4)

        content.update_review(ids["owner"], review["id"], is_approved=True)

        public = content.list_approved_reviews(ids["restaurant"])
        assert [r["id"] for r in public] == [review["id"]]
        assert public[0]["rating"] == 4

    @pytest.mark.parametrize("rating", [0, 6, 4.5, True, None])
    def test_rating_out_of_range(self, content, ids, rating):
        with pytest.raises(ValidationError):
            content.submit_review(ids["restaurant"], "Anna", rating)

    def test_blank_name_rejected(self, content, ids):
        with pytest.raises(ValidationError):
            content.submit_review(ids["restaurant"], "  ", 3)

    def test_unknown_restaurant(self, content, ids):
        with pytest.raises(NotFoundError):
            content.submit_review("rst_missing", "Anna", 3)
        with pytest.raises(NotFoundError):
            content.list_approved_reviews("rst_missing")

    def test_newest_first(self, content, ids, db_manager):
        first = content.submit_review(ids["restaurant"], "Anna", 3)
        second = content.submit_review(ids["restaurant"], "Bruno", 4)
        with db_manager.session_scope() as db:
            db.get(Review, first["id"]).created_at = datetime(2024, 1, 1)
            db.get(Review, second["id"]).created_at = datetime(2024, 6, 1)

        listed = [r["id"] for r in content.list_reviews(ids["owner"], ids["restaurant"])]

        assert listed == [second["id"], first["id"]]

    def test_update_checks_rating(self, content, ids):
        review = content.submit_review(ids["restaurant"], "Anna", 3)

        with pytest.raises(ValidationError):
            content.update_review(ids["owner"], review["id"], rating=9)

    def test_delete(self, content, ids):
        review = content.submit_review(ids["restaurant"], "Anna", 3)

        content.delete_review(ids["owner"], review["id"])

        assert content.list_reviews(ids["owner"], ids["restaurant"]) == []
        with pytest.raises(NotFoundError):
            content.delete_review(ids["owner"], review["id"])

    def test_other_owner_denied(self, content, ids, db_manager):
        other = seed_other_owner(db_manager)
        review = content.submit_review(ids["restaurant"], "Anna", 3)

        with pytest.raises(PermissionDeniedError):
            content.list_reviews(other["owner"], ids["restaurant"])
        with pytest.raises(PermissionDeniedError):
            content.update_review(other["owner"], review["id"], is_approved=True)
        with pytest.raises(PermissionDeniedError):
            content.delete_review(other["owner"], review["id"])


class TestArticles:

    def test_draft_is_not_public(self, content, ids):
        article = content.create_article(ids["owner"], ids["restaurant"], "Novità", "Menu di primavera")

        assert article["is_published"] is False
        assert article["published_at"] is None
        assert content.list_published_articles(ids["restaurant"]) == []
        assert len(content.list_articles(ids["owner"], ids["restaurant"])) == 1

    def test_published_on_create(self, content, ids):
        article = content.create_article(
            ids["owner"], ids["restaurant"], "Novità", "Menu di primavera",
            excerpt="Primavera", button_text="Prenota", button_url="https://example.test",
            is_published=True,
        )

        assert article["published_at"] is not None
        assert article["button_text"] == "Prenota"
        assert [a["id"] for a in content.list_published_articles(ids["restaurant"])] == [article["id"]]

    def test_publish_then_unpublish(self, content, ids):
        article = content.create_article(ids["owner"], ids["restaurant"], "Novità", "Testo")

        published = content.update_article(ids["owner"], article["id"], is_published=True)
        assert published["published_at"] is not None

        edited = content.update_article(ids["owner"], article["id"], title="Nuovo titolo")
        assert edited["published_at"] == published["published_at"]

        hidden = content.update_article(ids["owner"], article["id"], is_published=False)
        assert hidden["published_at"] is None
        assert content.list_published_articles(ids["restaurant"]) == []

    def test_title_and_content_required(self, content, ids):
        with pytest.raises(ValidationError):
            content.create_article(ids["owner"], ids["restaurant"], "", "Testo")
        with pytest.raises(ValidationError):
            content.create_article(ids["owner"], ids["restaurant"], "Titolo", "  ")

        article = content.create_article(ids["owner"], ids["restaurant"], "Titolo", "Testo")
        with pytest.raises(ValidationError):
            content.update_article(ids["owner"], article["id"], content="")

    def test_other_owner_denied(self, content, ids, db_manager):
        other = seed_other_owner(db_manager)
        article = content.create_article(ids["owner"], ids["restaurant"], "Titolo", "Testo")

        with pytest.raises(PermissionDeniedError):
            content.create_article(other["owner"], ids["restaurant"], "Titolo", "Testo")
        with pytest.raises(PermissionDeniedError):
            content.update_article(other["owner"], article["id"], title="Mio")
        with pytest.raises(PermissionDeniedError):
            content.delete_article(other["owner"], article["id"])

    def test_delete(self, content, ids):
        article = content.create_article(ids["owner"], ids["restaurant"], "Titolo", "Testo")

        content.delete_article(ids["owner"], article["id"])

        assert content.list_articles(ids["owner"], ids["restaurant"]) == []
