"""
Sample restaurant data for tests.

seed_trattoria() builds one owner with one restaurant and two menus:

    Trattoria Roma
      Pranzo (M1)
        Antipasti: Bruschetta (€5, vegetarian, gluten allergen), Caprese
        Primi:     Spaghetti Carbonara
      Cena (M2)
        Secondi:   Saltimbocca
"""

from typing import Dict

from qrmenu.database.connection import DatabaseManager
from qrmenu.database.repository import (
    AllergenRepository,
    CategoryRepository,
    DishRepository,
    IngredientRepository,
    MenuRepository,
    OwnerRepository,
    QRCodeRepository,
    RestaurantRepository,
)


OWNER_EMAIL = "mario@trattoria.test"
OWNER_PASSWORD = "pizza1234"


def seed_trattoria(db_manager: DatabaseManager, password_hash: str = "x") -> Dict[str, str]:
    """Insert the sample tree and return the ids by name."""
    with db_manager.session_scope() as db:
        owner = OwnerRepository(db).create(
            email=OWNER_EMAIL, password_hash=password_hash, name="Mario"
        )
        restaurant = RestaurantRepository(db).create(
            owner_id=owner.id,
            name="Trattoria Roma",
            address="Via Appia 1",
            phone="+39 06 000000",
        )

        menus = MenuRepository(db)
        lunch = menus.create(restaurant_id=restaurant.id, name="Pranzo", sort_order=1)
        dinner = menus.create(restaurant_id=restaurant.id, name="Cena", sort_order=2)

        categories = CategoryRepository(db)
        antipasti = categories.create(menu_id=lunch.id, name="Antipasti")
        primi = categories.create(menu_id=lunch.id, name="Primi")
        secondi = categories.create(menu_id=dinner.id, name="Secondi")

        gluten = AllergenRepository(db).create("Glutine", icon="wheat")
        lactose = AllergenRepository(db).create("Lattosio", icon="milk")
        tomato = IngredientRepository(db).create("Pomodoro")

        dishes = DishRepository(db)
        bruschetta = dishes.create(
            category_id=antipasti.id,
            name="Bruschetta",
            price=5,
            description="Pane tostato con pomodoro",
            is_vegetarian=True,
            allergen_ids=[gluten.id],
            ingredient_ids=[tomato.id],
        )
        caprese = dishes.create(
            category_id=antipasti.id,
            name="Caprese",
            price=7.5,
            is_vegetarian=True,
            is_gluten_free=True,
            allergen_ids=[lactose.id],
            ingredient_ids=[tomato.id],
        )
        carbonara = dishes.create(
            category_id=primi.id,
            name="Spaghetti Carbonara",
            price=12,
            allergen_ids=[gluten.id, lactose.id],
        )
        saltimbocca = dishes.create(
            category_id=secondi.id,
            name="Saltimbocca alla Romana",
            price=16,
            is_gluten_free=True,
        )

        qr_code = QRCodeRepository(db).create(restaurant.id, lunch.id, code="table-1")

        return {
            "owner": owner.id,
            "restaurant": restaurant.id,
            "lunch": lunch.id,
            "dinner": dinner.id,
            "antipasti": antipasti.id,
            "primi": primi.id,
            "secondi": secondi.id,
            "gluten": gluten.id,
            "lactose": lactose.id,
            "tomato": tomato.id,
            "bruschetta": bruschetta.id,
            "caprese": caprese.id,
            "carbonara": carbonara.id,
            "saltimbocca": saltimbocca.id,
            "qr_code": qr_code.code,
        }


def seed_other_owner(db_manager: DatabaseManager) -> Dict[str, str]:
    """A second owner with an empty restaurant, for permission checks."""
    with db_manager.session_scope() as db:
        owner = OwnerRepository(db).create(email="luigi@osteria.test", password_hash="x")
        restaurant = RestaurantRepository(db).create(owner_id=owner.id, name="Osteria Luigi")
        return {"owner": owner.id, "restaurant": restaurant.id}
