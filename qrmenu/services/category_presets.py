"""
Category Presets
Ready-made category lists by kind of venue, used to bootstrap a menu
"""

from typing import Any, Dict, List, Optional, Tuple

from qrmenu.services.errors import ValidationError

# cuisine -> [(name, description, icon)]; sort_order follows list position
_PRESETS: Dict[str, List[Tuple[str, str, str]]] = {
    "italian": [
        ("Antipasti", "Appetizers and starters", "🥗"),
        ("Primi Piatti", "First courses - pasta and risotto", "🍝"),
        ("Secondi Piatti", "Main courses - meat and fish", "🥩"),
        ("Contorni", "Side dishes", "🥔"),
        ("Dolci", "Desserts", "🍰"),
        ("Bevande", "Drinks", "🍷"),
    ],
    "american": [
        ("Appetizers", "Starters and small plates", "🥗"),
        ("Salads", "Fresh salads", "🥬"),
        ("Burgers", "Gourmet burgers", "🍔"),
        ("Main Courses", "Steaks, chicken, seafood", "🥩"),
        ("Sides", "Side dishes", "🍟"),
        ("Desserts", "Sweet endings", "🍰"),
        ("Beverages", "Drinks and cocktails", "🍹"),
    ],
    "asian": [
        ("Sushi & Sashimi", "Fresh sushi and sashimi", "🍣"),
        ("Ramen", "Traditional ramen bowls", "🍜"),
        ("Wok Dishes", "Stir-fried specialties", "🥘"),
        ("Appetizers", "Small plates and starters", "🥟"),
        ("Desserts", "Asian desserts", "🍮"),
        ("Beverages", "Teas and drinks", "🍵"),
    ],
    "pizza": [
        ("Pizza Margherita", "Classic pizzas", "🍕"),
        ("Pizza Speciali", "Specialty pizzas", "🍕"),
        ("Antipasti", "Appetizers", "🥗"),
        ("Insalate", "Salads", "🥬"),
        ("Dolci", "Desserts", "🍰"),
        ("Bevande", "Drinks", "🍺"),
    ],
    "cafe": [
        ("Colazioni", "Breakfast items", "🥐"),
        ("Panini", "Sandwiches and panini", "🥪"),
        ("Insalate", "Fresh salads", "🥗"),
        ("Dolci", "Pastries and desserts", "🧁"),
        ("Caffè", "Coffee and espresso", "☕"),
        ("Tè", "Tea selection", "🍵"),
        ("Bevande Fredde", "Cold drinks", "🧊"),
    ],
    "bar": [
        ("Cocktails", "Signature cocktails", "🍸"),
        ("Vini", "Wine selection", "🍷"),
        ("Birre", "Beer selection", "🍺"),
        ("Spirits", "Premium spirits", "🥃"),
        ("Analcolici", "Non-alcoholic drinks", "🥤"),
        ("Snacks", "Bar snacks", "🥜"),
    ],
    "fastfood": [
        ("Combo", "Meal deals", "🍟"),
        ("Burgers", "Burgers and sandwiches", "🍔"),
        ("Chicken", "Chicken specialties", "🍗"),
        ("Sides", "Fries and sides", "🍟"),
        ("Desserts", "Sweet treats", "🍦"),
        ("Beverages", "Drinks", "🥤"),
    ],
    "finedining": [
        ("Amuse Bouche", "Chef's welcome", "🍽️"),
        ("Antipasti", "Appetizers", "🦐"),
        ("Primi", "First courses", "🍝"),
        ("Secondi", "Main courses", "🥩"),
        ("Formaggi", "Cheese selection", "🧀"),
        ("Dolci", "Desserts", "🍰"),
        ("Vini", "Wine pairing", "🍷"),
    ],
}

CUISINES: Tuple[str, ...] = tuple(_PRESETS)


def presets_for(cuisine: str) -> List[Dict[str, Any]]:
    """Presets of one cuisine, in menu order."""
    key = (cuisine or "").strip().lower().replace("_", "").replace("-", "").replace(" ", "")
    if key not in _PRESETS:
        raise ValidationError(
            f"Unknown cuisine '{cuisine}', expected one of: {', '.join(CUISINES)}"
        )
    return [
        {
            "cuisine": key,
            "name": name,
            "description": description,
            "icon": icon,
            "sort_order": position,
        }
        for position, (name, description, icon) in enumerate(_PRESETS[key], start=1)
    ]


def list_presets(cuisine: Optional[str] = None) -> List[Dict[str, Any]]:
    """Presets of one cuisine, or of all of them grouped by cuisine."""
    if cuisine:
        return presets_for(cuisine)
    return [preset for key in CUISINES for preset in presets_for(key)]
