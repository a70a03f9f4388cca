"""
Chat Service
AI assistant that answers customer questions about a menu and extracts
allergens, ingredients and dietary flags from dish descriptions

The context (restaurant + menu tree) is read through the menu cache only,
never from the primary store directly. The completion backend is any
OpenAI-compatible endpoint (OpenAI or DeepSeek).
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from openai import AsyncOpenAI

from qrmenu.cache.loader import iter_dishes
from qrmenu.cache.menu_cache import MenuCacheService
from qrmenu.config.config_loader import AIConfig


APOLOGY_MESSAGE = "Sorry, I'm having technical problems right now. Please try again in a moment."
EMPTY_REPLY_MESSAGE = "Sorry, I couldn't process your request."

DEEPSEEK_BASE_URL = "https://api.deepseek.com/v1"

SYSTEM_PROMPT = """You are ChefBot, the AI assistant of a restaurant. Answer CONCISELY and directly.

MENU CONTEXT:
{context}

RULES:
- At most 2-3 sentences
- For dietary restrictions, only suggest dishes carrying the matching tag:
  * [Gluten free]
  * [Vegetarian]
  * [Vegan]
  * [Spicy]
- Include prices when relevant
- Do not use emoji
- If no dish matches, say so briefly
"""

DIETARY_TAGS = (
    ("is_vegetarian", "Vegetarian"),
    ("is_vegan", "Vegan"),
    ("is_gluten_free", "Gluten free"),
    ("is_spicy", "Spicy"),
)

ANALYSIS_PROMPT = """You are a food safety expert. Analyze the dish description and extract:
1. Allergens (gluten, dairy, nuts, shellfish, etc.)
2. Ingredients list
3. Dietary restrictions (vegetarian, vegan, gluten-free)
4. Spice level (mild, medium, hot, very hot)

Return only a JSON object with this structure:
{
  "allergens": ["allergen1", "allergen2"],
  "ingredients": ["ingredient1", "ingredient2"],
  "isVegetarian": boolean,
  "isVegan": boolean,
  "isGlutenFree": boolean,
  "isSpicy": boolean,
  "spiceLevel": "mild|medium|hot|very hot"
}
"""

SPICE_LEVELS = ("mild", "medium", "hot", "very hot")

# (key in the model's JSON, key in the analysis)
_ANALYSIS_FLAGS = (
    ("isVegetarian", "is_vegetarian"),
    ("isVegan", "is_vegan"),
    ("isGlutenFree", "is_gluten_free"),
    ("isSpicy", "is_spicy"),
)


def default_analysis() -> Dict[str, Any]:
    """Analysis used when the backend is unavailable or answers garbage."""
    return {
        "allergens": [],
        "ingredients": [],
        "is_vegetarian": False,
        "is_vegan": False,
        "is_gluten_free": False,
        "is_spicy": False,
        "spice_level": "mild",
    }


def _names(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    names: List[str] = []
    seen = set()
    for item in value:
        if not isinstance(item, str) or not item.strip():
            continue
        name = item.strip()
        if name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names


def parse_analysis(content: Optional[str]) -> Dict[str, Any]:
    """
    Turn the model's JSON answer into an analysis.

    Missing or mistyped fields fall back to their defaults; a fenced
    ```json block is accepted.
    """
    text = (content or "").strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:]

    raw = json.loads(text or "{}")
    if not isinstance(raw, dict):
        raise ValueError(f"analysis is a {type(raw).__name__}, expected an object")

    analysis = default_analysis()
    analysis["allergens"] = _names(raw.get("allergens"))
    analysis["ingredients"] = _names(raw.get("ingredients"))
    for source, target in _ANALYSIS_FLAGS:
        analysis[target] = raw.get(source) is True
    spice_level = str(raw.get("spiceLevel") or "").strip().lower()
    if spice_level in SPICE_LEVELS:
        analysis["spice_level"] = spice_level
    return analysis


@dataclass
class ChatReply:
    """Assistant answer plus the dishes it talks about."""
    response: str
    mentioned_dishes: List[Dict[str, Any]] = field(default_factory=list)


def format_price(price: Any) -> str:
    value = Decimal(str(price)).quantize(Decimal("0.01"))
    if value == value.to_integral_value():
        return f"€{value:.0f}"
    return f"€{value}"


def _dish_line(dish: Dict[str, Any]) -> str:
    line = f"- {dish['name']} ({format_price(dish['price'])})"
    if dish.get('description'):
        line += f": {dish['description']}"
    for flag, label in DIETARY_TAGS:
        if dish.get(flag):
            line += f" [{label}]"
    allergens = [a['name'] for a in dish.get('allergens') or []]
    if allergens:
        line += f" [Allergens: {', '.join(allergens)}]"
    return line


def _menu_lines(menu: Dict[str, Any]) -> List[str]:
    lines = [f"Menu: {menu['name']}", "", "Available dishes:"]
    for category in menu.get('categories') or []:
        dishes = category.get('dishes') or []
        if not dishes:
            continue
        lines.append("")
        lines.append(f"{category['name']}:")
        lines.extend(_dish_line(dish) for dish in dishes)
    return lines


def render_context(context: Dict[str, Any]) -> Tuple[str, List[Dict[str, Any]]]:
    """
    Render the prompt context and collect the dishes it lists.

    A menu in the context wins; otherwise every menu of the restaurant is
    listed.
    """
    menu = context.get('menu')
    restaurant = context.get('restaurant')

    lines: List[str] = []
    dishes: List[Dict[str, Any]] = []

    if menu:
        restaurant_name = (menu.get('restaurant') or restaurant or {}).get('name')
        if restaurant_name:
            lines.append(f"Restaurant: {restaurant_name}")
        lines.extend(_menu_lines(menu))
        dishes.extend(iter_dishes(menu))
    elif restaurant:
        lines.append(f"Restaurant: {restaurant['name']}")
        for restaurant_menu in restaurant.get('menus') or []:
            lines.append("")
            lines.extend(_menu_lines(restaurant_menu))
            dishes.extend(iter_dishes(restaurant_menu))

    return "\n".join(lines), dishes


def identify_mentioned_dishes(
    response: str,
    dishes: List[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """
    Dishes named in the response.

    A dish matches on its full name (case-insensitive), or when at least half
    of its words are found, counting only words longer than 3 characters.
    """
    response_lower = response.lower()
    mentioned = []
    seen = set()

    for dish in dishes:
        if dish['id'] in seen:
            continue

        name = dish['name'].lower()
        if name in response_lower:
            mentioned.append(dish)
            seen.add(dish['id'])
            continue

        words = name.split()
        matched = [w for w in words if len(w) > 3 and w in response_lower]
        if matched and len(matched) / len(words) >= 0.5:
            mentioned.append(dish)
            seen.add(dish['id'])

    return mentioned


class ChatContextBuilder:
    """Collects cached aggregates for a chat request."""

    def __init__(self, cache: MenuCacheService):
        self._cache = cache

    async def build(
        self,
        restaurant_id: Optional[str] = None,
        menu_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        context: Dict[str, Any] = {}

        if restaurant_id:
            context['restaurant'] = await self._cache.get_restaurant_with_cache(restaurant_id)
        if menu_id:
            menu = await self._cache.get_menu_with_cache(menu_id)
            if menu and restaurant_id and menu.get('restaurant_id') != restaurant_id:
                logger.warning(f"Menu {menu_id} does not belong to restaurant {restaurant_id}")
                menu = None
            context['menu'] = menu

        return context


class MenuAssistant:
    """
    Chat completions over the menu context.

    Backend failures never surface as errors: the customer gets a short
    apology instead.
    """

    def __init__(self, config: Optional[AIConfig] = None, client: Optional[Any] = None):
        self.config = config or AIConfig()
        self._client = client

        if self._client is None and self.config.enabled and self.config.api_key:
            base_url = self.config.base_url
            if base_url is None and self.config.provider == "deepseek":
                base_url = DEEPSEEK_BASE_URL
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=base_url,
                timeout=self.config.timeout,
            )

    @property
    def is_available(self) -> bool:
        return self.config.enabled and self._client is not None

    @property
    def model(self) -> str:
        if self.config.provider == "deepseek" and self.config.model.startswith("gpt"):
            return "deepseek-chat"
        return self.config.model

    def provider_info(self) -> Dict[str, Any]:
        return {
            "provider": self.config.provider,
            "enabled": self.is_available,
            "model": self.model,
        }

    async def chat(self, message: str, context: Dict[str, Any]) -> ChatReply:
        if not self.is_available:
            logger.warning("AI chat requested but no completion backend is configured")
            return ChatReply(response=APOLOGY_MESSAGE)

        context_text, dishes = render_context(context)

        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT.format(context=context_text)},
                    {"role": "user", "content": message},
                ],
                temperature=self.config.temperature,
            )
            response = completion.choices[0].message.content or EMPTY_REPLY_MESSAGE
        except Exception as e:
            logger.error(f"AI chat error: {e}")
            return ChatReply(response=APOLOGY_MESSAGE)

        return ChatReply(
            response=response,
            mentioned_dishes=identify_mentioned_dishes(response, dishes),
        )

    async def analyze_dish(self, description: str) -> Dict[str, Any]:
        """
        Extract allergens, ingredients and dietary flags from a dish description.

        Never raises: without a backend, or on a failed or unreadable answer,
        the default (empty) analysis is returned.
        """
        if not self.is_available:
            logger.warning("Dish analysis requested but no completion backend is configured")
            return default_analysis()

        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": ANALYSIS_PROMPT},
                    {"role": "user", "content": f'Analyze this dish: "{description}"'},
                ],
                temperature=self.config.analysis_temperature,
            )
            return parse_analysis(completion.choices[0].message.content)
        except Exception as e:
            logger.error(f"AI analysis error: {e}")
            return default_analysis()
