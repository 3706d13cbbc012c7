"""
First-run dietary profile collection.

The chat asks one open question ("any dietary requirements or allergies?")
and turns the answer into a UserPreferences record. The model does the
extraction when it is reachable; this module holds the keyword analysis used
when it is not, plus the summary shown back to the user.
"""

import logging
import re
from typing import Dict

from recipe_planner.data.models import UserPreferences

logger = logging.getLogger(__name__)

HABIT_KEYWORDS = {
    "vegetarian": "vegetarian",
    "veggie": "vegetarian",
    "vegan": "vegan",
    "pescatarian": "pescatarian",
    "gluten-free": "gluten-free",
    "gluten free": "gluten-free",
    "dairy-free": "dairy-free",
    "dairy free": "dairy-free",
    "low-carb": "low-carb",
    "low carb": "low-carb",
    "keto": "keto",
    "paleo": "paleo",
    "high protein": "high-protein",
    "halal": "halal",
    "kosher": "kosher",
}

CUISINE_KEYWORDS = {
    "italian": "italian",
    "mexican": "mexican",
    "asian": "asian",
    "chinese": "chinese",
    "thai": "thai",
    "japanese": "japanese",
    "indian": "indian",
    "mediterranean": "mediterranean",
    "greek": "greek",
    "korean": "korean",
    "french": "french",
    "german": "german",
    "american": "american",
}

FAVORITE_KEYWORDS = {
    "pasta": "pasta",
    "spaghetti": "pasta",
    "noodle": "noodles",
    "pizza": "pizza",
    "curry": "curry",
    "salad": "salad",
    "soup": "soup",
    "stew": "stew",
    "risotto": "risotto",
    "rice": "rice",
    "chicken": "chicken",
    "beef": "beef",
    "steak": "steak",
    "fish": "fish",
    "salmon": "salmon",
    "seafood": "seafood",
    "burger": "burgers",
    "taco": "tacos",
    "sushi": "sushi",
    "tofu": "tofu",
    "vegetables": "vegetables",
    "dessert": "desserts",
}

ALLERGEN_KEYWORDS = {
    "peanut": "peanuts",
    "nut": "nuts",
    "shellfish": "shellfish",
    "lactose": "lactose",
    "dairy": "dairy",
    "egg": "eggs",
    "soy": "soy",
    "wheat": "wheat",
    "gluten": "gluten",
    "fish": "fish",
    "sesame": "sesame",
}

_ALLERGY_CONTEXT = re.compile(r"allerg|intoleran|can't eat|cannot eat|can not eat")
_NO_ALLERGIES = re.compile(
    r"\b(no|none|without|zero|don't have any|do not have any)\s+(known\s+)?(food\s+)?(allerg|intoleran)"
)


def _collect(text: str, keywords: Dict[str, str]) -> list:
    found = []
    for keyword, value in keywords.items():
        if re.search(rf"\b{re.escape(keyword)}", text) and value not in found:
            found.append(value)
    return found


def analyze_user_input(text: str) -> UserPreferences:
    """
    Extract a dietary profile from free text with keyword matching.

    Args:
        text: User's answer to the dietary question

    Returns:
        UserPreferences (possibly empty)
    """
    lowered = text.lower()

    allergies = []
    if _ALLERGY_CONTEXT.search(lowered) and not _NO_ALLERGIES.search(lowered):
        allergies = _collect(lowered, ALLERGEN_KEYWORDS)
        # "peanut" also matches "nut"
        if "peanuts" in allergies and not re.search(r"\bnuts?\b", lowered):
            allergies.remove("nuts")

    favorites = [
        f for f in _collect(lowered, FAVORITE_KEYWORDS)
        if f not in allergies
    ]

    preferences = UserPreferences(
        habits=_collect(lowered, HABIT_KEYWORDS),
        favorites=favorites,
        allergies=allergies,
        trends=_collect(lowered, CUISINE_KEYWORDS),
    )
    logger.debug(f"Keyword analysis of '{text}': {preferences.to_dict()}")
    return preferences


def format_preferences_summary(preferences: UserPreferences) -> str:
    """Short human-readable summary of a profile."""
    if preferences.is_empty():
        return "No special requirements noted."

    lines = []
    if preferences.habits:
        lines.append(f"Diet: {', '.join(preferences.habits)}")
    if preferences.allergies:
        lines.append(f"Allergies: {', '.join(preferences.allergies)}")
    if preferences.favorites:
        lines.append(f"Favorites: {', '.join(preferences.favorites)}")
    if preferences.trends:
        lines.append(f"Cuisines: {', '.join(c.title() for c in preferences.trends)}")
    return "\n".join(lines)
