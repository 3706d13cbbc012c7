"""
Data models for the Recipe Planner.

These models define the core entities used throughout the system:
- Recipe / Ingredient: AI-generated recipes
- WeekPlan: Weekday -> recipes mapping for one calendar week
- ShoppingList: Categorized shopping items for one calendar week
- UserPreferences: Dietary profile collected in chat
"""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import List, Optional, Dict, Tuple
import re
import uuid

from .weeks import WEEKDAYS

# Shopping categories (fixed enumeration)
CATEGORY_PRODUCE = "produce"
CATEGORY_DAIRY = "dairy"
CATEGORY_MEAT_FISH = "meat/fish"
CATEGORY_GRAINS = "grains"
CATEGORY_SPICES = "spices"
CATEGORY_OILS_VINEGAR = "oils/vinegar"
CATEGORY_LEGUMES = "legumes"
CATEGORY_OTHER = "other"

CATEGORIES = [
    CATEGORY_PRODUCE,
    CATEGORY_DAIRY,
    CATEGORY_MEAT_FISH,
    CATEGORY_GRAINS,
    CATEGORY_SPICES,
    CATEGORY_OILS_VINEGAR,
    CATEGORY_LEGUMES,
    CATEGORY_OTHER,
]

# Alternative spellings the model tends to answer with
CATEGORY_ALIASES = {
    "fruit & vegetables": CATEGORY_PRODUCE,
    "fruits & vegetables": CATEGORY_PRODUCE,
    "vegetables": CATEGORY_PRODUCE,
    "fruit": CATEGORY_PRODUCE,
    "obst & gemüse": CATEGORY_PRODUCE,
    "dairy products": CATEGORY_DAIRY,
    "milchprodukte": CATEGORY_DAIRY,
    "meat & fish": CATEGORY_MEAT_FISH,
    "meat": CATEGORY_MEAT_FISH,
    "fish": CATEGORY_MEAT_FISH,
    "fleisch & fisch": CATEGORY_MEAT_FISH,
    "grain products": CATEGORY_GRAINS,
    "getreideprodukte": CATEGORY_GRAINS,
    "spice": CATEGORY_SPICES,
    "gewürze": CATEGORY_SPICES,
    "oils & vinegar": CATEGORY_OILS_VINEGAR,
    "oil": CATEGORY_OILS_VINEGAR,
    "öle & essig": CATEGORY_OILS_VINEGAR,
    "legume": CATEGORY_LEGUMES,
    "hülsenfrüchte": CATEGORY_LEGUMES,
    "misc": CATEGORY_OTHER,
    "sonstiges": CATEGORY_OTHER,
}

# Leading quantity: mixed number ("1 1/2"), fraction ("3/4") or decimal ("0,5")
_AMOUNT = re.compile(r"^\s*(\d+\s+\d+/[1-9]\d*|\d+/[1-9]\d*|\d+(?:[.,]\d+)?)\s*(.*?)\s*$")
# Ranges and unparsed fractions ("2-3 cloves", "1.5/2 l") are not summable
_NOT_A_UNIT = re.compile(r"^[\d/\-]")


def generate_id() -> str:
    """Collision-resistant identifier for items and recipes."""
    return uuid.uuid4().hex


def normalize_category(category: Optional[str]) -> str:
    """Map a free-form category onto the fixed enumeration (default: other)."""
    if not category:
        return CATEGORY_OTHER
    key = category.strip().lower()
    if key in CATEGORIES:
        return key
    return CATEGORY_ALIASES.get(key, CATEGORY_OTHER)


class MergePolicy(str, Enum):
    """How a re-added shopping item combines with the stored one."""

    OVERWRITE = "overwrite"
    SUM_IF_COMPATIBLE_UNIT = "sum-if-compatible-unit"

    @classmethod
    def parse(cls, value: str) -> "MergePolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown merge policy '{value}'. "
                f"Expected one of: {', '.join(p.value for p in cls)}"
            )


def _match_amount(amount: str, unit: Optional[str]) -> Optional[Tuple[Fraction, str, "re.Match"]]:
    if not amount:
        return None
    match = _AMOUNT.match(amount)
    if not match or _NOT_A_UNIT.match(match.group(2)):
        return None

    quantity = sum(Fraction(part.replace(",", ".")) for part in match.group(1).split())
    amount_unit = match.group(2) or unit or ""
    return quantity, amount_unit.strip().lower(), match


def parse_amount(amount: str, unit: Optional[str] = None) -> Optional[Tuple[float, str]]:
    """
    Split an amount like '200g', '1/2 cup' or '1 1/2 cups' into (quantity, unit).

    Args:
        amount: Display amount
        unit: Explicit unit, used when the amount carries none

    Returns:
        (quantity, lowercase unit) or None for non-numeric amounts ("to taste", "2-3")
    """
    parsed = _match_amount(amount, unit)
    if parsed is None:
        return None
    return float(parsed[0]), parsed[1]


def _format_quantity(quantity: Fraction, as_fraction: bool = False) -> str:
    if quantity.denominator == 1:
        return str(quantity.numerator)
    if as_fraction:
        whole, rest = divmod(quantity.numerator, quantity.denominator)
        part = f"{rest}/{quantity.denominator}"
        return f"{whole} {part}" if whole else part
    return f"{float(quantity):.2f}".rstrip("0").rstrip(".")


@dataclass
class Ingredient:
    """Ingredient line of a generated recipe."""

    name: str
    amount: str = ""
    category: str = CATEGORY_OTHER
    id: str = ""

    def __post_init__(self):
        self.category = normalize_category(self.category)
        if not self.id:
            self.id = generate_id()

    def __str__(self) -> str:
        return f"{self.amount} {self.name}".strip()

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Ingredient":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name", "")),
            amount=str(data.get("amount") or ""),
            category=data.get("category"),
        )


@dataclass
class Recipe:
    """AI-generated recipe."""

    id: str
    title: str
    image: str = ""
    time: str = ""  # Display string, e.g. "25 min"
    servings: int = 2
    ingredients: List[Ingredient] = field(default_factory=list)
    steps: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.title} ({self.time})" if self.time else self.title

    def copy(self) -> "Recipe":
        """Deep copy, used when a recipe is placed into a plan or list."""
        return Recipe.from_dict(self.to_dict())

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "image": self.image,
            "time": self.time,
            "servings": self.servings,
            "ingredients": [i.to_dict() for i in self.ingredients],
            "steps": list(self.steps),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Recipe":
        servings = data.get("servings", 2)
        try:
            servings = int(servings)
        except (TypeError, ValueError):
            servings = 2

        return cls(
            id=str(data.get("id") or generate_id()),
            title=str(data.get("title") or ""),
            image=str(data.get("image") or ""),
            time=str(data.get("time") or ""),
            servings=servings,
            ingredients=[_ingredient(i) for i in _list_field(data, "ingredients")],
            steps=[str(s) for s in _list_field(data, "steps")],
        )


def _list_field(data: Dict, key: str) -> List:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"Recipe '{key}' must be a list, got {type(value).__name__}")
    return value


def _ingredient(entry) -> Ingredient:
    """Accept ingredient objects and bare names like '200g pasta'."""
    if isinstance(entry, dict):
        return Ingredient.from_dict(entry)
    if isinstance(entry, str) and entry.strip():
        return Ingredient(name=entry.strip())
    raise ValueError(f"Unexpected ingredient entry: {entry!r}")


PREFERENCE_TYPES = ("habits", "favorites", "allergies", "trends")


@dataclass
class UserPreferences:
    """Dietary profile (one record per installation)."""

    habits: List[str] = field(default_factory=list)  # vegetarian, vegan, ...
    favorites: List[str] = field(default_factory=list)  # favorite dishes or ingredients
    allergies: List[str] = field(default_factory=list)
    trends: List[str] = field(default_factory=list)  # preferred cuisine styles

    def is_empty(self) -> bool:
        """A profile with no tags at all counts as absent."""
        return not (self.habits or self.favorites or self.allergies or self.trends)

    def add(self, preference_type: str, value: str) -> bool:
        """Add a tag; returns False if it was already present."""
        tags = self._tags(preference_type)
        value = value.strip()
        if not value or value.lower() in (t.lower() for t in tags):
            return False
        tags.append(value)
        return True

    def remove(self, preference_type: str, value: str) -> bool:
        """Remove a tag (case-insensitive); returns False if it was missing."""
        tags = self._tags(preference_type)
        for tag in tags:
            if tag.lower() == value.strip().lower():
                tags.remove(tag)
                return True
        return False

    def _tags(self, preference_type: str) -> List[str]:
        if preference_type not in PREFERENCE_TYPES:
            raise ValueError(f"Unknown preference type: {preference_type}")
        return getattr(self, preference_type)

    def to_dict(self) -> Dict:
        return {t: list(getattr(self, t)) for t in PREFERENCE_TYPES}

    @classmethod
    def from_dict(cls, data: Dict) -> "UserPreferences":
        return cls(**{
            t: [str(v) for v in (data.get(t) or [])]
            for t in PREFERENCE_TYPES
        })


@dataclass
class ShoppingListItem:
    """Single line on a shopping list."""

    name: str
    amount: str = ""
    unit: Optional[str] = None
    checked: bool = False
    id: str = field(default_factory=generate_id)

    def merge(self, amount: str, unit: Optional[str], policy: MergePolicy):
        """
        Fold a newly supplied amount into this item.

        Keeps id and checked state. With SUM_IF_COMPATIBLE_UNIT numeric
        amounts sharing a unit are added; everything else is overwritten.
        """
        if policy == MergePolicy.SUM_IF_COMPATIBLE_UNIT:
            current = _match_amount(self.amount, self.unit)
            incoming = _match_amount(amount, unit)
            if current and incoming and current[1] == incoming[1]:
                as_fraction = "/" in current[2].group(1) or "/" in incoming[2].group(1)
                total = _format_quantity(current[0] + incoming[0], as_fraction)
                start, end = incoming[2].span(1)
                self.amount = amount[:start] + total + amount[end:]
                self.unit = unit
                return

        self.amount = amount
        self.unit = unit

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "unit": self.unit,
            "checked": self.checked,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ShoppingListItem":
        return cls(
            id=str(data.get("id") or generate_id()),
            name=str(data["name"]),
            amount=str(data.get("amount") or ""),
            unit=data.get("unit"),
            checked=bool(data.get("checked", False)),
        )


@dataclass
class ShoppingCategory:
    """Named group of items inside a shopping list."""

    category: str
    items: List[ShoppingListItem] = field(default_factory=list)

    def find_item(self, name: str) -> Optional[ShoppingListItem]:
        """Find an item by name (case-insensitive)."""
        name_lower = name.strip().lower()
        for item in self.items:
            if item.name.strip().lower() == name_lower:
                return item
        return None

    def get_item(self, item_id: str) -> Optional[ShoppingListItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def to_dict(self) -> Dict:
        return {
            "category": self.category,
            "items": [i.to_dict() for i in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ShoppingCategory":
        return cls(
            category=data["category"],
            items=[ShoppingListItem.from_dict(i) for i in data.get("items", [])],
        )


@dataclass
class ShoppingList:
    """Shopping list for one calendar week."""

    id: str
    name: str
    week_number: int
    year: int
    date: str  # ISO date the list was created for
    categories: List[ShoppingCategory] = field(default_factory=list)

    def get_category(self, category: str) -> Optional[ShoppingCategory]:
        return next((c for c in self.categories if c.category == category), None)

    def add_item(
        self,
        name: str,
        amount: str = "",
        category: Optional[str] = None,
        unit: Optional[str] = None,
        policy: MergePolicy = MergePolicy.OVERWRITE,
    ) -> ShoppingListItem:
        """
        Insert an item or merge it into a same-named item of its category.

        Args:
            name: Item name
            amount: Display amount ("200g")
            category: Category name (normalized, default "other")
            unit: Optional explicit unit
            policy: Merge policy for existing items

        Returns:
            The stored item
        """
        target = self._ensure_category(normalize_category(category))

        existing = target.find_item(name)
        if existing:
            existing.merge(amount, unit, policy)
            return existing

        item = ShoppingListItem(name=name.strip(), amount=amount, unit=unit)
        target.items.append(item)
        return item

    def add_ingredients(self, ingredients: List[Ingredient], policy: MergePolicy):
        """Add recipe ingredients one by one."""
        for ingredient in ingredients:
            self.add_item(
                ingredient.name,
                ingredient.amount,
                ingredient.category,
                policy=policy,
            )

    def toggle_item(self, category: str, item_id: str) -> bool:
        item = self._find(category, item_id)
        if item is None:
            return False
        item.checked = not item.checked
        return True

    def remove_item(self, category: str, item_id: str) -> Optional[ShoppingListItem]:
        """Remove an item; the category is pruned when it becomes empty."""
        source = self.get_category(category)
        item = source.get_item(item_id) if source else None
        if item is None:
            return None
        source.items.remove(item)
        self._prune()
        return item

    def move_item(
        self,
        old_category: str,
        item_id: str,
        new_category: str,
        policy: MergePolicy = MergePolicy.OVERWRITE,
    ) -> bool:
        """
        Relocate an item to another category.

        A same-named item already in the target category absorbs the moved
        one through the merge policy so names stay unique per category.
        """
        new_category = normalize_category(new_category)
        item = self._find(old_category, item_id)
        if item is None:
            return False
        if old_category == new_category:
            return True

        self.remove_item(old_category, item_id)
        target = self._ensure_category(new_category)

        existing = target.find_item(item.name)
        if existing:
            existing.merge(item.amount, item.unit, policy)
        else:
            target.items.append(item)
        return True

    def clear(self):
        self.categories = []

    def item_count(self) -> int:
        return sum(len(c.items) for c in self.categories)

    def _find(self, category: str, item_id: str) -> Optional[ShoppingListItem]:
        source = self.get_category(category)
        return source.get_item(item_id) if source else None

    def _ensure_category(self, category: str) -> ShoppingCategory:
        existing = self.get_category(category)
        if existing:
            return existing
        created = ShoppingCategory(category=category)
        self.categories.append(created)
        self.categories.sort(key=lambda c: c.category)
        return created

    def _prune(self):
        self.categories = [c for c in self.categories if c.items]

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "weekNumber": self.week_number,
            "year": self.year,
            "date": self.date,
            "categories": [c.to_dict() for c in self.categories],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ShoppingList":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            week_number=int(data["weekNumber"]),
            year=int(data["year"]),
            date=data.get("date", ""),
            categories=[ShoppingCategory.from_dict(c) for c in data.get("categories", [])],
        )


@dataclass
class WeekPlan:
    """Recipes planned for each weekday of one calendar week."""

    id: str
    name: str
    week_number: int
    year: int
    date: str
    days: Dict[str, List[Recipe]] = field(
        default_factory=lambda: {day: [] for day in WEEKDAYS}
    )

    def get_day(self, day: str) -> List[Recipe]:
        day = day.lower()
        if day not in self.days:
            raise ValueError(f"Unknown weekday: {day}")
        return self.days[day]

    def add_recipe(self, day: str, recipe: Recipe):
        self.get_day(day).append(recipe.copy())

    def remove_recipe(self, day: str, recipe_id: str) -> Optional[Recipe]:
        """Remove the first recipe with this id from one day."""
        recipes = self.get_day(day)
        for index, recipe in enumerate(recipes):
            if recipe.id == recipe_id:
                return recipes.pop(index)
        return None

    def distribute(self, recipes: List[Recipe], wrap: bool = False) -> List[Recipe]:
        """
        Place recipes one per day starting Monday.

        Args:
            recipes: Recipes in the order they should be placed
            wrap: Continue on Monday after Sunday instead of stopping

        Returns:
            Recipes that did not fit (always empty when wrap is set)
        """
        placed = len(recipes) if wrap else min(len(recipes), len(WEEKDAYS))
        for index, recipe in enumerate(recipes[:placed]):
            self.add_recipe(WEEKDAYS[index % len(WEEKDAYS)], recipe)
        return list(recipes[placed:])

    def all_recipes(self) -> List[Recipe]:
        return [r for day in WEEKDAYS for r in self.days.get(day, [])]

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "weekNumber": self.week_number,
            "year": self.year,
            "date": self.date,
            "days": {
                day: [r.to_dict() for r in self.days.get(day, [])]
                for day in WEEKDAYS
            },
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "WeekPlan":
        stored_days = data.get("days", {})
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            week_number=int(data["weekNumber"]),
            year=int(data["year"]),
            date=data.get("date", ""),
            days={
                day: [Recipe.from_dict(r) for r in stored_days.get(day, [])]
                for day in WEEKDAYS
            },
        )
