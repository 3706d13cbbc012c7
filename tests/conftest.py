"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import json
import random
import shutil
import tempfile
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from recipe_planner.chatbot import RecipeChatbot
from recipe_planner.config import Settings
from recipe_planner.data.database import InMemoryKeyValueStore
from recipe_planner.data.models import Ingredient, MergePolicy, Recipe
from recipe_planner.data.preferences import PreferenceStore
from recipe_planner.data.recipes import RecipeRepository
from recipe_planner.data.shopping_lists import ShoppingListRepository
from recipe_planner.data.week_plans import WeekPlanRepository
from recipe_planner.llm_provider import LLMProvider, TextResponse
from recipe_planner.recipe_generator import RecipeGenerator

# Wednesday of ISO week 11/2025 (Monday 10.03.2025 - Sunday 16.03.2025)
FIXED_TODAY = date(2025, 3, 12)


class FakeLLMProvider(LLMProvider):
    """
    Provider returning queued answers in order.

    Queue strings (answer text) or exceptions (raised from create_message).
    """

    def __init__(self, responses: Optional[List[Any]] = None, default: str = ""):
        self.responses = list(responses or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def create_message(self, model, max_tokens, messages, system=None, **kwargs):
        self.calls.append({
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
            "system": system,
            **kwargs,
        })
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return TextResponse.of(response, model=model)

    @property
    def is_null(self) -> bool:
        return False

    @property
    def prompts(self) -> List[str]:
        return [c["messages"][0]["content"] for c in self.calls]


def make_recipes_payload(count: int = 3, servings: int = 2) -> str:
    """Model answer with `count` recipes, wrapped like a chatty model would."""
    recipes = []
    for n in range(1, count + 1):
        recipes.append({
            "id": str(n),
            "title": f"Recipe {n}",
            "time": f"{20 + n * 5} min",
            "servings": servings,
            "image": f"https://images.unsplash.com/photo-{n}",
            "ingredients": [
                {"id": "1", "name": "Tomatoes", "amount": f"{n * 100}g", "category": "produce"},
                {"id": "2", "name": f"Spice {n}", "amount": "1 tsp", "category": "spices"},
            ],
            "steps": ["Prepare", "Cook", "Serve"],
        })
    return "Here you go!\n```json\n" + json.dumps({"recipes": recipes}) + "\n```"


@pytest.fixture
def recipes_payload():
    """Factory for recipe-generation model answers."""
    return make_recipes_payload


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def today():
    return lambda: FIXED_TODAY


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def preference_store(store):
    return PreferenceStore(store)


@pytest.fixture
def week_plans(store, today):
    return WeekPlanRepository(store, today=today)


@pytest.fixture
def shopping_lists(store, today):
    return ShoppingListRepository(store, today=today)


@pytest.fixture
def summing_shopping_lists(store, today):
    return ShoppingListRepository(store, merge_policy=MergePolicy.SUM_IF_COMPATIBLE_UNIT, today=today)


@pytest.fixture
def recipe_repository(store, week_plans):
    return RecipeRepository(store, week_plans)


@pytest.fixture
def provider():
    return FakeLLMProvider()


@pytest.fixture
def generator(provider):
    return RecipeGenerator(provider, model="test-model")


@pytest.fixture
def settings():
    """Settings without progress simulation and with a short timeout."""
    return Settings(
        anthropic_api_key=None,
        model="test-model",
        llm_timeout=5.0,
        use_null_llm=False,
        simulate_progress=False,
    )


@pytest.fixture
def chatbot(generator, preference_store, shopping_lists, week_plans, recipe_repository, settings):
    """
    Chat session over the in-memory store.

    Usage in tests:
        provider.queue('{"isCookingRelated": true}')
        await chatbot.handle_message("pasta")
    """
    return RecipeChatbot(
        generator=generator,
        preferences=preference_store,
        shopping_lists=shopping_lists,
        week_plans=week_plans,
        recipes=recipe_repository,
        settings=settings,
        rng=random.Random(7),
    )


@pytest.fixture
def sample_recipes():
    """Three recipes with overlapping ingredients."""
    return [
        Recipe(
            id="r1",
            title="Tomato Pasta",
            time="25 min",
            servings=2,
            ingredients=[
                Ingredient(name="Spaghetti", amount="250g", category="grains"),
                Ingredient(name="Tomatoes", amount="400g", category="produce"),
                Ingredient(name="Olive oil", amount="2 tbsp", category="oils/vinegar"),
            ],
            steps=["Boil pasta", "Make sauce", "Combine"],
        ),
        Recipe(
            id="r2",
            title="Chickpea Curry",
            time="35 min",
            servings=2,
            ingredients=[
                Ingredient(name="Chickpeas", amount="400g", category="legumes"),
                Ingredient(name="tomatoes", amount="200g", category="produce"),
                Ingredient(name="Curry powder", amount="1 tbsp", category="spices"),
            ],
            steps=["Fry spices", "Add chickpeas", "Simmer"],
        ),
        Recipe(
            id="r3",
            title="Greek Salad",
            time="15 min",
            servings=2,
            ingredients=[
                Ingredient(name="Feta", amount="200g", category="dairy"),
                Ingredient(name="Cucumber", amount="1 piece", category="produce"),
            ],
            steps=["Chop", "Mix"],
        ),
    ]
