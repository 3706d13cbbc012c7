"""
Recipe Generation Client.

Builds prompts from the user's request and stored dietary profile, calls the
LLM and parses the strictly shaped JSON answers:
- classify_cooking_related: soft gate for off-topic chat input
- generate_recipes: the actual recipe payload
- extract_preferences: dietary profile from a free-text answer
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from recipe_planner.config import DEFAULT_MODEL
from recipe_planner.data.models import (
    CATEGORIES,
    PREFERENCE_TYPES,
    Recipe,
    UserPreferences,
    generate_id,
)
from recipe_planner.llm_provider import LLMProvider, LLMProviderError, response_text

logger = logging.getLogger(__name__)

NO_MODEL_MESSAGE = "No language model is configured (set ANTHROPIC_API_KEY)"


class RecipeGenerationError(Exception):
    """The model could not be reached or returned no usable answer."""
    pass


class RecipeFormatError(RecipeGenerationError):
    """The model answered, but not with the requested JSON shape."""
    pass


@dataclass
class TopicCheck:
    """Result of the cooking-topic classification."""
    is_cooking_related: bool
    message: Optional[str] = None


@dataclass
class GenerationResult:
    """Parsed recipe payload."""
    recipes: List[Recipe] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


CLASSIFY_SYSTEM_PROMPT = """You are the gatekeeper of a cooking assistant app.
Decide whether the user's message is about cooking, food, recipes, meals,
ingredients, diets or nutrition.

Hesitant or open answers ("not sure", "anything", "I don't know", "surprise me")
ARE cooking related: the user is answering the question what they want to cook.

Respond ONLY with a JSON object, no explanation:
{"isCookingRelated": true}
or
{"isCookingRelated": false, "message": "<one short, friendly sentence explaining that you can only help with cooking and recipes>"}"""

GENERATE_SYSTEM_PROMPT = (
    "You are a professional chef assistant specializing in creating delicious recipes "
    "with precise ingredients and instructions. You always respond with properly "
    "formatted JSON that matches the requested structure exactly, without any text "
    "before or after the JSON object."
)

PREFERENCES_SYSTEM_PROMPT = """You extract a dietary profile from a user's message.

Return ONLY a JSON object with exactly these keys, each a list of short lowercase tags:
{
  "habits": [],      // diets and eating habits, e.g. "vegetarian", "vegan", "low-carb"
  "favorites": [],   // favorite dishes or ingredients, e.g. "pasta", "curry"
  "allergies": [],   // allergies and intolerances, e.g. "nuts", "lactose"
  "trends": []       // preferred cuisine styles, e.g. "italian", "asian"
}

Use empty lists when the user states nothing for a key ("no allergies" -> "allergies": [])."""


def extract_json(content: str) -> Any:
    """
    Parse the JSON object contained in a model answer.

    Tolerates markdown code fences and text around the object.

    Raises:
        RecipeFormatError: no JSON object could be decoded
    """
    content = content.strip()

    # Remove markdown code blocks if present
    if content.startswith("```"):
        parts = content.split("```")
        content = parts[1] if len(parts) > 1 else content
        if content.startswith("json"):
            content = content[4:]
    content = content.strip()

    # Extract JSON object if the model added explanation text
    start_idx = content.find("{")
    end_idx = content.rfind("}")
    if start_idx != -1 and end_idx > start_idx:
        content = content[start_idx:end_idx + 1]

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise RecipeFormatError(f"Model response is not valid JSON: {e}") from e


def describe_preferences(preferences: Optional[UserPreferences]) -> str:
    """Render the stored profile as prompt text."""
    if preferences is None or preferences.is_empty():
        return "No stored dietary profile."

    lines = []
    if preferences.allergies:
        lines.append(
            f"ALLERGIES (hard constraint, never use these ingredients): "
            f"{', '.join(preferences.allergies)}"
        )
    if preferences.habits:
        lines.append(f"Eating habits: {', '.join(preferences.habits)}")
    if preferences.favorites:
        lines.append(f"Favorites: {', '.join(preferences.favorites)}")
    if preferences.trends:
        lines.append(f"Preferred cuisines: {', '.join(preferences.trends)}")
    return "\n".join(lines)


def build_recipe_prompt(
    request: str,
    count: int,
    servings: int,
    preferences: Optional[UserPreferences] = None,
) -> str:
    """Build the user prompt for recipe generation."""
    categories = ", ".join(f'"{c}"' for c in CATEGORIES)

    return f"""Generate {count} detailed recipes based on this request: "{request}".

Dietary profile of the user:
{describe_preferences(preferences)}

For each recipe, please provide:
1. A descriptive title
2. Cooking time
3. Servings ({servings} portions)
4. A list of all ingredients with exact quantities for {servings} portions
5. Step-by-step cooking instructions

Format the response as a JSON object with the following format:
{{
  "recipes": [
    {{
      "id": "1",
      "title": "Recipe Title",
      "time": "30 min",
      "servings": {servings},
      "image": "https://images.unsplash.com/photo-appropriate-image",
      "ingredients": [
        {{"id": "1", "name": "Ingredient Name", "amount": "Amount with unit", "category": "Category"}}
      ],
      "steps": ["Step 1 instruction", "Step 2 instruction"]
    }}
  ]
}}

For images, use appropriate food images from Unsplash with realistic URLs.
Categorize every ingredient in exactly one of these categories: {categories}."""


class RecipeGenerator:
    """Talks to the LLM on behalf of the chat."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4000,
        temperature: float = 0.7,
    ):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def _complete(self, system: str, prompt: str, max_tokens: int) -> str:
        """Single system + user call; returns the answer text."""
        if self.provider.is_null:
            raise RecipeGenerationError(NO_MODEL_MESSAGE)

        start = time.time()
        try:
            response = await self.provider.create_message(
                model=self.model,
                max_tokens=max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except LLMProviderError as e:
            raise RecipeGenerationError(str(e)) from e

        content = response_text(response)
        logger.info(f"[LLM] {self.model} answered in {time.time() - start:.2f}s ({len(content)} chars)")
        if not content.strip():
            raise RecipeFormatError("Empty response from model")
        return content

    async def classify_cooking_related(self, text: str) -> TopicCheck:
        """
        Decide whether a chat message is about cooking.

        Without a model every message is accepted.

        Raises:
            RecipeGenerationError: provider failure or malformed answer
        """
        if self.provider.is_null:
            return TopicCheck(is_cooking_related=True)

        content = await self._complete(CLASSIFY_SYSTEM_PROMPT, text, max_tokens=200)
        data = extract_json(content)

        if not isinstance(data, dict) or "isCookingRelated" not in data:
            raise RecipeFormatError("Classification answer lacks 'isCookingRelated'")

        check = TopicCheck(
            is_cooking_related=bool(data["isCookingRelated"]),
            message=data.get("message") or None,
        )
        logger.debug(f"Topic check for '{text[:50]}': {check}")
        return check

    async def generate_recipes(
        self,
        request: str,
        count: int,
        servings: int,
        preferences: Optional[UserPreferences] = None,
    ) -> GenerationResult:
        """
        Generate recipes for a free-text request.

        Args:
            request: What the user wants to cook
            count: Number of recipes
            servings: Portions per recipe
            preferences: Stored dietary profile

        Returns:
            GenerationResult; every recipe gets a fresh id

        Raises:
            RecipeFormatError: answer is not JSON or has no 'recipes' array
            RecipeGenerationError: provider failure
        """
        logger.info(f"Generating {count} recipe(s) x {servings} servings for '{request}'")
        prompt = build_recipe_prompt(request, count, servings, preferences)
        content = await self._complete(GENERATE_SYSTEM_PROMPT, prompt, max_tokens=self.max_tokens)

        data = extract_json(content)
        if not isinstance(data, dict) or not isinstance(data.get("recipes"), list):
            raise RecipeFormatError("Model response has no 'recipes' array")

        recipes = []
        for entry in data["recipes"]:
            if not isinstance(entry, dict):
                raise RecipeFormatError(f"Unexpected recipe entry: {entry!r}")
            try:
                recipe = Recipe.from_dict(entry)
            except (TypeError, ValueError, AttributeError, KeyError) as e:
                raise RecipeFormatError(f"Malformed recipe entry: {e}") from e
            # Model ids are per-answer ordinals ("1", "2", ...)
            recipe.id = generate_id()
            recipes.append(recipe)

        return GenerationResult(recipes=recipes, raw=data)

    async def extract_preferences(self, text: str) -> UserPreferences:
        """
        Turn a free-text answer into a dietary profile.

        Raises:
            RecipeGenerationError: provider failure or malformed answer
        """
        content = await self._complete(PREFERENCES_SYSTEM_PROMPT, text, max_tokens=300)
        data = extract_json(content)

        if not isinstance(data, dict) or not any(t in data for t in PREFERENCE_TYPES):
            raise RecipeFormatError("Preference answer has none of the expected keys")

        return UserPreferences.from_dict(data)
