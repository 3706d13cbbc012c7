"""
Recipe planning chat.

Drives the conversation that collects a dietary profile, a recipe request,
a recipe count and a servings number, then generates recipes and offers to
put them into the shopping list or the week plan.

Stages: initial -> recipe_request -> recipe_count -> servings -> generating
"""

import asyncio
import contextlib
import logging
import random
from enum import Enum
from typing import Callable, List, Optional, Union

from recipe_planner.chatbot_modules.input_parser import (
    SERVINGS_RANGE,
    RECIPE_COUNT_RANGE,
    is_custom_request,
    parse_recipe_count,
    parse_servings,
)
from recipe_planner.chatbot_modules.messages import (
    ActionKind,
    ActionMessage,
    GeneratingMessage,
    Message,
    OptionKind,
    assistant_message,
    user_message,
)
from recipe_planner.chatbot_modules.progress import (
    DONE_STAGE,
    ERROR_STAGE,
    run_completion,
    run_progress,
)
from recipe_planner.config import Settings
from recipe_planner.data.models import Recipe, ShoppingList, WeekPlan
from recipe_planner.data.preferences import PreferenceStore
from recipe_planner.data.recipes import RecipeRepository
from recipe_planner.data.shopping_lists import ShoppingListRepository
from recipe_planner.data.week_plans import WeekPlanRepository
from recipe_planner.onboarding import analyze_user_input, format_preferences_summary
from recipe_planner.recipe_generator import RecipeGenerationError, RecipeGenerator

logger = logging.getLogger(__name__)

SURPRISE_CUISINES = ["asian", "italian", "mediterranean", "german", "mexican", "vegetarian", "quick"]

INITIAL_MESSAGE = "Before we begin, do you have any special dietary requirements or allergies I should consider?"
RECIPE_REQUEST_MESSAGE = "What do you hunger for today?"
WEEKLY_REQUEST_MESSAGE = "What shall we cook this week? What are you in the mood for?"
RECIPE_COUNT_MESSAGE = "How many recipes would you like to generate?"
RECIPE_COUNT_RETRY_MESSAGE = "Please choose how many recipes I should create (2-5):"
SERVINGS_MESSAGE = "How many servings would you like?"
CUSTOM_SERVINGS_MESSAGE = "Please enter the number of servings per recipe (1-20):"
OFF_TOPIC_MESSAGE = "Sorry, I can only help with cooking and recipes. Please ask me something about food."
CLASSIFY_FAILED_MESSAGE = "Sorry, I couldn't process your message right now. Please try again."
SHOPPING_LIST_OFFER = "Would you like to add the ingredients to your shopping list?"


class Stage(str, Enum):
    INITIAL = "initial"
    RECIPE_REQUEST = "recipe_request"
    RECIPE_COUNT = "recipe_count"
    SERVINGS = "servings"
    GENERATING = "generating"


class RecipeChatbot:
    """One chat session."""

    def __init__(
        self,
        generator: RecipeGenerator,
        preferences: PreferenceStore,
        shopping_lists: ShoppingListRepository,
        week_plans: WeekPlanRepository,
        recipes: RecipeRepository,
        settings: Optional[Settings] = None,
        on_update: Optional[Callable[[List[Message]], None]] = None,
        rng: Optional[random.Random] = None,
        sleep=asyncio.sleep,
    ):
        """
        Args:
            generator: LLM client for classification, extraction and generation
            preferences: Stored dietary profile
            shopping_lists: Shopping list repository
            week_plans: Week plan repository
            recipes: Recipe repository (current recipe pointer)
            settings: Runtime settings
            on_update: Called with the transcript after every change
            rng: Random source for surprise picks and progress jitter
            sleep: Awaitable sleep used by the progress simulation
        """
        self.generator = generator
        self.preferences = preferences
        self.shopping_lists = shopping_lists
        self.week_plans = week_plans
        self.recipes = recipes
        self.settings = settings or Settings()
        self.on_update = on_update
        self.rng = rng or random.Random()
        self._sleep = sleep

        self._messages: List[Message] = []
        self._generation_task: Optional[asyncio.Task] = None
        self._progress_task: Optional[asyncio.Task] = None
        self._reset()

    def _reset(self):
        self._stage = Stage.INITIAL
        self._recipe_request: Optional[str] = None
        self._recipe_count: Optional[int] = None
        self._servings: Optional[int] = None
        self._awaiting_custom_servings = False
        self._generated: List[Recipe] = []
        self._generating_message: Optional[GeneratingMessage] = None
        self._generating_text = ""
        self.weekly = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def generated_recipes(self) -> List[Recipe]:
        return list(self._generated)

    @property
    def recipe_request(self) -> Optional[str]:
        return self._recipe_request

    @property
    def recipe_count(self) -> Optional[int]:
        return self._recipe_count

    @property
    def servings(self) -> Optional[int]:
        return self._servings

    @property
    def is_generating(self) -> bool:
        return self._generation_task is not None and not self._generation_task.done()

    def _notify(self):
        if self.on_update:
            self.on_update(self.messages)

    def _emit(self, message: Message) -> Message:
        self._messages.append(message)
        self._notify()
        return message

    def _ask(self, text: str, option_kind: Optional[OptionKind] = None) -> Message:
        return self._emit(assistant_message(text, option_kind))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def start(self, weekly: bool = False) -> List[Message]:
        """
        Open (or reopen) the chat.

        Skips the dietary question when a profile is already stored.

        Args:
            weekly: Planning for the whole week rather than for today

        Returns:
            The opening transcript
        """
        await self.close()
        self._messages = []
        self._reset()
        self.weekly = weekly

        if await self.preferences.has_preferences():
            self._stage = Stage.RECIPE_REQUEST
            self._ask_recipe_request()
        else:
            self._ask(INITIAL_MESSAGE)

        logger.info(f"Chat started (weekly={weekly}) at stage {self._stage.value}")
        return self.messages

    async def handle_message(self, text: str) -> List[Message]:
        """
        Process free text typed by the user.

        Returns:
            Messages appended by this call (empty when the text was ignored)
        """
        if not text or not text.strip():
            return []
        if self.is_generating:
            logger.debug("Ignoring message while recipes are being generated")
            return []

        before = len(self._messages)
        text = text.strip()
        self._emit(user_message(text))

        if self._stage == Stage.INITIAL:
            await self._handle_preferences(text)
        elif self._stage == Stage.RECIPE_REQUEST:
            if text.lower() in ("surprise me", "surprise me!"):
                self._surprise()
            else:
                await self._handle_recipe_request(text)
        elif self._stage == Stage.RECIPE_COUNT:
            count = parse_recipe_count(text)
            if count is None:
                self._ask(RECIPE_COUNT_RETRY_MESSAGE, OptionKind.RECIPE_COUNT)
            else:
                self._set_recipe_count(count)
        elif self._stage == Stage.SERVINGS:
            self._handle_servings_text(text)
        elif self._generated:
            self._emit(ActionMessage(
                text=SHOPPING_LIST_OFFER,
                actions=[ActionKind.ADD_TO_SHOPPING_LIST],
                recipe_ids=[r.id for r in self._generated],
            ))

        return self._messages[before:]

    async def select_recipe_count(self, count: int) -> List[Message]:
        """Recipe count picked from the offered options."""
        if self._stage != Stage.RECIPE_COUNT or self.is_generating:
            logger.warning(f"Recipe count selected at stage {self._stage.value}, ignoring")
            return []
        low, high = RECIPE_COUNT_RANGE
        if not low <= count <= high:
            raise ValueError(f"Recipe count must be between {low} and {high}, got {count}")

        before = len(self._messages)
        self._emit(user_message(f"{count}x"))
        self._set_recipe_count(count)
        return self._messages[before:]

    async def select_servings(self, servings: Union[int, str]) -> List[Message]:
        """
        Servings picked from the offered options.

        Args:
            servings: A number in [1, 20] or "custom" to type one
        """
        if self._stage != Stage.SERVINGS or self.is_generating:
            logger.warning(f"Servings selected at stage {self._stage.value}, ignoring")
            return []

        before = len(self._messages)
        if servings == "custom":
            self._emit(user_message("Custom"))
            self._awaiting_custom_servings = True
            self._ask(CUSTOM_SERVINGS_MESSAGE)
            return self._messages[before:]

        low, high = SERVINGS_RANGE
        if not isinstance(servings, int) or not low <= servings <= high:
            raise ValueError(f"Servings must be between {low} and {high} or 'custom', got {servings!r}")

        self._emit(user_message(f"{servings}x"))
        self._set_servings(servings)
        return self._messages[before:]

    async def surprise_me(self) -> List[Message]:
        """Pick a random cuisine as the recipe request."""
        if self._stage != Stage.RECIPE_REQUEST:
            logger.warning(f"Surprise me requested at stage {self._stage.value}, ignoring")
            return []

        before = len(self._messages)
        self._emit(user_message("Surprise me"))
        self._surprise()
        return self._messages[before:]

    # ------------------------------------------------------------------
    # Stage handlers
    # ------------------------------------------------------------------

    async def _handle_preferences(self, text: str):
        """First answer of a fresh install: extract and persist the profile."""
        try:
            preferences = await asyncio.wait_for(
                self.generator.extract_preferences(text),
                timeout=self.settings.llm_timeout,
            )
        except (RecipeGenerationError, asyncio.TimeoutError) as e:
            logger.warning(f"Preference extraction failed ({e!r}), using keyword analysis")
            preferences = analyze_user_input(text)

        if not await self.preferences.save(preferences):
            logger.warning("Preferences could not be stored, continuing with this session only")

        self._ask(f"Thanks! I noted your preferences:\n{format_preferences_summary(preferences)}")
        self._stage = Stage.RECIPE_REQUEST
        self._ask_recipe_request()

    def _ask_recipe_request(self):
        text = WEEKLY_REQUEST_MESSAGE if self.weekly else RECIPE_REQUEST_MESSAGE
        self._ask(text, OptionKind.SURPRISE_ME)

    async def _handle_recipe_request(self, text: str):
        if self.settings.validate_cooking_topic:
            try:
                check = await asyncio.wait_for(
                    self.generator.classify_cooking_related(text),
                    timeout=self.settings.llm_timeout,
                )
            except (RecipeGenerationError, asyncio.TimeoutError) as e:
                logger.error(f"Error checking if cooking-related: {e!r}")
                self._ask(CLASSIFY_FAILED_MESSAGE)
                return

            if not check.is_cooking_related:
                logger.info(f"Rejected off-topic request: '{text[:50]}'")
                self._ask(check.message or OFF_TOPIC_MESSAGE)
                return

        self._start_request(text)
        self._ask(f"Great! {RECIPE_COUNT_MESSAGE}", OptionKind.RECIPE_COUNT)

    def _start_request(self, request: str):
        self._recipe_request = request
        self._recipe_count = None
        self._servings = None
        self._generated = []
        self._stage = Stage.RECIPE_COUNT

    def _surprise(self):
        cuisine = self.rng.choice(SURPRISE_CUISINES)
        self._start_request(f"I would like {cuisine} dishes")
        logger.info(f"Surprise pick: {cuisine}")
        self._ask(
            f"I'll surprise you with {cuisine} recipes! How many recipes should I suggest?",
            OptionKind.RECIPE_COUNT,
        )

    def _set_recipe_count(self, count: int):
        self._recipe_count = count
        self._stage = Stage.SERVINGS
        self._awaiting_custom_servings = False
        self._ask(SERVINGS_MESSAGE, OptionKind.SERVINGS)

    def _handle_servings_text(self, text: str):
        if not self._awaiting_custom_servings and is_custom_request(text):
            self._awaiting_custom_servings = True
            self._ask(CUSTOM_SERVINGS_MESSAGE)
            return

        servings = parse_servings(text)
        if servings is not None:
            self._set_servings(servings)
        elif self._awaiting_custom_servings:
            self._ask(CUSTOM_SERVINGS_MESSAGE)
        else:
            self._ask(SERVINGS_MESSAGE, OptionKind.SERVINGS)

    def _set_servings(self, servings: int):
        self._servings = servings
        self._awaiting_custom_servings = False
        self._stage = Stage.GENERATING

        self._generating_text = (
            f"I plan with {servings} servings per recipe and create "
            f"{self._recipe_count} suitable recipes for you..."
        )
        self._generating_message = GeneratingMessage(text=self._generating_text)
        self._emit(self._generating_message)

        self._generation_task = asyncio.create_task(self._generate())

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _update_progress(self, stage: str, percent: float):
        message = self._generating_message
        if message is None or not message.is_generating:
            return
        message.progress_stage = stage
        message.progress_percent = int(round(percent))
        message.text = f"{self._generating_text}\n\n{stage}"
        self._notify()

    async def _stop_progress(self):
        task, self._progress_task = self._progress_task, None
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _generate(self):
        """API task: the only place that finalizes a generation."""
        request, count, servings = self._recipe_request, self._recipe_count, self._servings

        if self.settings.simulate_progress:
            self._progress_task = asyncio.create_task(
                run_progress(self._update_progress, count, rng=self.rng, sleep=self._sleep)
            )

        try:
            preferences = await self.preferences.load()
            result = await asyncio.wait_for(
                self.generator.generate_recipes(request, count, servings, preferences),
                timeout=self.settings.llm_timeout,
            )
            if not result.recipes:
                raise RecipeGenerationError("No recipes generated")
        except asyncio.TimeoutError:
            await self._stop_progress()
            self._fail("The request timed out")
            return
        except RecipeGenerationError as e:
            await self._stop_progress()
            self._fail(str(e) or "Unknown error")
            return
        except asyncio.CancelledError:
            await self._stop_progress()
            raise
        except Exception as e:
            logger.exception(f"Recipe generation failed unexpectedly: {e}")
            await self._stop_progress()
            self._fail(f"Unexpected error ({type(e).__name__})")
            return

        await self._stop_progress()
        if self.settings.simulate_progress:
            await run_completion(self._update_progress, sleep=self._sleep)
        self._succeed(result.recipes)

    def _succeed(self, recipes: List[Recipe]):
        self._generated = recipes

        message = self._generating_message
        message.is_generating = False
        message.progress_stage = DONE_STAGE
        message.progress_percent = 100
        message.text = self._generating_text

        lines = [f"Here are {len(recipes)} recipes based on your preferences:", ""]
        lines.extend(f"{i}. {r.title} ({r.time})" for i, r in enumerate(recipes, 1))
        self._emit(ActionMessage(
            text="\n".join(lines),
            actions=[ActionKind.ADD_TO_SHOPPING_LIST, ActionKind.ADD_TO_WEEK_PLAN, ActionKind.START_COOKING],
            recipe_ids=[r.id for r in recipes],
        ))
        logger.info(f"Generated {len(recipes)} recipe(s) for '{self._recipe_request}'")

    def _fail(self, reason: str):
        logger.error(f"Error generating recipes: {reason}")

        message = self._generating_message
        message.progress_stage = ERROR_STAGE
        message.progress_percent = 0
        message.is_generating = False
        message.text = f"{self._generating_text}\n\n{ERROR_STAGE}"

        # Request and count are kept; picking servings again retries
        self._stage = Stage.SERVINGS
        self._servings = None
        self._ask(
            f"There was a problem generating the recipes: {reason}. "
            f"Choose the servings again to retry.",
            OptionKind.SERVINGS,
        )

    async def wait_for_generation(self):
        """Block until the running generation (if any) has settled."""
        if self._generation_task is not None:
            await self._generation_task

    # ------------------------------------------------------------------
    # Actions on generated recipes
    # ------------------------------------------------------------------

    async def add_to_shopping_list(self, list_id: Optional[str] = None) -> Optional[ShoppingList]:
        """Put all ingredients of the generated recipes on a shopping list."""
        if not self._generated:
            self._ask("There are no recipes to add yet.")
            return None

        ingredients = [i for recipe in self._generated for i in recipe.ingredients]
        shopping_list = await self.shopping_lists.add_to_shopping_list(ingredients, list_id)
        if shopping_list is None:
            self._ask("Sorry, I couldn't update your shopping list. Please try again.")
            return None

        self._emit(ActionMessage(
            text=f"I added the ingredients to your shopping list \"{shopping_list.name}\".",
            actions=[ActionKind.OPEN_SHOPPING_LIST],
        ))
        return shopping_list

    async def add_to_week_plan(self, weeks_ahead: int = 0, wrap: bool = False) -> Optional[WeekPlan]:
        """Spread the generated recipes over a week plan."""
        if not self._generated:
            self._ask("There are no recipes to add yet.")
            return None

        plan = await self.week_plans.add_new_week_plan(weeks_ahead)
        if plan is not None:
            plan = await self.week_plans.add_recipes_to_week_plan(plan.id, self._generated, wrap=wrap)
        if plan is None:
            self._ask("Sorry, I couldn't update your week plan. Please try again.")
            return None

        placed = len(self._generated) if wrap else min(len(self._generated), len(plan.days))
        self._ask(f"I added {placed} recipe(s) to your plan for {plan.name}.")
        return plan

    async def start_cooking(self, recipe_id: str) -> Optional[Recipe]:
        """Mark one generated recipe as the one being cooked."""
        recipe = next((r for r in self._generated if r.id == recipe_id), None)
        if recipe is None:
            logger.warning(f"Recipe {recipe_id} is not part of this chat")
            return None

        if not await self.recipes.set_current_recipe(recipe):
            self._ask("Sorry, I couldn't open that recipe. Please try again.")
            return None
        self._ask(f"Let's cook {recipe.title}!")
        return recipe

    async def close(self):
        """Cancel any running generation."""
        await self._stop_progress()
        task, self._generation_task = self._generation_task, None
        if task and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
