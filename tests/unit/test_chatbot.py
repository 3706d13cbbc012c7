"""
Unit tests for the recipe chat state machine.
"""

import asyncio
import dataclasses

import pytest

from recipe_planner.chatbot import (
    CLASSIFY_FAILED_MESSAGE,
    INITIAL_MESSAGE,
    RECIPE_REQUEST_MESSAGE,
    SURPRISE_CUISINES,
    RecipeChatbot,
    Stage,
)
from recipe_planner.chatbot_modules.messages import (
    ActionKind,
    ActionMessage,
    GeneratingMessage,
    OptionKind,
    OptionsMessage,
)
from recipe_planner.chatbot_modules.progress import DONE_STAGE, ERROR_STAGE, PROGRESS_STAGES
from recipe_planner.data.models import UserPreferences
from recipe_planner.llm_provider import LLMProviderError

ON_TOPIC = '{"isCookingRelated": true}'


async def _no_sleep(delay):
    await asyncio.sleep(0)


async def _at_servings(chatbot, preference_store, provider, count=3):
    """Drive a chat with a stored profile up to the servings question."""
    await preference_store.save(UserPreferences(favorites=["pasta"]))
    await chatbot.start()
    provider.queue(ON_TOPIC)
    await chatbot.handle_message("something with pasta")
    await chatbot.select_recipe_count(count)
    assert chatbot.stage == Stage.SERVINGS


def _generating(chatbot):
    return next(m for m in reversed(chatbot.messages) if isinstance(m, GeneratingMessage))


class TestStart:
    @pytest.mark.asyncio
    async def test_fresh_install_asks_for_preferences(self, chatbot):
        messages = await chatbot.start()

        assert chatbot.stage == Stage.INITIAL
        assert [m.text for m in messages] == [INITIAL_MESSAGE]

    @pytest.mark.asyncio
    async def test_stored_preferences_skip_initial(self, chatbot, preference_store):
        await preference_store.save(UserPreferences(habits=["vegan"]))

        messages = await chatbot.start()

        assert chatbot.stage == Stage.RECIPE_REQUEST
        assert isinstance(messages[0], OptionsMessage)
        assert messages[0].option_kind == OptionKind.SURPRISE_ME
        assert messages[0].text == RECIPE_REQUEST_MESSAGE

    @pytest.mark.asyncio
    async def test_weekly_prompt(self, chatbot, preference_store):
        await preference_store.save(UserPreferences(habits=["vegan"]))

        messages = await chatbot.start(weekly=True)

        assert "this week" in messages[0].text

    @pytest.mark.asyncio
    async def test_listener_notified(self, chatbot):
        seen = []
        chatbot.on_update = lambda messages: seen.append(len(messages))

        await chatbot.start()
        await chatbot.handle_message("I am vegetarian")

        assert seen[0] == 1
        assert seen == sorted(seen)
        assert seen[-1] == len(chatbot.messages)


class TestInitialStage:
    """Dietary profile collection."""

    @pytest.mark.asyncio
    async def test_ai_extraction_persisted(self, chatbot, provider, preference_store):
        await chatbot.start()
        provider.queue('{"habits": ["vegetarian"], "favorites": [], "allergies": ["nuts"], "trends": []}')

        await chatbot.handle_message("Vegetarian, and I'm allergic to nuts")

        stored = await preference_store.load()
        assert stored.habits == ["vegetarian"]
        assert stored.allergies == ["nuts"]
        assert chatbot.stage == Stage.RECIPE_REQUEST
        assert chatbot.messages[-1].text == RECIPE_REQUEST_MESSAGE

    @pytest.mark.asyncio
    async def test_keyword_fallback_when_model_fails(self, chatbot, provider, preference_store):
        await chatbot.start()
        provider.queue(LLMProviderError("network down"))

        await chatbot.handle_message("no allergies, I like pasta")

        stored = await preference_store.load()
        assert "pasta" in stored.favorites
        assert stored.allergies == []
        assert chatbot.stage == Stage.RECIPE_REQUEST

    @pytest.mark.asyncio
    async def test_blank_input_ignored(self, chatbot):
        await chatbot.start()
        assert await chatbot.handle_message("   ") == []
        assert len(chatbot.messages) == 1


class TestRecipeRequestStage:
    @pytest.mark.asyncio
    async def test_on_topic_moves_to_count(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()
        provider.queue(ON_TOPIC)

        new_messages = await chatbot.handle_message("Something spicy")

        assert chatbot.stage == Stage.RECIPE_COUNT
        assert chatbot.recipe_request == "Something spicy"
        assert new_messages[0].is_user
        assert new_messages[-1].option_kind == OptionKind.RECIPE_COUNT

    @pytest.mark.asyncio
    async def test_off_topic_stays(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()
        provider.queue('{"isCookingRelated": false, "message": "Only cooking, sorry!"}')

        await chatbot.handle_message("What's the weather?")

        assert chatbot.stage == Stage.RECIPE_REQUEST
        assert chatbot.recipe_request is None
        assert chatbot.messages[-1].text == "Only cooking, sorry!"

    @pytest.mark.asyncio
    async def test_classification_failure_is_retryable(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()
        provider.queue("not json at all", ON_TOPIC)

        await chatbot.handle_message("pasta")
        assert chatbot.stage == Stage.RECIPE_REQUEST
        assert chatbot.messages[-1].text == CLASSIFY_FAILED_MESSAGE

        await chatbot.handle_message("pasta")
        assert chatbot.stage == Stage.RECIPE_COUNT

    @pytest.mark.asyncio
    async def test_validation_disabled(self, chatbot, provider, preference_store):
        chatbot.settings = dataclasses.replace(chatbot.settings, validate_cooking_topic=False)
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()

        await chatbot.handle_message("anything")

        assert chatbot.stage == Stage.RECIPE_COUNT
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_surprise_me(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()

        new_messages = await chatbot.surprise_me()

        assert chatbot.stage == Stage.RECIPE_COUNT
        assert new_messages[0].text == "Surprise me"
        cuisine = chatbot.recipe_request.split()[-2]
        assert cuisine in SURPRISE_CUISINES
        assert cuisine in new_messages[-1].text
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_surprise_me_outside_request_stage(self, chatbot):
        await chatbot.start()
        assert await chatbot.surprise_me() == []
        assert chatbot.stage == Stage.INITIAL


class TestCountAndServings:
    @pytest.mark.asyncio
    async def test_invalid_count_reprompts(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()
        provider.queue(ON_TOPIC)
        await chatbot.handle_message("pasta")

        await chatbot.handle_message("99")

        assert chatbot.stage == Stage.RECIPE_COUNT
        assert chatbot.recipe_count is None
        assert chatbot.messages[-1].option_kind == OptionKind.RECIPE_COUNT

        await chatbot.handle_message("4x")
        assert chatbot.recipe_count == 4
        assert chatbot.stage == Stage.SERVINGS

    @pytest.mark.asyncio
    async def test_count_option_out_of_range(self, chatbot, provider, preference_store):
        await preference_store.save(UserPreferences(favorites=["pasta"]))
        await chatbot.start()
        provider.queue(ON_TOPIC)
        await chatbot.handle_message("pasta")

        with pytest.raises(ValueError):
            await chatbot.select_recipe_count(6)

    @pytest.mark.asyncio
    async def test_invalid_servings_reprompts(self, chatbot, provider, preference_store):
        await _at_servings(chatbot, preference_store, provider)

        await chatbot.handle_message("-5")

        assert chatbot.stage == Stage.SERVINGS
        assert chatbot.servings is None
        assert chatbot.messages[-1].option_kind == OptionKind.SERVINGS

    @pytest.mark.asyncio
    async def test_custom_servings(self, chatbot, provider, preference_store, recipes_payload):
        await _at_servings(chatbot, preference_store, provider)

        await chatbot.select_servings("custom")
        assert chatbot.stage == Stage.SERVINGS
        assert "1-20" in chatbot.messages[-1].text

        await chatbot.handle_message("21")
        assert chatbot.stage == Stage.SERVINGS
        assert "1-20" in chatbot.messages[-1].text

        provider.queue(recipes_payload(3, 7))
        await chatbot.handle_message("7")
        await chatbot.wait_for_generation()

        assert chatbot.servings == 7
        assert [r.servings for r in chatbot.generated_recipes] == [7, 7, 7]

    @pytest.mark.asyncio
    async def test_custom_typed(self, chatbot, provider, preference_store):
        await _at_servings(chatbot, preference_store, provider)

        await chatbot.handle_message("custom")

        assert "1-20" in chatbot.messages[-1].text


class TestGeneration:
    """Generation success, failure and retry."""

    @pytest.mark.asyncio
    async def test_success(self, chatbot, provider, preference_store, recipes_payload):
        await _at_servings(chatbot, preference_store, provider, count=3)
        provider.queue(recipes_payload(3, 2))

        await chatbot.select_servings(2)
        assert chatbot.stage == Stage.GENERATING
        await chatbot.wait_for_generation()

        prompt = provider.prompts[-1]
        assert '"something with pasta"' in prompt
        assert "Generate 3 detailed recipes" in prompt
        assert "Favorites: pasta" in prompt

        assert len(chatbot.generated_recipes) == 3
        assert all(r.servings == 2 for r in chatbot.generated_recipes)

        generating = _generating(chatbot)
        assert not generating.is_generating
        assert generating.progress_stage == DONE_STAGE
        assert generating.progress_percent == 100

        result = chatbot.messages[-1]
        assert isinstance(result, ActionMessage)
        assert result.text.startswith("Here are 3 recipes based on your preferences:")
        assert "1. Recipe 1 (25 min)" in result.text
        assert ActionKind.ADD_TO_SHOPPING_LIST in result.actions
        assert result.recipe_ids == [r.id for r in chatbot.generated_recipes]

    @pytest.mark.asyncio
    async def test_failure_returns_to_servings(self, chatbot, provider, preference_store, recipes_payload):
        await _at_servings(chatbot, preference_store, provider, count=2)
        provider.queue("The kitchen is closed.")

        await chatbot.select_servings(4)
        await chatbot.wait_for_generation()

        generating = _generating(chatbot)
        assert generating.progress_stage == ERROR_STAGE
        assert generating.progress_percent == 0
        assert not generating.is_generating
        assert chatbot.stage == Stage.SERVINGS
        assert chatbot.generated_recipes == []
        assert chatbot.messages[-1].text.startswith("There was a problem generating the recipes")

        # Request and count are kept, so a retry only needs servings
        provider.queue(recipes_payload(2, 4))
        await chatbot.select_servings(4)
        await chatbot.wait_for_generation()

        assert chatbot.recipe_count == 2
        assert len(chatbot.generated_recipes) == 2

    @pytest.mark.asyncio
    async def test_empty_recipe_list_is_failure(self, chatbot, provider, preference_store):
        await _at_servings(chatbot, preference_store, provider)
        provider.queue('{"recipes": []}')

        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()

        assert chatbot.stage == Stage.SERVINGS
        assert "No recipes generated" in chatbot.messages[-1].text

    @pytest.mark.asyncio
    async def test_malformed_ingredients_are_retryable(self, chatbot, provider, preference_store, recipes_payload):
        await _at_servings(chatbot, preference_store, provider, count=1)
        provider.queue('{"recipes": [{"title": "Odd", "ingredients": [42], "steps": null}]}')

        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()

        assert chatbot.stage == Stage.SERVINGS
        assert not _generating(chatbot).is_generating
        assert "Malformed recipe entry" in chatbot.messages[-1].text

        provider.queue(recipes_payload(1, 2))
        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()
        assert len(chatbot.generated_recipes) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_leaves_generating(self, chatbot, provider, preference_store, recipes_payload, monkeypatch):
        await _at_servings(chatbot, preference_store, provider, count=2)
        original = chatbot.generator.generate_recipes

        async def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(chatbot.generator, "generate_recipes", broken)

        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()

        generating = _generating(chatbot)
        assert generating.progress_stage == ERROR_STAGE
        assert not chatbot.is_generating
        assert chatbot.stage == Stage.SERVINGS
        assert "Unexpected error (RuntimeError)" in chatbot.messages[-1].text

        monkeypatch.setattr(chatbot.generator, "generate_recipes", original)
        provider.queue(recipes_payload(2, 2))
        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()
        assert len(chatbot.generated_recipes) == 2

    @pytest.mark.asyncio
    async def test_timeout(self, chatbot, provider, preference_store, monkeypatch):
        await _at_servings(chatbot, preference_store, provider)
        chatbot.settings = dataclasses.replace(chatbot.settings, llm_timeout=0.01)

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        monkeypatch.setattr(provider, "create_message", hang)

        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()

        assert chatbot.stage == Stage.SERVINGS
        assert "timed out" in chatbot.messages[-1].text

    @pytest.mark.asyncio
    async def test_messages_ignored_while_generating(self, chatbot, provider, preference_store, recipes_payload, monkeypatch):
        await _at_servings(chatbot, preference_store, provider)
        release = asyncio.Event()
        original = provider.create_message

        async def gated(*args, **kwargs):
            await release.wait()
            return await original(*args, **kwargs)

        monkeypatch.setattr(provider, "create_message", gated)
        provider.queue(recipes_payload(3, 2))

        await chatbot.select_servings(2)
        await asyncio.sleep(0)
        assert chatbot.is_generating

        before = len(chatbot.messages)
        assert await chatbot.handle_message("hello?") == []
        assert len(chatbot.messages) == before

        release.set()
        await chatbot.wait_for_generation()
        assert len(chatbot.generated_recipes) == 3

    @pytest.mark.asyncio
    async def test_progress_runs_beside_the_call(
        self, generator, preference_store, shopping_lists, week_plans, recipe_repository,
        settings, provider, recipes_payload, monkeypatch,
    ):
        chatbot = RecipeChatbot(
            generator=generator,
            preferences=preference_store,
            shopping_lists=shopping_lists,
            week_plans=week_plans,
            recipes=recipe_repository,
            settings=dataclasses.replace(settings, simulate_progress=True),
            sleep=_no_sleep,
        )
        await _at_servings(chatbot, preference_store, provider)

        release = asyncio.Event()
        original = provider.create_message

        async def gated(*args, **kwargs):
            await release.wait()
            return await original(*args, **kwargs)

        monkeypatch.setattr(provider, "create_message", gated)
        provider.queue(recipes_payload(3, 2))

        await chatbot.select_servings(2)
        for _ in range(200):
            await asyncio.sleep(0)

        # The walk ends at the last stage; only the call finishes the message
        generating = _generating(chatbot)
        assert generating.is_generating
        assert generating.progress_stage == PROGRESS_STAGES[-1][0]
        assert generating.progress_percent == 95

        release.set()
        await chatbot.wait_for_generation()
        assert generating.progress_stage == DONE_STAGE
        assert generating.progress_percent == 100

    @pytest.mark.asyncio
    async def test_close_cancels_generation(self, chatbot, provider, preference_store, monkeypatch):
        await _at_servings(chatbot, preference_store, provider)

        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        monkeypatch.setattr(provider, "create_message", hang)
        await chatbot.select_servings(2)
        await asyncio.sleep(0)

        await chatbot.close()

        assert not chatbot.is_generating


class TestActions:
    """Actions on generated recipes."""

    async def _generated(self, chatbot, provider, preference_store, payload):
        await _at_servings(chatbot, preference_store, provider)
        provider.queue(payload)
        await chatbot.select_servings(2)
        await chatbot.wait_for_generation()

    @pytest.mark.asyncio
    async def test_add_to_shopping_list(self, chatbot, provider, preference_store, shopping_lists, recipes_payload):
        await self._generated(chatbot, provider, preference_store, recipes_payload(3, 2))

        shopping_list = await chatbot.add_to_shopping_list()

        assert shopping_list.id == "week-11-2025"
        # Tomatoes shared by all recipes, one spice per recipe
        assert len(shopping_list.get_category("produce").items) == 1
        assert len(shopping_list.get_category("spices").items) == 3
        assert chatbot.messages[-1].actions == [ActionKind.OPEN_SHOPPING_LIST]
        assert (await shopping_lists.get_shopping_list("week-11-2025")).item_count() == 4

    @pytest.mark.asyncio
    async def test_add_to_week_plan(self, chatbot, provider, preference_store, week_plans, recipes_payload):
        await self._generated(chatbot, provider, preference_store, recipes_payload(3, 2))

        plan = await chatbot.add_to_week_plan(weeks_ahead=1)

        assert plan.id == "week-12-2025"
        assert [r.title for r in plan.days["monday"]] == ["Recipe 1"]
        assert [r.title for r in plan.days["wednesday"]] == ["Recipe 3"]
        assert plan.days["thursday"] == []
        assert "3 recipe(s)" in chatbot.messages[-1].text

    @pytest.mark.asyncio
    async def test_start_cooking(self, chatbot, provider, preference_store, recipe_repository, recipes_payload):
        await self._generated(chatbot, provider, preference_store, recipes_payload(2, 2))
        target = chatbot.generated_recipes[1]

        recipe = await chatbot.start_cooking(target.id)

        assert recipe == target
        assert await recipe_repository.get_current_recipe() == target
        assert await chatbot.start_cooking("unknown") is None

    @pytest.mark.asyncio
    async def test_free_text_after_generation_offers_shopping_list(
        self, chatbot, provider, preference_store, recipes_payload
    ):
        await self._generated(chatbot, provider, preference_store, recipes_payload(2, 2))

        new_messages = await chatbot.handle_message("thanks!")

        assert new_messages[-1].actions == [ActionKind.ADD_TO_SHOPPING_LIST]

    @pytest.mark.asyncio
    async def test_actions_without_recipes(self, chatbot):
        await chatbot.start()

        assert await chatbot.add_to_shopping_list() is None
        assert await chatbot.add_to_week_plan() is None
