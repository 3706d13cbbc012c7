#!/usr/bin/env python3
"""
Main orchestrator for the Recipe Planner.

Wires settings, storage, repositories and the LLM client together and
exposes a small command line interface.
"""

import argparse
import asyncio
import logging
from typing import Callable, List, Optional

from recipe_planner.chatbot import RecipeChatbot, Stage
from recipe_planner.chatbot_modules.messages import ActionMessage, GeneratingMessage, Message, OptionsMessage
from recipe_planner.config import Settings, configure_logging
from recipe_planner.data.database import KeyValueStore, SQLiteKeyValueStore
from recipe_planner.data.models import ShoppingList, WeekPlan
from recipe_planner.data.preferences import PreferenceStore
from recipe_planner.data.recipes import RecipeRepository
from recipe_planner.data.shopping_lists import ShoppingListRepository
from recipe_planner.data.week_plans import WeekPlanRepository
from recipe_planner.llm_provider import LLMProvider, get_llm_provider
from recipe_planner.onboarding import format_preferences_summary
from recipe_planner.recipe_generator import RecipeGenerator

logger = logging.getLogger(__name__)


class RecipePlanningAssistant:
    """Main orchestrator: one store, one set of repositories, many chats."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[KeyValueStore] = None,
        provider: Optional[LLMProvider] = None,
        today: Optional[Callable] = None,
    ):
        """
        Initialize the Recipe Planning Assistant.

        Args:
            settings: Runtime settings (defaults to the environment)
            store: Key-value store (defaults to SQLite under settings.data_dir)
            provider: LLM provider (defaults to one built from settings)
            today: Clock for week resolution
        """
        self.settings = settings or Settings.from_env()
        self.store = store or SQLiteKeyValueStore(db_dir=self.settings.data_dir)
        self.provider = provider or get_llm_provider(
            api_key=self.settings.anthropic_api_key,
            use_null=self.settings.use_null_llm,
            timeout=self.settings.llm_timeout,
        )

        self.preferences = PreferenceStore(self.store)
        self.week_plans = WeekPlanRepository(self.store, today=today)
        self.shopping_lists = ShoppingListRepository(
            self.store, merge_policy=self.settings.merge_policy, today=today
        )
        self.recipes = RecipeRepository(self.store, self.week_plans)
        self.generator = RecipeGenerator(
            self.provider,
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )

        logger.info(
            f"Recipe Planning Assistant initialized "
            f"(model={self.settings.model}, null_llm={self.provider.is_null}, "
            f"merge_policy={self.settings.merge_policy.value})"
        )

    def create_chatbot(
        self,
        on_update: Optional[Callable[[List[Message]], None]] = None,
        **kwargs,
    ) -> RecipeChatbot:
        """New chat session sharing this assistant's repositories."""
        return RecipeChatbot(
            generator=self.generator,
            preferences=self.preferences,
            shopping_lists=self.shopping_lists,
            week_plans=self.week_plans,
            recipes=self.recipes,
            settings=self.settings,
            on_update=on_update,
            **kwargs,
        )


# ----------------------------------------------------------------------
# CLI
# ----------------------------------------------------------------------

CHAT_HELP = """Commands:
  /surprise        let me pick a cuisine
  /shop            add the ingredients to this week's shopping list
  /plan [weeks]    put the recipes into a week plan (0 = this week)
  /cook <number>   start cooking a generated recipe
  /quit            leave the chat"""


def format_message(message: Message) -> str:
    """Render a transcript message for the terminal."""
    prefix = "You" if message.is_user else "Assistant"
    text = f"{prefix}: {message.text}"
    if isinstance(message, OptionsMessage):
        choices = " | ".join(str(c) for c in message.choices)
        text += f"\n   [{choices}]"
    elif isinstance(message, ActionMessage):
        text += "\n   [" + " | ".join(a.value for a in message.actions) + "]"
    return text


def format_week_plan(plan: WeekPlan) -> str:
    lines = [f"{plan.name}  ({plan.id})"]
    for day, recipes in plan.days.items():
        titles = ", ".join(r.title for r in recipes) or "-"
        lines.append(f"  {day.capitalize():<10} {titles}")
    return "\n".join(lines)


def format_shopping_list(shopping_list: ShoppingList) -> str:
    lines = [f"{shopping_list.name}  ({shopping_list.id})"]
    if not shopping_list.categories:
        lines.append("  (empty)")
    for category in shopping_list.categories:
        lines.append(f"  {category.category}")
        for item in category.items:
            mark = "x" if item.checked else " "
            amount = f" {item.amount}" if item.amount else ""
            lines.append(f"    [{mark}] {item.name}{amount}")
    return "\n".join(lines)


async def run_chat(assistant: RecipePlanningAssistant, weekly: bool = False):
    """Interactive chat loop."""
    last_stage = {"label": None}

    def show_progress(messages: List[Message]):
        current = next((m for m in reversed(messages) if isinstance(m, GeneratingMessage)), None)
        if current is not None and current.progress_stage != last_stage["label"]:
            last_stage["label"] = current.progress_stage
            if current.progress_stage:
                print(f"   ... {current.progress_stage} ({current.progress_percent}%)")

    chatbot = assistant.create_chatbot(on_update=show_progress)

    print("\n" + "=" * 70)
    print("RECIPE PLANNER - Cooking Assistant")
    print("=" * 70)
    print(CHAT_HELP + "\n")

    for message in await chatbot.start(weekly=weekly):
        print(format_message(message))

    try:
        while True:
            user_input = (await asyncio.to_thread(input, "\nYou: ")).strip()
            if not user_input:
                continue

            command, _, argument = user_input.partition(" ")
            command = command.lower()

            if command in ("/quit", "/exit", "quit", "exit"):
                print("\nAssistant: Goodbye! Happy cooking!")
                break

            try:
                if command == "/surprise":
                    new_messages = await chatbot.surprise_me()
                elif command == "/shop":
                    await chatbot.add_to_shopping_list()
                    new_messages = chatbot.messages[-1:]
                elif command == "/plan":
                    await chatbot.add_to_week_plan(int(argument or 0))
                    new_messages = chatbot.messages[-1:]
                elif command == "/cook":
                    recipes = chatbot.generated_recipes
                    index = int(argument) - 1
                    if not 0 <= index < len(recipes):
                        print("Assistant: Please pick one of the listed recipe numbers.")
                        continue
                    await chatbot.start_cooking(recipes[index].id)
                    new_messages = chatbot.messages[-1:]
                else:
                    new_messages = await chatbot.handle_message(user_input)
            except ValueError as e:
                print(f"Assistant: {e}")
                continue

            for message in new_messages:
                if not message.is_user and not isinstance(message, GeneratingMessage):
                    print(format_message(message))

            if chatbot.is_generating:
                await chatbot.wait_for_generation()
                last_stage["label"] = None
                # Result (or error) message is the last one
                print(format_message(chatbot.messages[-1]))
                if chatbot.stage == Stage.GENERATING:
                    print("\n" + CHAT_HELP)

    except (KeyboardInterrupt, EOFError):
        print("\n\nAssistant: Goodbye!")
    finally:
        await chatbot.close()


async def run_plan(assistant: RecipePlanningAssistant, args):
    if args.new is not None:
        plan = await assistant.week_plans.add_new_week_plan(args.new)
        if plan is None:
            print("Error: could not create week plan")
            return
        print(format_week_plan(plan))
        return

    if args.move:
        week_id, from_day, to_day, recipe_id = args.move
        ok = await assistant.week_plans.move_recipe(week_id, from_day, to_day, recipe_id)
        print("Moved." if ok else "Error: recipe or plan not found")
        return

    plans = await assistant.week_plans.get_week_plans()
    if args.week_id:
        plans = [p for p in plans if p.id == args.week_id]
    if not plans:
        print("No week plans yet.")
    for plan in plans:
        print(format_week_plan(plan) + "\n")


async def run_shop(assistant: RecipePlanningAssistant, args):
    if args.weeks:
        for week in assistant.shopping_lists.get_available_weeks():
            print(f"  {week['id']:<16} {week['name']}")
        return

    if args.new is not None:
        shopping_list = await assistant.shopping_lists.add_new_shopping_list(args.new)
        if shopping_list is None:
            print("Error: could not create shopping list")
            return
        print(format_shopping_list(shopping_list))
        return

    if args.clear:
        ok = await assistant.shopping_lists.delete_all_items(args.clear)
        print("Cleared." if ok else f"Error: shopping list {args.clear} not found")
        return

    lists = await assistant.shopping_lists.get_shopping_lists()
    if args.week_id:
        lists = [s for s in lists if s.id == args.week_id]
    if not lists:
        print("No shopping lists yet.")
    for shopping_list in lists:
        print(format_shopping_list(shopping_list) + "\n")


async def run_prefs(assistant: RecipePlanningAssistant, args):
    if args.add:
        preferences = await assistant.preferences.add_preference(*args.add)
    elif args.remove:
        preferences = await assistant.preferences.remove_preference(*args.remove)
    else:
        preferences = await assistant.preferences.load()

    if preferences is None:
        print("No preferences stored.")
    else:
        print(format_preferences_summary(preferences))


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Recipe Planner - AI cooking assistant")
    parser.add_argument("--env-file", type=str, help="Path to a .env file")
    parser.add_argument("--data-dir", type=str, help="Database directory (overrides DATA_DIR)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    chat_parser = subparsers.add_parser("chat", help="Interactive recipe chat")
    chat_parser.add_argument("--weekly", action="store_true", help="Plan for the whole week")

    plan_parser = subparsers.add_parser("plan", help="Show or edit week plans")
    plan_parser.add_argument("--week-id", type=str, help="Only show this plan")
    plan_parser.add_argument("--new", type=int, metavar="WEEKS_AHEAD", help="Create the plan for a week")
    plan_parser.add_argument(
        "--move", nargs=4, metavar=("WEEK_ID", "FROM_DAY", "TO_DAY", "RECIPE_ID"),
        help="Move a recipe between days",
    )

    shop_parser = subparsers.add_parser("shop", help="Show or edit shopping lists")
    shop_parser.add_argument("--week-id", type=str, help="Only show this list")
    shop_parser.add_argument("--new", type=int, metavar="WEEKS_AHEAD", help="Create the list for a week")
    shop_parser.add_argument("--clear", type=str, metavar="LIST_ID", help="Delete all items of a list")
    shop_parser.add_argument("--weeks", action="store_true", help="Show the weeks a list can be created for")

    prefs_parser = subparsers.add_parser("prefs", help="Show or edit dietary preferences")
    prefs_parser.add_argument("--add", nargs=2, metavar=("TYPE", "VALUE"))
    prefs_parser.add_argument("--remove", nargs=2, metavar=("TYPE", "VALUE"))

    args = parser.parse_args()

    settings = Settings.from_env(args.env_file)
    if args.data_dir:
        settings.data_dir = args.data_dir
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    assistant = RecipePlanningAssistant(settings=settings)

    try:
        if args.command == "chat":
            asyncio.run(run_chat(assistant, weekly=args.weekly))
        elif args.command == "plan":
            asyncio.run(run_plan(assistant, args))
        elif args.command == "shop":
            asyncio.run(run_shop(assistant, args))
        elif args.command == "prefs":
            asyncio.run(run_prefs(assistant, args))
    except ValueError as e:
        print(f"Error: {e}")


if __name__ == "__main__":
    main()
