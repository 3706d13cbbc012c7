"""
Chatbot modules - message types, input parsing and progress simulation.
"""

from recipe_planner.chatbot_modules.input_parser import (
    RECIPE_COUNT_RANGE,
    SERVINGS_RANGE,
    is_custom_request,
    parse_recipe_count,
    parse_servings,
)
from recipe_planner.chatbot_modules.messages import (
    ActionKind,
    ActionMessage,
    GeneratingMessage,
    Message,
    MessageKind,
    OptionKind,
    OptionsMessage,
    PlainMessage,
)
from recipe_planner.chatbot_modules.progress import (
    DONE_STAGE,
    ERROR_STAGE,
    PROGRESS_STAGES,
    expected_duration,
    run_progress,
)

__all__ = [
    "RECIPE_COUNT_RANGE",
    "SERVINGS_RANGE",
    "is_custom_request",
    "parse_recipe_count",
    "parse_servings",
    "ActionKind",
    "ActionMessage",
    "GeneratingMessage",
    "Message",
    "MessageKind",
    "OptionKind",
    "OptionsMessage",
    "PlainMessage",
    "DONE_STAGE",
    "ERROR_STAGE",
    "PROGRESS_STAGES",
    "expected_duration",
    "run_progress",
]
