"""
Chat transcript messages.

A message is one of four kinds: plain text, an options prompt, the in-flight
generating message or an action affordance. Every kind carries a text and a
role so a renderer can always fall back to showing the text.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from recipe_planner.data.models import generate_id


class MessageKind(str, Enum):
    PLAIN = "plain"
    OPTIONS = "options"
    GENERATING = "generating"
    ACTION = "action"


class OptionKind(str, Enum):
    RECIPE_COUNT = "recipe_count"
    SERVINGS = "servings"
    SURPRISE_ME = "surprise_me"


class ActionKind(str, Enum):
    ADD_TO_SHOPPING_LIST = "add_to_shopping_list"
    ADD_TO_WEEK_PLAN = "add_to_week_plan"
    START_COOKING = "start_cooking"
    OPEN_SHOPPING_LIST = "open_shopping_list"


# Choices offered with each options prompt
OPTION_CHOICES = {
    OptionKind.RECIPE_COUNT: [2, 3, 4, 5],
    OptionKind.SERVINGS: [2, 3, 4, "custom"],
    OptionKind.SURPRISE_ME: ["surprise_me"],
}


@dataclass
class Message:
    """Base transcript entry."""
    text: str
    role: str = "assistant"
    id: str = field(default_factory=generate_id)
    timestamp: float = field(default_factory=time.time)

    kind = MessageKind.PLAIN

    @property
    def is_user(self) -> bool:
        return self.role == "user"

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "role": self.role,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass
class PlainMessage(Message):
    kind = MessageKind.PLAIN


@dataclass
class OptionsMessage(Message):
    option_kind: OptionKind = OptionKind.RECIPE_COUNT

    kind = MessageKind.OPTIONS

    @property
    def choices(self) -> List:
        return OPTION_CHOICES[self.option_kind]

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["optionKind"] = self.option_kind.value
        data["choices"] = list(self.choices)
        return data


@dataclass
class GeneratingMessage(Message):
    progress_stage: str = ""
    progress_percent: int = 0
    is_generating: bool = True

    kind = MessageKind.GENERATING

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data.update({
            "progressStage": self.progress_stage,
            "progressPercent": self.progress_percent,
            "isGenerating": self.is_generating,
        })
        return data


@dataclass
class ActionMessage(Message):
    actions: List[ActionKind] = field(default_factory=list)
    recipe_ids: List[str] = field(default_factory=list)

    kind = MessageKind.ACTION

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["actions"] = [a.value for a in self.actions]
        data["recipeIds"] = list(self.recipe_ids)
        return data


def user_message(text: str) -> PlainMessage:
    return PlainMessage(text=text, role="user")


def assistant_message(text: str, option_kind: Optional[OptionKind] = None) -> Message:
    """Plain assistant text, or an options prompt when option_kind is given."""
    if option_kind is None:
        return PlainMessage(text=text)
    return OptionsMessage(text=text, option_kind=option_kind)
