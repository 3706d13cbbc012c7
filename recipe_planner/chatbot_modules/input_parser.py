"""
Free-text parsing for the numeric chat steps.

Accepts an exact "Nx" token first ("3x"), then the first signed integer in
the text. Values outside the allowed range are rejected, never clamped.
"""

import re
from typing import Optional, Tuple

RECIPE_COUNT_RANGE = (2, 5)
SERVINGS_RANGE = (1, 20)

# Tokens offered as buttons; typed text may use them verbatim
RECIPE_COUNT_TOKENS = {f"{n}x": n for n in range(2, 6)}
SERVINGS_TOKENS = {f"{n}x": n for n in range(2, 5)}

_INTEGER = re.compile(r"-?\d+")
_CUSTOM = re.compile(r"\b(custom|other|different)\b", re.IGNORECASE)


def parse_number(
    text: str,
    value_range: Tuple[int, int],
    tokens: Optional[dict] = None,
) -> Optional[int]:
    """
    Parse a number from chat input.

    Args:
        text: Raw user input
        value_range: Inclusive (min, max)
        tokens: Optional exact tokens mapping to values

    Returns:
        The value, or None when unparseable or out of range
    """
    if text is None:
        return None
    cleaned = text.strip().lower()
    if not cleaned:
        return None

    if tokens and cleaned in tokens:
        return tokens[cleaned]

    match = _INTEGER.search(cleaned)
    if not match:
        return None

    value = int(match.group())
    low, high = value_range
    if value < low or value > high:
        return None
    return value


def parse_recipe_count(text: str) -> Optional[int]:
    return parse_number(text, RECIPE_COUNT_RANGE, RECIPE_COUNT_TOKENS)


def parse_servings(text: str) -> Optional[int]:
    return parse_number(text, SERVINGS_RANGE, SERVINGS_TOKENS)


def is_custom_request(text: str) -> bool:
    """True when the user asks to type their own servings number."""
    return bool(text) and bool(_CUSTOM.search(text)) and not _INTEGER.search(text)
