"""
Unit tests for chat input parsing.
"""

import pytest

from recipe_planner.chatbot_modules.input_parser import (
    is_custom_request,
    parse_recipe_count,
    parse_servings,
)


class TestParseRecipeCount:
    """Recipe count accepts 2..5."""

    @pytest.mark.parametrize("text,expected", [
        ("2x", 2),
        ("3x", 3),
        ("4x", 4),
        ("5X", 5),
        ("4", 4),
        ("I'd like 3 recipes please", 3),
    ])
    def test_accepted(self, text, expected):
        assert parse_recipe_count(text) == expected

    @pytest.mark.parametrize("text", ["1", "6", "abc", "99", "", "   ", "6x", "-3"])
    def test_rejected(self, text):
        assert parse_recipe_count(text) is None


class TestParseServings:
    """Servings accept 1..20, never clamped."""

    @pytest.mark.parametrize("text,expected", [
        ("2x", 2),
        ("4x", 4),
        ("1", 1),
        ("20", 20),
        ("for 6 people", 6),
    ])
    def test_accepted(self, text, expected):
        assert parse_servings(text) == expected

    @pytest.mark.parametrize("text", ["0", "21", "-5", "99", "lots"])
    def test_rejected(self, text):
        assert parse_servings(text) is None


class TestCustomRequest:
    def test_custom_word(self):
        assert is_custom_request("Custom")
        assert is_custom_request("a different number")

    def test_number_is_not_custom(self):
        assert not is_custom_request("custom 6")
        assert not is_custom_request("4x")
