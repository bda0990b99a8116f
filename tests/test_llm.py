"""Unit tests for llm.py."""

import pytest

from prompt_lab.llm import action_cost, estimate_cost, estimate_tokens, format_cost, strip_thinking


class TestTokensAndCost:
    """Tests for token estimates and pricing."""

    @pytest.mark.parametrize("text,expected", [("", 0), ("abc", 1), ("abcd", 1), ("abcde", 2), (None, 0)])
    def test_estimate_tokens(self, text, expected):
        assert estimate_tokens(text) == expected

    def test_action_cost_uses_input_rate(self):
        assert action_cost(2500) == pytest.approx(0.00025)
        assert action_cost(0) == 0

    def test_estimate_cost_split_rates(self):
        assert estimate_cost(1000, 1000) == pytest.approx(0.0005)

    def test_format_cost(self):
        assert format_cost(0.000045) == "$0.000045"
        assert format_cost(None) == "$0.000000"


class TestStripThinking:
    """Tests for removing reasoning blocks."""

    def test_removes_block(self):
        assert strip_thinking("<think>\nplan\n</think>\nAnswer") == "Answer"

    def test_keeps_text_without_block(self):
        assert strip_thinking("Answer") == "Answer"

    def test_only_thinking_returns_input(self):
        assert strip_thinking("<think>x</think>") == "<think>x</think>"
