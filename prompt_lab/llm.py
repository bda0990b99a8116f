"""Token and cost helpers shared by providers and the orchestrator."""

import math
import re
from typing import Optional

# Flat demo rates per 1K tokens (USD)
COST_PER_1K_INPUT = 0.0001
COST_PER_1K_OUTPUT = 0.0004

_THINK_PATTERN = re.compile(r"<think>(.*?)</think>", re.DOTALL)


def estimate_tokens(text: str) -> int:
    """Rough estimate of tokens (4 chars ≈ 1 token, rounded up)."""
    return math.ceil(len(text or "") / 4)


def action_cost(tokens: int, rate_per_1k: float = COST_PER_1K_INPUT) -> float:
    """Cost recorded against a prompt: every token billed at the input rate."""
    return (tokens / 1000) * rate_per_1k


def estimate_cost(prompt_tokens: int, completion_tokens: int) -> float:
    """Split-rate estimate using separate input and output pricing."""
    return (prompt_tokens / 1000 * COST_PER_1K_INPUT) + (completion_tokens / 1000 * COST_PER_1K_OUTPUT)


def format_cost(cost: Optional[float]) -> str:
    return f"${(cost or 0):.6f}"


def strip_thinking(content: str) -> str:
    """
    Drop <think>...</think> sections emitted by reasoning models.

    Returns the original text when stripping would leave nothing.
    """
    if not content:
        return content
    stripped = _THINK_PATTERN.sub("", content).strip()
    return stripped if stripped else content
