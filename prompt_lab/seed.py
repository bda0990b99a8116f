"""First-run seed data for an empty workspace."""

import time
from typing import List

from .models import Category, Prompt, PromptMetadata


FUN_PROMPTS = [
    "Explain quantum physics to a 5-year-old using only emojis.",
    "Write a polite resignation letter from a cat to its owner.",
    "Describe the color blue to someone who has been blind their whole life.",
    "You are a medieval knight who has time-traveled to a modern Apple Store. Describe your experience.",
]


def initial_categories() -> List[Category]:
    """Default category tree."""
    return [
        Category(id="cat_1", name="Creative Writing"),
        Category(id="cat_2", name="Coding"),
        Category(id="cat_3", name="Research"),
        Category(id="cat_4", name="Business"),
        Category(id="cat_1_1", name="Fiction", parent_id="cat_1"),
        Category(id="cat_1_2", name="Poetry", parent_id="cat_1"),
        Category(id="cat_2_1", name="React", parent_id="cat_2"),
        Category(id="cat_2_2", name="Python", parent_id="cat_2"),
    ]


def initial_prompts(now_ms: int = None) -> List[Prompt]:
    """Default prompts, timestamped relative to ``now_ms``."""
    now = now_ms if now_ms is not None else int(time.time() * 1000)
    return [
        Prompt(
            id="p_1",
            title="Story Outline for Sci-Fi Novel",
            content=(
                "Write a chapter outline for a science fiction novel set on a water planet "
                "where humanity lives on giant floating cities. The protagonist is a diver "
                "who finds an ancient artifact."
            ),
            category_id="cat_1_1",
            tags=["sci-fi", "outline", "creative"],
            is_favorite=True,
            created_at=now,
            updated_at=now,
            metadata=PromptMetadata(score=8, tokens=45, estimated_cost=0.000045),
        ),
        Prompt(
            id="p_2",
            title="Python Data Processing Function",
            content=(
                "Create a Python function using Pandas to clean a CSV dataset. It should "
                "remove null rows, normalize column names to snake_case, and fill missing "
                "integer values with the median."
            ),
            category_id="cat_2_2",
            tags=["python", "pandas", "coding"],
            is_favorite=True,
            created_at=now - 100000,
            updated_at=now,
            metadata=PromptMetadata(score=9, tokens=38, estimated_cost=0.000038),
        ),
    ]
