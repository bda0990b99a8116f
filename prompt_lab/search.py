"""Filter/search pipeline that derives the visible prompt list."""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import Prompt


@dataclass(frozen=True)
class FilterCriteria:
    """
    Navigation and search state.

    Favorites mode takes precedence over a category selection. Category
    matching is exact: prompts in child categories are not included.
    """
    favorites_only: bool = False
    category_id: Optional[str] = None
    search: str = ""


def matches_search(prompt: Prompt, query: str) -> bool:
    """Case-insensitive substring match on title or content."""
    q = query.lower()
    return q in prompt.title.lower() or q in prompt.content.lower()


def filter_prompts(prompts: Iterable[Prompt], criteria: FilterCriteria) -> List[Prompt]:
    """Return the visible prompts, newest ``updated_at`` first (stable)."""
    result = list(prompts)

    if criteria.favorites_only:
        result = [p for p in result if p.is_favorite]
    elif criteria.category_id:
        result = [p for p in result if p.category_id == criteria.category_id]

    if criteria.search:
        result = [p for p in result if matches_search(p, criteria.search)]

    # sorted() is stable with reverse=True, so ties keep repository order
    return sorted(result, key=lambda p: p.updated_at, reverse=True)
