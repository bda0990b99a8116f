"""
Prompt repository.

Owns the authoritative list of prompts for a session. Every mutation updates
the in-memory list and then writes the full list to the ``prompts``
namespace. Operations on unknown ids are silent no-ops: selection changes
racing in-flight AI actions are expected.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .models import Prompt, PromptMetadata
from .seed import initial_prompts
from .storage import PROMPTS_KEY, KeyValueStore

log = logging.getLogger(__name__)

NEW_PROMPT_TITLE = "New Untitled Prompt"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class DeleteResult:
    """Outcome of a delete; ``was_selected`` tells the caller to clear selection."""
    deleted: bool
    was_selected: bool = False


class PromptRepository:
    """Authoritative, write-through set of prompts."""

    def __init__(self, store: KeyValueStore, clock: Optional[Callable[[], int]] = None):
        self.store = store
        self.clock = clock or now_ms
        self._prompts: List[Prompt] = self._load()

    def _load(self) -> List[Prompt]:
        raw = self.store.get(PROMPTS_KEY)
        if raw is None:
            seeded = initial_prompts(self.clock())
            self.store.set(PROMPTS_KEY, [p.to_store() for p in seeded])
            log.info("Seeded %d prompts", len(seeded))
            return seeded
        return [Prompt.model_validate(item) for item in raw]

    def _persist(self) -> None:
        self.store.set(PROMPTS_KEY, [p.to_store() for p in self._prompts])
        log.debug("Saved %d prompts", len(self._prompts))

    def _index_of(self, prompt_id: str) -> Optional[int]:
        for idx, prompt in enumerate(self._prompts):
            if prompt.id == prompt_id:
                return idx
        return None

    def _replace(self, prompt_id: str, **changes: Any) -> Optional[Prompt]:
        idx = self._index_of(prompt_id)
        if idx is None:
            log.debug("Ignoring change to unknown prompt %s", prompt_id)
            return None
        updated = self._prompts[idx].model_copy(update=changes)
        self._prompts[idx] = updated
        self._persist()
        return updated

    def _touch(self, prompt: Prompt) -> int:
        # strictly after the previous update even when the clock has not moved
        return max(self.clock(), prompt.updated_at + 1)

    # ----------------- queries -----------------

    def all(self) -> List[Prompt]:
        return list(self._prompts)

    def get(self, prompt_id: Optional[str]) -> Optional[Prompt]:
        if prompt_id is None:
            return None
        idx = self._index_of(prompt_id)
        return self._prompts[idx] if idx is not None else None

    def __len__(self) -> int:
        return len(self._prompts)

    def __contains__(self, prompt_id: str) -> bool:
        return self._index_of(prompt_id) is not None

    # ----------------- mutations -----------------

    def create(self, category_id: Optional[str] = None) -> Prompt:
        """Create an empty prompt in ``category_id`` and put it first."""
        now = self.clock()
        prompt = Prompt(
            id=uuid.uuid4().hex,
            title=NEW_PROMPT_TITLE,
            content="",
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )
        self._prompts.insert(0, prompt)
        self._persist()
        log.info("Created prompt %s (category=%s)", prompt.id, category_id)
        return prompt

    def update(self, prompt_id: str, title: str, content: str) -> Optional[Prompt]:
        """Replace title and content; bumps ``updated_at``."""
        current = self.get(prompt_id)
        if current is None:
            return None
        return self._replace(prompt_id, title=title, content=content, updated_at=self._touch(current))

    def delete(self, prompt_id: str, selected_id: Optional[str] = None) -> DeleteResult:
        """Remove ``prompt_id``. The caller clears its selection when ``was_selected``."""
        idx = self._index_of(prompt_id)
        if idx is None:
            return DeleteResult(deleted=False)
        del self._prompts[idx]
        # an emptied list is persisted too; only an absent namespace reseeds
        self._persist()
        log.info("Deleted prompt %s (%d left)", prompt_id, len(self._prompts))
        return DeleteResult(deleted=True, was_selected=selected_id == prompt_id)

    def toggle_favorite(self, prompt_id: str) -> Optional[Prompt]:
        """Flip the favorite flag. Not a content change: ``updated_at`` stays."""
        current = self.get(prompt_id)
        if current is None:
            return None
        return self._replace(prompt_id, is_favorite=not current.is_favorite)

    def merge_metadata(self, prompt_id: str, patch: Union[PromptMetadata, Dict[str, Any]]) -> Optional[Prompt]:
        """Shallow-merge ``patch`` into the prompt's metadata; ``updated_at`` stays."""
        current = self.get(prompt_id)
        if current is None:
            log.info("Metadata for unknown prompt %s dropped", prompt_id)
            return None
        return self._replace(prompt_id, metadata=current.metadata.merged(patch))

    def set_tags(self, prompt_id: str, tags: List[str]) -> Optional[Prompt]:
        """Replace tags, dropping blanks and duplicates while keeping order."""
        current = self.get(prompt_id)
        if current is None:
            return None
        cleaned: List[str] = []
        for tag in tags:
            tag = tag.strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return self._replace(prompt_id, tags=cleaned, updated_at=self._touch(current))

    def move(self, prompt_id: str, category_id: Optional[str]) -> Optional[Prompt]:
        """Put the prompt in another category (None = uncategorized)."""
        current = self.get(prompt_id)
        if current is None:
            return None
        return self._replace(prompt_id, category_id=category_id, updated_at=self._touch(current))
