"""
Workspace management.

Ties the repository, category index, filter pipeline and AI orchestrator to a
session, and keeps the navigation, selection and editor state a front end
renders from.
"""

import logging
from typing import Callable, List, Optional

from .categories import CategoryIndex
from .errors import SessionRequiredError
from .models import AIActionType, Category, CategoryNode, ChartDataPoint, Prompt, User
from .orchestrator import ActionOutcome, ActionResult, AIActionOrchestrator, EditorBuffer
from .providers.base import AIProvider
from .repository import PromptRepository
from .search import FilterCriteria, filter_prompts
from .storage import KeyValueStore

log = logging.getLogger(__name__)


class Workspace:
    """
    One user's prompt workspace.

    Created once per process; ``open`` binds it to a session and loads data,
    ``close`` tears the session state down again.
    """

    def __init__(
        self,
        store: KeyValueStore,
        provider: AIProvider,
        clock: Optional[Callable[[], int]] = None,
        timer: Optional[Callable[[], float]] = None,
        select_first_prompt: bool = True,
    ):
        self.store = store
        self.provider = provider
        self.clock = clock
        self.timer = timer
        self.select_first_prompt = select_first_prompt

        self.user: Optional[User] = None
        self._repository: Optional[PromptRepository] = None
        self._categories: Optional[CategoryIndex] = None
        self._orchestrator: Optional[AIActionOrchestrator] = None
        self._reset_view()

    def _reset_view(self) -> None:
        self.criteria = FilterCriteria()
        self.selected_prompt_id: Optional[str] = None
        self.editor = EditorBuffer()
        self.last_result: Optional[ActionResult] = None

    # ----------------- session lifecycle -----------------

    def open(self, user: User) -> None:
        """Load prompts and categories for ``user``."""
        self.user = user
        self._repository = PromptRepository(self.store, clock=self.clock)
        self._categories = CategoryIndex(self.store)
        self._orchestrator = AIActionOrchestrator(self._repository, self.provider, timer=self.timer)
        self._reset_view()
        log.info(
            "Workspace opened for %s: %d prompts, %d categories",
            user.email, len(self._repository), len(self._categories),
        )

        prompts = self._repository.all()
        if prompts and self.select_first_prompt:
            self.select_prompt(prompts[0].id)

    def close(self) -> None:
        self.user = None
        self._repository = None
        self._categories = None
        self._orchestrator = None
        self._reset_view()

    @property
    def is_open(self) -> bool:
        return self.user is not None

    @property
    def repository(self) -> PromptRepository:
        if self._repository is None:
            raise SessionRequiredError("Log in before using the workspace")
        return self._repository

    @property
    def categories(self) -> CategoryIndex:
        if self._categories is None:
            raise SessionRequiredError("Log in before using the workspace")
        return self._categories

    @property
    def orchestrator(self) -> AIActionOrchestrator:
        if self._orchestrator is None:
            raise SessionRequiredError("Log in before using the workspace")
        return self._orchestrator

    # ----------------- navigation -----------------

    def select_category(self, category_id: Optional[str]) -> None:
        """Show one category (None = all prompts); clears favorites and search."""
        self.criteria = FilterCriteria(category_id=category_id)

    def select_favorites(self) -> None:
        self.criteria = FilterCriteria(favorites_only=True, search=self.criteria.search)

    def set_search(self, query: str) -> None:
        self.criteria = FilterCriteria(
            favorites_only=self.criteria.favorites_only,
            category_id=self.criteria.category_id,
            search=query or "",
        )

    def visible_prompts(self) -> List[Prompt]:
        return filter_prompts(self.repository.all(), self.criteria)

    def category_forest(self) -> List[CategoryNode]:
        return self.categories.forest()

    def add_category(self, name: str, parent_id: Optional[str] = None) -> Category:
        return self.categories.add(name, parent_id)

    # ----------------- selection & editor -----------------

    @property
    def active_prompt(self) -> Optional[Prompt]:
        return self.repository.get(self.selected_prompt_id)

    def select_prompt(self, prompt_id: str) -> Optional[Prompt]:
        """Select a prompt and load it into the editor (read-only mode)."""
        prompt = self.repository.get(prompt_id)
        if prompt is None:
            return None
        self.selected_prompt_id = prompt.id
        self.editor = EditorBuffer(title=prompt.title, content=prompt.content)
        self.last_result = None
        return prompt

    def start_editing(self) -> None:
        prompt = self.active_prompt
        if prompt is None:
            return
        self.editor = EditorBuffer(title=prompt.title, content=prompt.content, is_editing=True)

    def cancel_editing(self) -> None:
        self.editor.is_editing = False

    def edit(self, title: str, content: str) -> None:
        self.editor.title = title
        self.editor.content = content

    def save(self) -> Optional[Prompt]:
        """Write the editor buffer to the active prompt."""
        prompt = self.active_prompt
        if prompt is None:
            return None
        saved = self.repository.update(prompt.id, self.editor.title, self.editor.content)
        self.editor.is_editing = False
        return saved

    def apply_result_to_editor(self) -> bool:
        """Copy the last AI result into the editor content."""
        if self.last_result is None:
            return False
        self.editor.content = self.last_result.text
        return True

    # ----------------- prompt operations -----------------

    def create_prompt(self) -> Prompt:
        """New prompt in the current category, selected and in edit mode."""
        prompt = self.repository.create(self.criteria.category_id)
        self.select_prompt(prompt.id)
        self.editor.is_editing = True
        return prompt

    def delete_prompt(self, prompt_id: str) -> bool:
        result = self.repository.delete(prompt_id, selected_id=self.selected_prompt_id)
        if result.was_selected:
            self.selected_prompt_id = None
            self.editor = EditorBuffer()
            self.last_result = None
        return result.deleted

    def toggle_favorite(self, prompt_id: str) -> Optional[Prompt]:
        return self.repository.toggle_favorite(prompt_id)

    def set_provider(self, provider: AIProvider) -> None:
        """Swap the AI provider, e.g. after provider settings were saved."""
        self.provider = provider
        if self._orchestrator is not None:
            self._orchestrator.provider = provider
        log.info("Using provider %s", provider.provider_name)

    # ----------------- AI actions -----------------

    @property
    def ai_loading(self) -> bool:
        return self._orchestrator is not None and self._orchestrator.is_loading

    async def run_action(self, action: AIActionType) -> Optional[ActionOutcome]:
        """
        Run an AI action on the active prompt.

        The editor content is sent when non-empty, otherwise the stored
        content. Returns None when no prompt is selected.

        Raises:
            AlreadyInProgressError: If another action is loading
        """
        prompt = self.active_prompt
        if prompt is None:
            return None
        self.last_result = None
        outcome = await self.orchestrator.invoke(
            action,
            prompt.id,
            self.editor.content or prompt.content,
            editor=self.editor,
        )
        if outcome.result is not None and self.selected_prompt_id == prompt.id:
            self.last_result = outcome.result
        return outcome

    def stats(self) -> List[ChartDataPoint]:
        """Chart data for the active prompt (score scaled to 100)."""
        prompt = self.active_prompt
        if prompt is None:
            return []
        meta = prompt.metadata
        return [
            ChartDataPoint(name="Tokens", value=meta.tokens or 0, cost=meta.estimated_cost or 0.0),
            ChartDataPoint(name="Runtime", value=meta.runtime_ms or 0),
            ChartDataPoint(name="Score", value=(meta.score or 0) * 10),
        ]
