"""
AI action orchestrator.

Runs one AI action at a time against a prompt: dispatches to the provider,
times the call, derives token/cost metrics and merges them into the prompt's
metadata through the repository.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .errors import AlreadyInProgressError
from .llm import action_cost
from .models import AIActionType, PromptMetadata
from .providers.base import AIProvider, ProviderError
from .repository import PromptRepository

log = logging.getLogger(__name__)

FUN_PROMPT_TITLE = "A Fun Random Prompt"
FAILURE_NOTICE = "AI Operation failed. Check logs."


class OrchestratorState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class EditorBuffer:
    """Transient title/content being edited; not persisted until saved."""
    title: str = ""
    content: str = ""
    is_editing: bool = False


@dataclass
class ActionResult:
    """Text shown in the result panel after an action."""
    action: AIActionType
    text: str

    @property
    def heading(self) -> str:
        return f"{self.action.value.replace('_', ' ')} Result"


@dataclass
class ActionOutcome:
    """How an invocation ended."""
    action: AIActionType
    state: OrchestratorState
    result: Optional[ActionResult] = None
    metadata: Optional[PromptMetadata] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == OrchestratorState.SUCCEEDED


class AIActionOrchestrator:
    """
    Single-flight AI action runner for a workspace.

    A second ``invoke`` while one is loading raises AlreadyInProgressError
    instead of queueing.
    """

    def __init__(
        self,
        repository: PromptRepository,
        provider: AIProvider,
        timer: Optional[Callable[[], float]] = None,
    ):
        self.repository = repository
        self.provider = provider
        self.timer = timer or time.perf_counter
        self._state = OrchestratorState.IDLE

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state == OrchestratorState.LOADING

    async def invoke(
        self,
        action: AIActionType,
        prompt_id: str,
        content: str,
        editor: Optional[EditorBuffer] = None,
    ) -> ActionOutcome:
        """
        Run ``action`` for ``prompt_id`` using ``content`` as input.

        Args:
            action: Which AI action to run
            prompt_id: Prompt that receives the metrics
            content: Text sent to the provider (ignored by FUN_PROMPT)
            editor: Buffer that FUN_PROMPT writes into

        Returns:
            ActionOutcome in SUCCEEDED or FAILED state

        Raises:
            AlreadyInProgressError: If another action is loading
        """
        action = AIActionType(action)
        if self._state == OrchestratorState.LOADING:
            raise AlreadyInProgressError(f"Cannot start {action.value}: another AI action is running")

        self._state = OrchestratorState.LOADING
        try:
            return await self._run(action, prompt_id, content, editor)
        except ProviderError as e:
            log.exception("AI action %s failed for prompt %s: %s", action.value, prompt_id, e)
            return ActionOutcome(action=action, state=OrchestratorState.FAILED, error=FAILURE_NOTICE)
        finally:
            self._state = OrchestratorState.IDLE

    async def _run(
        self,
        action: AIActionType,
        prompt_id: str,
        content: str,
        editor: Optional[EditorBuffer],
    ) -> ActionOutcome:
        start = self.timer()
        score = None
        feedback = None
        model = None

        if action == AIActionType.FUN_PROMPT:
            text = await self.provider.fun_prompt()
            if editor is not None:
                editor.title = FUN_PROMPT_TITLE
                editor.content = text
            return ActionOutcome(action=action, state=OrchestratorState.SUCCEEDED)

        if action == AIActionType.EVALUATE:
            evaluation = await self.provider.evaluate(content)
            text = f"Score: {evaluation.score}/10\n\nFeedback: {evaluation.feedback}"
            tokens = evaluation.tokens
            score, feedback, model = evaluation.score, evaluation.feedback, evaluation.model
        elif action == AIActionType.ENHANCE:
            response = await self.provider.enhance(content)
            text, tokens, model = response.text, response.tokens, response.model
        else:
            response = await self.provider.code_plan(content)
            text, tokens, model = response.text, response.tokens, response.model

        end = self.timer()
        tokens = max(0, int(tokens or 0))
        patch = PromptMetadata(
            tokens=tokens,
            estimated_cost=action_cost(tokens),
            runtime_ms=max(0, round((end - start) * 1000)),
            model_used=model,
        )
        if score is not None:
            patch = patch.merged({"score": score, "feedback": feedback})

        updated = self.repository.merge_metadata(prompt_id, patch)
        log.info(
            "AI action %s on %s: tokens=%d cost=%.6f runtime=%sms",
            action.value, prompt_id, tokens, patch.estimated_cost, patch.runtime_ms,
        )
        return ActionOutcome(
            action=action,
            state=OrchestratorState.SUCCEEDED,
            result=ActionResult(action=action, text=text),
            metadata=updated.metadata if updated else None,
        )
