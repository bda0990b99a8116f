"""
OpenAI-compatible provider implementation.

Supports OpenAI and any OpenAI-compatible endpoint (Ollama, LM Studio,
OpenRouter, vLLM, ...) through the async client.
"""

import json
import logging
import math
import random
from typing import Any, Dict, List, Optional, Tuple

from openai import AsyncOpenAI

from .base import (
    AIProvider,
    AIResponse,
    EvaluationResult,
    ProviderError,
    AuthenticationError,
    ProviderConnectionError,
    ModelNotFoundError,
    RateLimitError,
    ResponseParseError,
)
from ..llm import estimate_tokens, strip_thinking
from ..seed import FUN_PROMPTS

log = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
ADVANCED_MODEL = "gpt-4o"

EVALUATE_SYSTEM_PROMPT = """You are an expert AI Prompt Engineer.
Analyze the user's prompt.
Provide a score from 1-10 based on clarity, context, and constraints.
Provide concise feedback on how to improve it.

Return JSON format: { "score": number, "feedback": "string" }"""

ENHANCE_SYSTEM_PROMPT = (
    "You are a helpful assistant that rewrites prompts to be more effective, detailed, "
    "and robust using prompt engineering best practices. Maintain the original intent."
)

CODE_PLAN_SYSTEM_PROMPT = """You are a Senior Software Architect.
Create a detailed technical implementation plan for the user's app idea.
Include:
1. High-level Architecture
2. Tech Stack Recommendations
3. Database Schema (rough draft)
4. Key API Endpoints
5. Step-by-step implementation strategy.

Format with Markdown."""

FUN_PROMPT_REQUEST = (
    "Generate one creative, funny, or thought-provoking prompt for an LLM. "
    "Return ONLY the prompt text."
)
FUN_PROMPT_EMPTY = "Tell me a joke."
FUN_PROMPT_FALLBACK = "Explain gravity to a chicken."


def parse_evaluation(text: str) -> Tuple[Optional[int], str]:
    """
    Parse ``{"score": ..., "feedback": ...}`` out of a model reply.

    Returns:
        (score or None when absent, feedback)

    Raises:
        ResponseParseError: If no JSON object or a non-numeric score is found
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ResponseParseError(f"Evaluation reply is not JSON: {text[:200]!r}")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Evaluation reply is not valid JSON: {e}") from e

    raw_score = data.get("score")
    score = None
    if raw_score is not None:
        try:
            value = float(raw_score)
        except (TypeError, ValueError) as e:
            raise ResponseParseError(f"Evaluation score is not a number: {raw_score!r}") from e
        if not math.isfinite(value):
            raise ResponseParseError(f"Evaluation score is not finite: {raw_score!r}")
        score = max(0, min(10, round(value)))

    feedback = data.get("feedback") or "No feedback generated."
    return score, str(feedback)


class OpenAIProvider(AIProvider):
    """Provider implementation for OpenAI and OpenAI-compatible APIs."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key (use "not-needed" for local providers)
            base_url: Custom base URL (None for OpenAI default)
            **kwargs: ``model``, ``advanced_model``, ``timeout``
        """
        super().__init__(api_key, base_url, **kwargs)
        self.model = kwargs.get("model") or DEFAULT_MODEL
        self.advanced_model = kwargs.get("advanced_model") or ADVANCED_MODEL
        timeout = kwargs.get("timeout")

        client_kwargs: Dict[str, Any] = {"api_key": self.api_key}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        if timeout:
            client_kwargs["timeout"] = float(timeout)
        self.client = AsyncOpenAI(**client_kwargs)

    async def _chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        **options: Any,
    ) -> Tuple[str, Optional[int], str]:
        """Run one chat completion; returns (content, total_tokens, model)."""
        try:
            response = await self.client.chat.completions.create(model=model, messages=messages, **options)
        except Exception as e:
            raise self._classify_error(e, model) from e

        try:
            content = response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as e:
            raise ResponseParseError(f"Malformed completion from {model}: {e}") from e
        usage = getattr(response, "usage", None)
        total_tokens = getattr(usage, "total_tokens", None) if usage else None
        return content, total_tokens, getattr(response, "model", None) or model

    def _classify_error(self, error: Exception, model: str) -> ProviderError:
        error_msg = str(error).lower()

        if "model" in error_msg and ("not found" in error_msg or "does not exist" in error_msg):
            return ModelNotFoundError(f"Model '{model}' not found: {error}")
        elif "401" in error_msg or "unauthorized" in error_msg:
            return AuthenticationError(f"Invalid API key: {error}")
        elif "403" in error_msg or "forbidden" in error_msg:
            return AuthenticationError(f"Access forbidden - check API key permissions: {error}")
        elif "429" in error_msg or "rate limit" in error_msg:
            return RateLimitError(f"Rate limit exceeded: {error}")
        elif "connection" in error_msg or "connect" in error_msg or "timed out" in error_msg:
            return ProviderConnectionError(f"Unable to connect to {self.base_url or 'OpenAI API'}: {error}")
        return ProviderError(f"Error calling API: {error}")

    async def evaluate(self, content: str) -> EvaluationResult:
        text, tokens, model = await self._chat(
            self.model,
            [
                {"role": "system", "content": EVALUATE_SYSTEM_PROMPT},
                {"role": "user", "content": content},
            ],
            response_format={"type": "json_object"},
        )
        score, feedback = parse_evaluation(strip_thinking(text))
        return EvaluationResult(
            score=score,
            feedback=feedback,
            tokens=tokens or estimate_tokens(content),
            model=model,
        )

    async def enhance(self, content: str) -> AIResponse:
        text, tokens, model = await self._chat(
            self.model,
            [
                {"role": "system", "content": ENHANCE_SYSTEM_PROMPT},
                {"role": "user", "content": content},
            ],
        )
        return AIResponse(text=strip_thinking(text), tokens=tokens or 0, model=model)

    async def code_plan(self, idea: str) -> AIResponse:
        # planning gets the stronger model
        text, tokens, model = await self._chat(
            self.advanced_model,
            [
                {"role": "system", "content": CODE_PLAN_SYSTEM_PROMPT},
                {"role": "user", "content": idea},
            ],
        )
        return AIResponse(text=strip_thinking(text), tokens=tokens or 0, model=model)

    async def fun_prompt(self) -> str:
        example = random.choice(FUN_PROMPTS)
        try:
            text, _, _ = await self._chat(
                self.model,
                [{"role": "user", "content": f"{FUN_PROMPT_REQUEST}\n\nFor example: {example}"}],
                temperature=1.2,
            )
        except ProviderError as e:
            log.warning("Fun prompt request failed, using fallback: %s", e)
            return FUN_PROMPT_FALLBACK
        return strip_thinking(text).strip() or FUN_PROMPT_EMPTY

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        if self.base_url:
            url = self.base_url.lower()
            if "ollama" in url or "localhost:11434" in url:
                return "Ollama"
            elif "lmstudio" in url or "localhost:1234" in url:
                return "LM Studio"
            elif "openrouter" in url:
                return "OpenRouter"
            elif "vllm" in url or "localhost:8000" in url:
                return "vLLM"
            else:
                return "Custom OpenAI-compatible"
        else:
            return "OpenAI"
