"""
Deterministic provider used when no credentials are configured.

Keeps every AI action usable offline and in tests.
"""

from .base import AIProvider, AIResponse, EvaluationResult
from ..llm import estimate_tokens

MOCK_MODEL = "mock"
MOCK_FEEDBACK = (
    "API Key missing. This is a mock evaluation. The prompt is clear but could be "
    "more specific regarding the desired output format."
)


class MockProvider(AIProvider):
    """Canned responses for each AI action."""

    async def evaluate(self, content: str) -> EvaluationResult:
        return EvaluationResult(score=7, feedback=MOCK_FEEDBACK, tokens=estimate_tokens(content), model=MOCK_MODEL)

    async def enhance(self, content: str) -> AIResponse:
        return AIResponse(text=f"API Key Missing. Mock Enhancement: {content} [Enhanced]", tokens=10, model=MOCK_MODEL)

    async def code_plan(self, idea: str) -> AIResponse:
        return AIResponse(text=f"API Key Missing. Mock Plan for: {idea}", tokens=20, model=MOCK_MODEL)

    async def fun_prompt(self) -> str:
        return "Write a haiku about a missing API Key."

    @property
    def provider_name(self) -> str:
        return "Mock"
