"""
Base provider interface for AI actions.

Defines the abstract interface that every AI provider adapter must implement.
Each operation maps 1:1 to an AIActionType.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class AIResponse:
    """Generated text plus the tokens it cost."""
    text: str
    tokens: int = 0
    model: Optional[str] = None


@dataclass
class EvaluationResult:
    """Result of a prompt evaluation."""
    score: Optional[int]
    feedback: str
    tokens: int = 0
    model: Optional[str] = None


class AIProvider(ABC):
    """
    Abstract base class for AI provider adapters.

    All operations are coroutines; they are the only suspension points of an
    AI action.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, **kwargs):
        """
        Initialize the provider.

        Args:
            api_key: API key for authentication (may be None for local providers)
            base_url: Custom base URL for the API
            **kwargs: Additional provider-specific configuration
        """
        self.api_key = api_key or "not-needed"
        self.base_url = base_url
        self.config = kwargs

    @abstractmethod
    async def evaluate(self, content: str) -> EvaluationResult:
        """
        Score a prompt from 1 to 10 and explain how to improve it.

        Args:
            content: Prompt text to evaluate

        Returns:
            EvaluationResult with score, feedback and token usage

        Raises:
            ProviderError: If the request fails or the reply cannot be parsed
        """
        pass

    @abstractmethod
    async def enhance(self, content: str) -> AIResponse:
        """
        Rewrite a prompt to be more effective while keeping its intent.

        Raises:
            ProviderError: If the request fails
        """
        pass

    @abstractmethod
    async def code_plan(self, idea: str) -> AIResponse:
        """
        Produce a technical implementation plan for an app idea.

        Raises:
            ProviderError: If the request fails
        """
        pass

    @abstractmethod
    async def fun_prompt(self) -> str:
        """Return one creative prompt. Implementations should not raise."""
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the provider (e.g., 'OpenAI', 'Mock')."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url})"


class ProviderError(Exception):
    """Base exception for provider-related errors."""
    pass


class AuthenticationError(ProviderError):
    """Raised when authentication fails."""
    pass


class ProviderConnectionError(ProviderError):
    """Raised when connection to provider fails."""
    pass


class ModelNotFoundError(ProviderError):
    """Raised when requested model is not available."""
    pass


class RateLimitError(ProviderError):
    """Raised when rate limit is exceeded."""
    pass


class ResponseParseError(ProviderError):
    """Raised when the provider reply is not in the expected shape."""
    pass
