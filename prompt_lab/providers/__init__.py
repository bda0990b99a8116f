"""AI provider adapters."""

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
from .mock import MockProvider
from .openai import OpenAIProvider
from .registry import ProviderRegistry, create_provider, get_provider_registry
