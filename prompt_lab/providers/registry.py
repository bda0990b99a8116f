"""
Provider registry and factory for creating AI provider instances.

Without credentials the factory hands out the deterministic mock provider,
so the workspace stays usable offline.
"""

import logging
from typing import Dict, List, Optional, Type

from .base import AIProvider
from .mock import MockProvider
from .openai import OpenAIProvider

log = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry for AI provider implementations."""

    def __init__(self):
        self._providers: Dict[str, Type[AIProvider]] = {}
        self._register_default_providers()

    def _register_default_providers(self):
        # All OpenAI-compatible providers use the same implementation
        for name in ("openai", "ollama", "lm_studio", "openrouter", "vllm", "custom"):
            self.register(name, OpenAIProvider)
        self.register("mock", MockProvider)

    def register(self, name: str, provider_class: Type[AIProvider]):
        """
        Register a provider implementation.

        Args:
            name: Unique name for the provider (lowercase, snake_case)
            provider_class: Provider class that inherits from AIProvider
        """
        if not issubclass(provider_class, AIProvider):
            raise ValueError("Provider class must inherit from AIProvider")

        self._providers[self._normalize_provider_name(name)] = provider_class

    def get_provider_class(self, name: str) -> Optional[Type[AIProvider]]:
        return self._providers.get(self._normalize_provider_name(name))

    def create_provider(
        self,
        provider_name: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs
    ) -> AIProvider:
        """
        Create a provider instance.

        Falls back to MockProvider when neither an API key nor a base URL is
        given.

        Raises:
            ValueError: If provider name is not registered
        """
        if not api_key and not base_url:
            log.info("No provider credentials configured; using mock responses")
            return MockProvider()

        provider_class = self.get_provider_class(provider_name)
        if not provider_class:
            raise ValueError(
                f"Unknown provider '{provider_name}'. "
                f"Available providers: {', '.join(self.list_providers())}"
            )

        return provider_class(api_key=api_key, base_url=base_url, **kwargs)

    def _normalize_provider_name(self, name: str) -> str:
        """
        Normalize provider name to registry key format.

        e.g. "LM Studio" -> "lm_studio", "OpenRouter" -> "openrouter"
        """
        normalized = name.lower().replace(" ", "_").replace("-", "_")

        if "lmstudio" in normalized or "lm_studio" in normalized:
            return "lm_studio"
        elif "openrouter" in normalized:
            return "openrouter"
        elif "vllm" in normalized:
            return "vllm"

        return normalized

    def list_providers(self) -> List[str]:
        return sorted(self._providers.keys())


_global_registry = ProviderRegistry()


def get_provider_registry() -> ProviderRegistry:
    return _global_registry


def create_provider(settings) -> AIProvider:
    """
    Create the provider described by application settings.

    Args:
        settings: AppSettings instance
    """
    return _global_registry.create_provider(
        provider_name=settings.provider_name,
        api_key=settings.openai_api_key or None,
        base_url=settings.get_base_url_or_none(),
        model=settings.default_model,
        advanced_model=settings.advanced_model,
        timeout=settings.request_timeout,
    )
