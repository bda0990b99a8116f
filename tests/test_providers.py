"""Unit tests for the provider adapters."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from prompt_lab.config import AppSettings
from prompt_lab.models import AIActionType
from prompt_lab.orchestrator import FAILURE_NOTICE, AIActionOrchestrator, OrchestratorState
from prompt_lab.providers.base import (
    AuthenticationError,
    ProviderConnectionError,
    ProviderError,
    RateLimitError,
    ResponseParseError,
)
from prompt_lab.providers.mock import MOCK_FEEDBACK, MockProvider
from prompt_lab.providers.openai import (
    ADVANCED_MODEL,
    FUN_PROMPT_FALLBACK,
    OpenAIProvider,
    parse_evaluation,
)
from prompt_lab.providers.registry import ProviderRegistry, create_provider
from prompt_lab.repository import PromptRepository


def run(coro):
    return asyncio.run(coro)


def completion(content, total_tokens=None, model="gpt-4o-mini"):
    """Build a chat completion response shaped like the OpenAI SDK's."""
    usage = SimpleNamespace(total_tokens=total_tokens) if total_tokens is not None else None
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage, model=model)


@pytest.fixture
def openai_provider():
    """OpenAIProvider with the async client replaced by a mock."""
    with patch("prompt_lab.providers.openai.AsyncOpenAI") as mock_cls:
        client = Mock()
        client.chat.completions.create = AsyncMock()
        mock_cls.return_value = client
        provider = OpenAIProvider(api_key="test-key", model="gpt-4o-mini", timeout=30)
        yield provider, client, mock_cls


class TestMockProvider:
    """Tests for the offline provider."""

    def test_evaluate(self):
        result = run(MockProvider().evaluate("12345678"))

        assert (result.score, result.feedback, result.tokens) == (7, MOCK_FEEDBACK, 2)

    def test_enhance_and_plan(self):
        provider = MockProvider()

        enhanced = run(provider.enhance("hi"))
        plan = run(provider.code_plan("app"))

        assert enhanced.text == "API Key Missing. Mock Enhancement: hi [Enhanced]"
        assert enhanced.tokens == 10
        assert plan.text == "API Key Missing. Mock Plan for: app"
        assert plan.tokens == 20

    def test_fun_prompt(self):
        assert run(MockProvider().fun_prompt()) == "Write a haiku about a missing API Key."


class TestParseEvaluation:
    """Tests for parsing evaluation replies."""

    def test_plain_json(self):
        assert parse_evaluation('{"score": 8, "feedback": "Nice"}') == (8, "Nice")

    def test_json_wrapped_in_text(self):
        assert parse_evaluation('Sure!\n```json\n{"score": "6.6", "feedback": "ok"}\n```') == (7, "ok")

    def test_missing_fields(self):
        assert parse_evaluation("{}") == (None, "No feedback generated.")

    def test_score_clamped(self):
        assert parse_evaluation('{"score": 14, "feedback": "x"}')[0] == 10

    def test_not_json(self):
        with pytest.raises(ResponseParseError):
            parse_evaluation("I think it is a 7")

    def test_non_numeric_score(self):
        with pytest.raises(ResponseParseError):
            parse_evaluation('{"score": "high"}')

    def test_infinite_score(self):
        with pytest.raises(ResponseParseError):
            parse_evaluation('{"score": 1e400, "feedback": "x"}')


class TestOpenAIProvider:
    """Tests for the OpenAI-compatible adapter."""

    def test_client_options(self, openai_provider):
        _, _, mock_cls = openai_provider

        mock_cls.assert_called_once_with(api_key="test-key", timeout=30.0)

    def test_base_url_passed(self):
        with patch("prompt_lab.providers.openai.AsyncOpenAI") as mock_cls:
            provider = OpenAIProvider(base_url="http://localhost:11434/v1")

        mock_cls.assert_called_once_with(api_key="not-needed", base_url="http://localhost:11434/v1")
        assert provider.provider_name == "Ollama"

    def test_evaluate(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = completion('{"score": 9, "feedback": "Good"}', 77)

        result = run(provider.evaluate("Explain recursion"))

        assert (result.score, result.feedback, result.tokens) == (9, "Good", 77)
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1] == {"role": "user", "content": "Explain recursion"}

    def test_evaluate_estimates_tokens_without_usage(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = completion('{"score": 5, "feedback": "meh"}')

        assert run(provider.evaluate("a" * 10)).tokens == 3

    def test_enhance_strips_thinking(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = completion("<think>hmm</think>Better prompt", 12)

        result = run(provider.enhance("prompt"))

        assert result.text == "Better prompt"
        assert result.tokens == 12

    def test_code_plan_uses_advanced_model(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = completion("# Plan", None, model=ADVANCED_MODEL)

        result = run(provider.code_plan("todo app"))

        assert client.chat.completions.create.call_args.kwargs["model"] == ADVANCED_MODEL
        assert result.tokens == 0

    @pytest.mark.parametrize("message,error_cls", [
        ("401 Unauthorized", AuthenticationError),
        ("429 rate limit reached", RateLimitError),
        ("Connection refused", ProviderConnectionError),
        ("something odd", ProviderError),
    ])
    def test_errors_are_classified(self, openai_provider, message, error_cls):
        provider, client, _ = openai_provider
        client.chat.completions.create.side_effect = Exception(message)

        with pytest.raises(error_cls):
            run(provider.enhance("x"))

    def test_empty_choices(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None, model="m")

        with pytest.raises(ResponseParseError):
            run(provider.enhance("x"))

    def test_fun_prompt_falls_back_on_error(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.side_effect = Exception("Connection refused")

        assert run(provider.fun_prompt()) == FUN_PROMPT_FALLBACK

    def test_fun_prompt_high_temperature(self, openai_provider):
        provider, client, _ = openai_provider
        client.chat.completions.create.return_value = completion("  Talk like a robot.  ")

        assert run(provider.fun_prompt()) == "Talk like a robot."
        assert client.chat.completions.create.call_args.kwargs["temperature"] == 1.2


class TestRegistry:
    """Tests for provider creation."""

    def test_no_credentials_gives_mock(self):
        assert isinstance(ProviderRegistry().create_provider("openai"), MockProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            ProviderRegistry().create_provider("nope", api_key="k")

    @patch("prompt_lab.providers.openai.AsyncOpenAI")
    def test_name_normalization(self, mock_openai):
        provider = ProviderRegistry().create_provider("LM Studio", base_url="http://localhost:1234/v1")

        assert isinstance(provider, OpenAIProvider)
        assert provider.provider_name == "LM Studio"

    def test_register_rejects_non_provider(self):
        with pytest.raises(ValueError):
            ProviderRegistry().register("bad", object)

    @patch("prompt_lab.providers.openai.AsyncOpenAI")
    def test_create_from_settings(self, mock_openai):
        settings = AppSettings(_env_file=None, openai_api_key="sk-test", default_model="m-small", advanced_model="m-big")

        provider = create_provider(settings)

        assert isinstance(provider, OpenAIProvider)
        assert (provider.model, provider.advanced_model) == ("m-small", "m-big")

    def test_create_from_empty_settings(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_BASE_URL", raising=False)

        assert isinstance(create_provider(AppSettings(_env_file=None)), MockProvider)


class TestMalformedRepliesThroughOrchestrator:
    """Malformed completions end as a failed action, not an exception."""

    @pytest.fixture
    def wired(self, openai_provider, empty_store):
        provider, client, _ = openai_provider
        repo = PromptRepository(empty_store)
        prompt = repo.update(repo.create(None).id, "T", "Explain recursion")
        return AIActionOrchestrator(repo, provider), client, repo, prompt

    def test_empty_choices_fails(self, wired):
        orchestrator, client, repo, prompt = wired
        client.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None, model="m")

        outcome = run(orchestrator.invoke(AIActionType.ENHANCE, prompt.id, prompt.content))

        assert outcome.state == OrchestratorState.FAILED
        assert outcome.error == FAILURE_NOTICE
        assert repo.get(prompt.id).metadata == prompt.metadata

    def test_infinite_score_fails(self, wired):
        orchestrator, client, repo, prompt = wired
        client.chat.completions.create.return_value = completion('{"score": 1e400, "feedback": "x"}', 9)

        outcome = run(orchestrator.invoke(AIActionType.EVALUATE, prompt.id, prompt.content))

        assert outcome.state == OrchestratorState.FAILED
        assert repo.get(prompt.id).metadata == prompt.metadata
        assert not orchestrator.is_loading
