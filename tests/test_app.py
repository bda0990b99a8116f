"""Unit tests for the UI view helpers and handlers."""

import asyncio
from unittest.mock import patch

import pytest

from prompt_lab import app
from prompt_lab.app import (
    ALL_PROMPTS,
    FAVORITES,
    category_choices,
    current_nav,
    format_stats,
    prompt_choices,
    result_update,
    save_provider_settings_ui,
)
from prompt_lab.config import ConfigManager
from prompt_lab.models import AIActionType
from prompt_lab.providers.mock import MockProvider
from prompt_lab.providers.openai import OpenAIProvider


class TestViewHelpers:
    """Tests for sidebar, list and stats rendering."""

    def test_category_choices_indent_children(self, workspace):
        choices = category_choices(workspace)

        assert choices[:2] == [("All Prompts", ALL_PROMPTS), ("★ Favorites", FAVORITES)]
        assert ("Creative Writing", "cat_1") in choices
        assert ("    └ Fiction", "cat_1_1") in choices

    def test_current_nav(self, workspace):
        assert current_nav(workspace) == ALL_PROMPTS
        workspace.select_category("cat_3")
        assert current_nav(workspace) == "cat_3"
        workspace.select_favorites()
        assert current_nav(workspace) == FAVORITES

    def test_prompt_choices_show_score_and_tags(self, workspace):
        labels = dict((pid, label) for label, pid in prompt_choices(workspace))

        assert "[Score: 8]" in labels["p_1"]
        assert "#sci-fi" in labels["p_1"]
        assert "★" in labels["p_1"]

    def test_format_stats(self, workspace):
        stats = format_stats(workspace)

        assert "$0.000045" in stats
        assert "- Score: 80" in stats
        # 45 tokens at the output rate
        assert "Output-rate ceiling: $0.000018" in stats

    def test_result_hidden_without_result(self, workspace):
        update = result_update(workspace)

        assert update["visible"] is False
        assert update["value"] == ""

    def test_result_shows_heading_and_text(self, workspace):
        asyncio.run(workspace.run_action(AIActionType.CODE_PLAN))

        update = result_update(workspace)

        assert update["visible"] is True
        assert update["value"] == "# Plan"
        assert update["label"] == "CODE PLAN Result"


class TestProviderSettings:
    """Tests for saving provider settings from the UI."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("OPENAI_API_KEY", "OPENAI_BASE_URL", "PROVIDER_NAME", "DEFAULT_MODEL", "ADVANCED_MODEL"):
            monkeypatch.delenv(name, raising=False)

    def test_without_config(self, monkeypatch, workspace):
        monkeypatch.setattr(app, "CONFIG", None)
        monkeypatch.setattr(app, "WORKSPACE", workspace)

        assert save_provider_settings_ui("openai", "k", "", "m", "m").startswith("❌")

    @patch("prompt_lab.providers.openai.AsyncOpenAI")
    def test_save_switches_provider(self, mock_openai, monkeypatch, workspace, temp_dir):
        env_file = temp_dir / ".env"
        monkeypatch.setattr(app, "CONFIG", ConfigManager(str(env_file)))
        monkeypatch.setattr(app, "WORKSPACE", workspace)

        status = save_provider_settings_ui("ollama", "", "http://localhost:11434/v1", "llama3", "")

        assert status.startswith("✅")
        assert isinstance(workspace.provider, OpenAIProvider)
        assert workspace.orchestrator.provider is workspace.provider
        assert workspace.provider.model == "llama3"
        assert "OPENAI_BASE_URL" in env_file.read_text()

    def test_clearing_credentials_falls_back_to_mock(self, monkeypatch, workspace, temp_dir):
        monkeypatch.setattr(app, "CONFIG", ConfigManager(str(temp_dir / ".env")))
        monkeypatch.setattr(app, "WORKSPACE", workspace)

        save_provider_settings_ui("openai", "  ", "", "", "")

        assert isinstance(workspace.provider, MockProvider)
