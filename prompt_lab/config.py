"""
Configuration management for Prompt Lab.

Provider credentials and runtime settings come from the environment / a .env
file (pydantic-settings); per-workspace UI preferences live in a YAML file in
the data directory.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".prompt-lab"
WORKSPACE_CONFIG_FILE = "workspace.yaml"


class AppSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    These settings are persisted to .env file and loaded on startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Provider configuration
    openai_api_key: str = Field(default="", description="API key for OpenAI or compatible API")
    openai_base_url: str = Field(default="", description="Base URL for API (empty for OpenAI)")
    provider_name: str = Field(default="openai", description="Registered provider name")

    # Models
    default_model: str = Field(default="gpt-4o-mini", description="Model for evaluate/enhance/fun prompt")
    advanced_model: str = Field(default="gpt-4o", description="Model for code plans")
    request_timeout: float = Field(default=60.0, gt=0, description="Provider request timeout in seconds")

    # Application settings
    data_dir: Path = Field(default=DEFAULT_DATA_DIR, description="Directory holding the workspace store")
    login_delay: float = Field(default=0.6, ge=0, description="Artificial delay on login/register, seconds")
    log_level: str = Field(default="INFO", description="Root log level")

    def get_base_url_or_none(self) -> Optional[str]:
        """Get base URL or None (for OpenAI default)."""
        return self.openai_base_url if self.openai_base_url else None

    def needs_configuration(self) -> bool:
        """True when no provider is configured and mock responses will be used."""
        return not self.openai_api_key and not self.openai_base_url


class ConfigManager:
    """Loads settings from a .env file and writes changes back to it."""

    def __init__(self, env_file: str = ".env"):
        self.env_file = Path(env_file)
        self.settings = AppSettings(_env_file=str(self.env_file))

    def save_to_env(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        provider_name: Optional[str] = None,
        default_model: Optional[str] = None,
        advanced_model: Optional[str] = None,
    ) -> bool:
        """
        Save provider configuration to the .env file.

        Returns True if successful, False otherwise.
        """
        from dotenv import set_key

        updates: Dict[str, tuple] = {
            "OPENAI_API_KEY": ("openai_api_key", api_key),
            "OPENAI_BASE_URL": ("openai_base_url", base_url),
            "PROVIDER_NAME": ("provider_name", provider_name),
            "DEFAULT_MODEL": ("default_model", default_model),
            "ADVANCED_MODEL": ("advanced_model", advanced_model),
        }

        try:
            if not self.env_file.exists():
                self.env_file.touch()
            for env_name, (attr, value) in updates.items():
                if value is None:
                    continue
                set_key(str(self.env_file), env_name, value)
                setattr(self.settings, attr, value)
            return True
        except OSError as e:
            log.error("Error saving configuration to %s: %s", self.env_file, e)
            return False

    def reload(self):
        """Reload settings from .env file."""
        self.settings = AppSettings(_env_file=str(self.env_file))


class WorkspaceConfig(BaseModel):
    """Per-workspace preferences stored as YAML next to the data."""

    name: str = Field(default="My Prompt Lab", description="Workspace display name")
    port: int = Field(default=7860, ge=1, le=65535, description="Port for the web UI")
    select_first_prompt: bool = Field(default=True, description="Select the first prompt after login")

    @classmethod
    def from_yaml_file(cls, path: Path) -> "WorkspaceConfig":
        """Load from ``path``; a missing or empty file gives the defaults."""
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    def to_yaml_file(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)


def load_workspace_config(data_dir: Path) -> WorkspaceConfig:
    return WorkspaceConfig.from_yaml_file(Path(data_dir) / WORKSPACE_CONFIG_FILE)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
