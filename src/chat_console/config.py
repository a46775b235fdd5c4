"""Configuration module for chat-console using pydantic-settings."""

import logging
from pathlib import Path

import httpx
from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_MODEL = "gemma3:12b"
SETTINGS_FILE = "appsettings.json"


def is_valid_endpoint(value: str) -> bool:
    """Check that a value is an absolute http(s) URL with a host."""
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError):
        return False
    return url.scheme in ("http", "https") and bool(url.host)


class ChatConsoleSettings(BaseSettings):
    """Main configuration settings for chat-console.

    Settings are read, in order of precedence, from keyword arguments,
    environment variables with the CHAT_CONSOLE_ prefix, and an optional
    appsettings.json file in the working directory. Every setting has a
    default, so a missing file or variable never fails startup.
    """

    # Ollama
    ollama_host: str = DEFAULT_OLLAMA_HOST
    model: str = DEFAULT_MODEL
    check_connection: bool = True

    # Prompts
    system_prompt: str = ""
    agent_prompt: str = ""

    # Modes
    autonomous_mode: bool = False
    step_mode: bool = True

    # Data (relative to data_dir)
    data_dir: str = "."
    tokenizer_path: str = "tokenizers/llama-3.2-3b.tokenizer.model"

    # Logging
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="CHAT_CONSOLE_",
        json_file=SETTINGS_FILE,
        json_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, JsonConfigSettingsSource(settings_cls))

    @field_validator("ollama_host")
    @classmethod
    def _fallback_on_invalid_host(cls, value: str) -> str:
        if is_valid_endpoint(value):
            return value
        logger.warning(f"Invalid Ollama host {value!r}, using {DEFAULT_OLLAMA_HOST}")
        return DEFAULT_OLLAMA_HOST

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    # --- Resolved paths (computed from data_dir + relative paths) ---

    @property
    def resolved_tokenizer_path(self) -> Path:
        """Get the full path to the Llama 3 tokenizer file."""
        return Path(self.data_dir) / self.tokenizer_path
