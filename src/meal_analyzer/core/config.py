"""Application configuration using Pydantic Settings."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from meal_analyzer.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CapabilityOverride(BaseModel):
    """Optional per-provider capability restriction from configuration."""

    text: bool = True
    images: bool = True
    audio: bool = True


class ProviderConfig(BaseModel):
    """Connection parameters for a single AI provider."""

    enabled: bool = True
    api_key: str = ""
    # Vendor type name; defaults to the key the provider is registered under
    type: str | None = None

    # Gemini style: models x api versions tried in priority order
    models: list[str] | None = None
    api_versions: list[str] | None = None

    # Chat-completions style
    model: str | None = None
    endpoint: str | None = None

    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    timeout: float = 60.0

    capabilities: CapabilityOverride | None = None


class AIConfig(BaseModel):
    """Provider configuration bundle, read once at startup."""

    default_provider: str | None = None
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    fallback_order: list[str] = Field(default_factory=list)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Full provider bundle as JSON (takes precedence over the vendor fields below)
    ai_config_file: str | None = None

    # Provider selection
    default_ai_provider: str = "gemini"
    ai_fallback_order: list[str] = ["gemini", "openai", "deepseek"]

    # Google Gemini
    gemini_api_key: str = ""
    gemini_models: list[str] = ["gemini-2.5-flash", "gemini-2.5-flash-lite"]
    gemini_api_versions: list[str] = ["v1beta", "v1"]

    # DeepSeek
    deepseek_api_key: str = ""
    deepseek_model: str = "deepseek-chat"
    deepseek_temperature: float = 0.7
    deepseek_max_tokens: int = 1024

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # LLM Settings
    ai_request_timeout: float = 60.0

    # App
    debug: bool = False
    log_level: str = "INFO"
    locale: str = "en"  # Language of user-facing error messages: en, cs
    app_name: str = "Meal Analyzer API"
    api_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    def build_ai_config(self) -> AIConfig:
        """
        Build the provider configuration bundle.

        Reads ``ai_config_file`` when set, otherwise assembles the bundle
        from the per-vendor settings.

        Raises:
            ConfigurationError: If the config file is missing or malformed
        """
        if self.ai_config_file:
            return load_ai_config(self.ai_config_file)

        return AIConfig(
            default_provider=self.default_ai_provider,
            fallback_order=list(self.ai_fallback_order),
            providers={
                "gemini": ProviderConfig(
                    api_key=self.gemini_api_key,
                    models=list(self.gemini_models),
                    api_versions=list(self.gemini_api_versions),
                    timeout=self.ai_request_timeout,
                ),
                "openai": ProviderConfig(
                    api_key=self.openai_api_key,
                    model=self.openai_model,
                    timeout=self.ai_request_timeout,
                ),
                "deepseek": ProviderConfig(
                    api_key=self.deepseek_api_key,
                    model=self.deepseek_model,
                    temperature=self.deepseek_temperature,
                    max_tokens=self.deepseek_max_tokens,
                    timeout=self.ai_request_timeout,
                ),
            },
        )


def load_ai_config(path: str | Path) -> AIConfig:
    """Load an AIConfig bundle from a JSON file."""
    config_path = Path(path)
    logger.info(f"Loading AI provider configuration from {config_path}")

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"AI config file not found: {config_path}",
            details={"path": str(config_path)},
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"AI config file is not valid JSON: {e}",
            details={"path": str(config_path)},
        ) from e

    try:
        return AIConfig.model_validate(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid AI provider configuration: {e}",
            details={"path": str(config_path)},
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
