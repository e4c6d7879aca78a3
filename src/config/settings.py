"""Application configuration management."""

from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from translator.errors import ConfigurationError


DEFAULT_MODEL = "gemini-2.0-flash-exp"


class Settings(BaseSettings):
    """Application settings, read from the environment or a .env file."""

    llm_api_url: Optional[str] = Field(default=None)
    llm_api_key: Optional[str] = Field(default=None)
    llm_model: str = Field(default=DEFAULT_MODEL)
    request_timeout: Optional[float] = Field(default=None, gt=0)
    max_file_size: int = Field(default=10485760, ge=1024, le=104857600)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@dataclass(frozen=True)
class TranslatorConfig:
    """Explicit configuration handed to a JsonStreamTranslator.

    Validated once at construction: a missing endpoint URL or API key raises
    ConfigurationError naming the value.
    """

    api_url: Optional[str]
    api_key: Optional[str]
    model: str = DEFAULT_MODEL
    request_timeout: Optional[float] = None

    def __post_init__(self):
        if not self.api_key:
            raise ConfigurationError("API key")
        if not self.api_url:
            raise ConfigurationError("API URL")

    @classmethod
    def from_settings(cls, source: Optional[Settings] = None) -> "TranslatorConfig":
        """Build a config from application settings (defaults to the global ones)."""
        source = source or settings
        return cls(
            api_url=source.llm_api_url,
            api_key=source.llm_api_key,
            model=source.llm_model,
            request_timeout=source.request_timeout,
        )


settings = Settings()
