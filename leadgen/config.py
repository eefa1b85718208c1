# leadgen/config.py - Pydantic settings (env vars)

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # LLM (query interpretation)
    openai_api_key: str | None = None
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-3.5-turbo"
    openai_temperature: float = 0.2
    openai_timeout_seconds: float = 30.0

    # Crustdata (company / person search)
    crustdata_api_key: str | None = None
    crustdata_api_url: str = "https://api.crustdata.com"
    search_timeout_seconds: float = 30.0
    search_max_retries: int = 2
    search_retry_delay_seconds: float = 1.0
    contact_search_max_retries: int = 2

    # HTTP surface
    cors_allow_origins: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @field_validator("search_max_retries", "contact_search_max_retries")
    @classmethod
    def _validate_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("retry budgets must be zero or positive")
        return value

    @property
    def cors_origins(self) -> list[str]:
        return [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
