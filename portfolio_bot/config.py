"""
Configuration module for the portfolio bot.

All secrets are read from environment variables.
"""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    environment: Literal["development", "production", "test"] = "development"
    log_level: str = "info"
    log_format: Literal["json", "console"] = "console"
    default_locale: str = "nl"

    # Dialog engine
    recognizer_confidence_threshold: float = 0.5
    prompt_max_retries: int = 2
    max_stack_depth: int = 10
    dialog_version: float = 1.0
    reset_command: str = r"^reset"
    send_typing: bool = True
    typing_delay_seconds: float = 1.5

    # State storage
    state_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    state_ttl_seconds: int = 86400 * 30

    # LUIS
    luis_app_id: str = ""
    luis_api_key: str = ""
    luis_api_host_name: str = "westeurope.api.cognitive.microsoft.com"
    bing_spell_check_key: str = ""

    # QnA Maker
    qna_knowledgebase_id: str = ""
    qna_subscription_key: str = ""
    qna_host: str = "https://westus.api.cognitive.microsoft.com/qnamaker/v2.0"

    recognizer_timeout_seconds: float = 5.0

    # Mail
    mail_host: str = ""
    mail_port: int = 587
    mail_user: str = ""
    mail_password: str = ""
    mail_start_tls: bool = True
    mail_to: str = "bot@michelbouman.nl"
    mail_subject: str = "Mail vanaf de bot"

    @property
    def luis_enabled(self) -> bool:
        return bool(self.luis_app_id and self.luis_api_key)

    @property
    def qna_enabled(self) -> bool:
        return bool(self.qna_knowledgebase_id and self.qna_subscription_key)

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mail_host)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
