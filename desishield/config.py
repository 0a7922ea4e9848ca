from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True

    # ==========================================================================
    # OPENAI
    # ==========================================================================
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("openai_api_key", "api_key"),
    )
    openai_model: str = "gpt-4o-mini"
    openai_transcription_model: str = "gpt-4o-mini-transcribe"
    openai_timeout: float = 30.0  # Seconds per classifier/transcription call

    # ==========================================================================
    # DICTATION
    # ==========================================================================
    dictation_language: str = "en"  # ISO-639-1 hint for the transcription model

    # ==========================================================================
    # RISK BANDS (0-100 scale)
    # ==========================================================================
    high_risk_threshold: int = 70  # Score >= this = high
    medium_risk_threshold: int = 30  # Score >= this = medium (below = low)

    # ==========================================================================
    # LOGGING
    # ==========================================================================
    log_level: Optional[str] = None  # Defaults to DEBUG in dev, INFO in prod
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"

    @property
    def has_credentials(self) -> bool:
        return bool(self.openai_api_key.strip())


settings = Settings()
