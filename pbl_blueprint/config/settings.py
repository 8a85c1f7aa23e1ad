"""Application settings using Pydantic."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Extraction minimums (per artifact kind)
    extraction_min_phases: int = Field(default=3, ge=0)
    extraction_min_activities: int = Field(default=3, ge=0)
    extraction_min_milestones: int = Field(default=3, ge=0)
    extraction_min_resources: int = Field(default=1, ge=0)
    extraction_min_rubric_criteria: int = Field(default=3, ge=0)

    # Extraction behaviour
    extraction_clean_markdown: bool = True
    extraction_verbose: bool = False

    # Stage acceptance
    acceptance_floor: float = Field(default=0.5, ge=0.0, le=1.0)
    free_text_acceptance_floor: float = Field(default=0.4, ge=0.0, le=1.0)

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
