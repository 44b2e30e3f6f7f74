"""
Configuration settings for the study planner.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

DEFAULT_DB_PATH = str(Path.home() / ".prep_planner" / "planner.db")


class Settings(BaseSettings):
    db_path: str = DEFAULT_DB_PATH
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PREP_PLANNER_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
    )
    openai_model: str = "gpt-4o-mini"
    enrichment_timeout: float = 30.0
    dashboard_password: Optional[str] = None
    log_level: str = "WARNING"

    class Config:
        env_file = ".env"
        env_prefix = "PREP_PLANNER_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
