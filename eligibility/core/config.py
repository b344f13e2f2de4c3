"""Application configuration and feature flags."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_RULES_DIR = Path(__file__).resolve().parent.parent / "rules" / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # API
    app_name: str = "Benefit Eligibility Engine"
    debug: bool = False

    # Validation
    strict: bool = Field(
        default=False,
        description="Promote missing-citation and missing-test warnings to errors",
    )

    # Evaluation
    max_depth: int = 100
    result_ttl_days: int = 30

    # Paths
    rules_dir: str = str(DEFAULT_RULES_DIR)

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
