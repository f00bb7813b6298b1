"""
Configuration loading and validation for review_sentiment library.

Uses Pydantic BaseSettings so values can come from environment variables,
a .env file, or be set directly in code.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .exceptions import ConfigurationError


class ReviewSentimentSettings(BaseSettings):
    """Settings for review fetching, classification and aggregation.
    
    Can be loaded from environment variables with REVIEW_SENTIMENT_ prefix,
    or set directly in code.
    """

    # Places directory
    places_api_key: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Places directory API key (from env or explicit)",
    )
    places_base_url: str = Field(
        default="https://places.googleapis.com/v1", description="Places API base URL"
    )
    places_language_code: str = Field(default="en", description="Language for results")
    places_max_results: int = Field(
        default=20, ge=1, le=20, description="Places returned per text-search page"
    )
    places_timeout_seconds: float = Field(
        default=15.0, gt=0, description="HTTP timeout for directory calls"
    )

    # LLM settings
    llm_model: str = Field(default="gpt-3.5-turbo", description="LLM model name")
    llm_api_key: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="LLM API key (from env or explicit)",
    )
    classifier_temperature: float = Field(
        default=0.0, ge=0.0, le=2.0, description="Temperature for per-review classification"
    )
    summary_temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Temperature for the narrative summary"
    )
    summary_max_tokens: int = Field(default=200, ge=1, description="Narrative length cap")
    llm_max_retries: int = Field(default=2, ge=1, description="Max LLM attempts per call")
    use_mock_llm: bool = Field(
        default=False, description="Use mock LLM for testing (ignores API key)"
    )

    # Fan-out
    classification_concurrency: int = Field(
        default=5, ge=1, description="Concurrent classification calls per batch"
    )
    classification_timeout_seconds: float = Field(
        default=20.0, gt=0, description="Per-review classification timeout"
    )
    summary_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Narrative summary timeout"
    )

    # Cache / storage
    single_flight: bool = Field(
        default=True, description="Share one in-flight analysis per location"
    )
    claims_db_path: Path = Field(
        default=Path("data/review_sentiment.db"), description="Path to claims database"
    )

    model_config = {
        "env_prefix": "REVIEW_SENTIMENT_",
        "env_file": ".env",
        "extra": "ignore",
    }

    @field_validator("places_api_key", mode="before")
    @classmethod
    def get_places_key_from_env(cls, v: Optional[str]) -> Optional[str]:
        """Fall back to GOOGLE_PLACES_API_KEY or NEXT_PUBLIC_GOOGLE_PLACES_API_KEY."""
        if v is None:
            return os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv(
                "NEXT_PUBLIC_GOOGLE_PLACES_API_KEY"
            )
        return v

    @field_validator("llm_api_key", mode="before")
    @classmethod
    def get_api_key_from_env(cls, v: Optional[str]) -> Optional[str]:
        """Fall back to OPENAI_API_KEY if not set."""
        if v is None:
            return os.getenv("OPENAI_API_KEY")
        return v

    def require_places_api_key(self) -> str:
        """Return the places API key or fail fast."""
        if not self.places_api_key:
            raise ConfigurationError(
                "Places API key is not configured "
                "(set REVIEW_SENTIMENT_PLACES_API_KEY or GOOGLE_PLACES_API_KEY)"
            )
        return self.places_api_key

    def require_llm_api_key(self) -> Optional[str]:
        """Return the LLM API key, failing fast unless the mock LLM is enabled."""
        if self.use_mock_llm:
            return None
        if not self.llm_api_key:
            raise ConfigurationError(
                "LLM API key is not configured "
                "(set REVIEW_SENTIMENT_LLM_API_KEY or OPENAI_API_KEY)"
            )
        return self.llm_api_key


def get_settings(**overrides: Any) -> ReviewSentimentSettings:
    """
    Load settings from environment variables and defaults.
    
    Environment variables (prefixed with REVIEW_SENTIMENT_):
        REVIEW_SENTIMENT_PLACES_API_KEY (or GOOGLE_PLACES_API_KEY)
        REVIEW_SENTIMENT_LLM_MODEL
        REVIEW_SENTIMENT_LLM_API_KEY (or OPENAI_API_KEY)
        REVIEW_SENTIMENT_CLASSIFICATION_CONCURRENCY
        REVIEW_SENTIMENT_CLAIMS_DB_PATH
        
    Args:
        **overrides: Override specific settings
        
    Returns:
        ReviewSentimentSettings instance
    """
    return ReviewSentimentSettings(**overrides)


@lru_cache(maxsize=1)
def get_cached_settings() -> ReviewSentimentSettings:
    """Process-wide settings, read once. Call cache_clear() after changing env vars."""
    return get_settings()
