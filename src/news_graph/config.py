"""Configuration helpers for the news graph engine."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="NEWS_GRAPH_"
    )

    entity_cap: int = Field(
        50, ge=1, description="Maximum number of entities rendered as nodes per day."
    )
    compact_entity_cap: int = Field(
        20,
        ge=1,
        description="Node cap for small viewports (phones, narrow windows).",
    )
    article_pool_cap: int = Field(
        5,
        ge=1,
        description=(
            "Only the first N question-bearing articles of an entity are sampled "
            "when drawing quiz questions."
        ),
    )
    featured_top_k: int = Field(
        5, ge=1, description="Featured article is drawn from the N longest articles."
    )
    cbt_question_count: int = Field(
        10, ge=1, description="Exact number of questions in a CBT exam."
    )
    exam_time_limit_seconds: float = Field(
        600.0, gt=0, description="CBT exam time limit."
    )
    sample_dataset_url: str = Field(
        "http://localhost:5173/news_full_mcq3_type9_entities_novectors.jsonl",
        description="Location of the bundled sample JSONL dataset.",
    )
    fetch_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for fetching the sample dataset."
    )
    log_level: str = Field("INFO", description="Root log level for CLI and server.")


def get_settings() -> Settings:
    """Return a settings instance built from the current environment."""
    return Settings()
