"""
Application configuration loaded from environment variables.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised application settings."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    openai_api_key: SecretStr | None = Field(default=None, alias="OPENAI_API_KEY")
    llm_model_name: str = Field(default="gpt-4o-mini", alias="LLM_MODEL_NAME")
    llm_temperature: float = Field(default=0.7, alias="LLM_TEMPERATURE")

    embedding_model_name: str = Field(default="text-embedding-3-small", alias="EMBEDDING_MODEL_NAME")
    embedding_dimensions: int = Field(default=1536, gt=0, alias="EMBEDDING_DIMENSIONS")
    embedding_batch_size: int = Field(default=64, gt=0, alias="EMBEDDING_BATCH_SIZE")
    embedding_max_input_chars: int = Field(default=30000, gt=0, alias="EMBEDDING_MAX_INPUT_CHARS")

    vector_store_backend: str = Field(default="chroma", alias="VECTOR_STORE_BACKEND")
    vector_store_path: str = Field(default="./data/vector_store", alias="VECTOR_STORE_PATH")
    vector_collection: str = Field(default="strain_embeddings", alias="VECTOR_COLLECTION")

    catalog_path: str = Field(default="./data/strains.json", alias="CATALOG_PATH")

    # Policy constants: CBD below this many percentage points is left out of the
    # embedding text, and at most this many strains reach the prompt.
    secondary_potency_threshold: float = Field(default=0.5, ge=0, alias="SECONDARY_POTENCY_THRESHOLD")
    max_context_items: int = Field(default=5, gt=0, alias="MAX_CONTEXT_ITEMS")

    retrieval_top_k: int = Field(default=5, gt=0, alias="RETRIEVAL_TOP_K")
    retrieval_overfetch: int = Field(default=2, ge=1, alias="RETRIEVAL_OVERFETCH")

    embed_requests_per_minute: float = Field(default=3000, gt=0, alias="EMBED_REQUESTS_PER_MINUTE")
    embed_burst: int = Field(default=10, gt=0, alias="EMBED_BURST")
    backfill_concurrency: int = Field(default=4, gt=0, alias="BACKFILL_CONCURRENCY")

    embedding_timeout_sec: float = Field(default=30.0, gt=0, alias="EMBEDDING_TIMEOUT_SEC")
    retrieval_timeout_sec: float = Field(default=10.0, gt=0, alias="RETRIEVAL_TIMEOUT_SEC")
    generation_timeout_sec: float = Field(default=60.0, gt=0, alias="GENERATION_TIMEOUT_SEC")

    admin_token: SecretStr | None = Field(default=None, alias="ADMIN_TOKEN")

    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")

    def openai_key(self) -> str | None:
        return self.openai_api_key.get_secret_value() if self.openai_api_key else None


settings = Settings()


def get_settings() -> Settings:
    """
    Process-wide settings shared by the service wiring and the scripts.
    """
    return settings


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure base logging for the app.
    """
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    )
    return logging.getLogger("budtender")


def public_settings(current: Settings | None = None) -> Dict[str, Any]:
    """
    Return settings without secrets for safe logging/inspection.
    """
    return (current or settings).model_dump(
        exclude={"openai_api_key", "admin_token"},
        exclude_none=True,
    )


__all__ = ["Settings", "settings", "get_settings", "setup_logging", "public_settings"]
