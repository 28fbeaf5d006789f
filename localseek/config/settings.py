"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (prefix ``LOCALSEEK_``) and .env files.
Container metadata and the embedding model selector are user state and live
in the persisted config file instead (see ``config.store``).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    data_dir: Path = Path("data")
    config_path: Path = Path("data/config.json")
    db_path: Path = Path("data/localseek.db")
    model_cache_dir: Path = Path("data/models")

    # Embedding
    embed_batch_size: int = 32

    # Reranker (multilingual cross-encoder)
    reranker_enabled: bool = True
    reranker_model: str = "cross-encoder/mmarco-mMiniLMv2-L12-H384-v1"
    reranker_pool_size: int = 1

    # Retrieval
    vector_search_limit: int = 50
    text_search_limit: int = 30
    fusion_limit: int = 50
    rerank_limit: int = 15
    result_limit: int = 20
    rrf_k: int = 60

    # Indexing
    index_max_file_bytes: int = 2_000_000
    index_skip_dirs: list[str] = [
        "node_modules",
        "target",
        "__pycache__",
        "dist",
        "build",
        "venv",
        ".venv",
        ".git",
    ]

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_debug: bool = False

    model_config = SettingsConfigDict(
        env_prefix="LOCALSEEK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
