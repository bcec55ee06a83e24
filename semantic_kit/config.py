"""
Configuration for Semantic Kit.

Settings are read from the environment (``SEMANTIC_KIT_`` prefix) and an
optional ``.env`` file.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_COLLECTION_TABLE_PREFIX,
    DEFAULT_COLLECTIONS_TABLE,
    DEFAULT_COMPLETION_MODEL,
    DEFAULT_CONTEXT_TOKEN_LIMIT,
    DEFAULT_EMBEDDING_DIMENSIONS,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS,
)


def default_database_url() -> str:
    path = os.path.join(os.path.expanduser("~"), ".semantic-kit", "vectors.db")
    return f"sqlite:///{path}"


class KitSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SEMANTIC_KIT_", env_file=".env", extra="ignore"
    )

    completion_model: str = DEFAULT_COMPLETION_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS
    default_collection: str = DEFAULT_COLLECTION_NAME
    token_limit: int = DEFAULT_CONTEXT_TOKEN_LIMIT
    # Name of a registered vector store: sql, in_memory, redis or azure_ai_search
    vector_store: str = "sql"
    database_url: str = Field(default_factory=default_database_url)
    redis_url: str = "redis://localhost:6379/0"
    azure_search_endpoint: Optional[str] = None
    azure_search_api_key: Optional[str] = None
    collections_table: str = DEFAULT_COLLECTIONS_TABLE
    collection_table_prefix: str = DEFAULT_COLLECTION_TABLE_PREFIX
    max_auto_invoke_attempts: int = DEFAULT_MAX_AUTO_INVOKE_ATTEMPTS


def get_settings(**overrides) -> KitSettings:
    """
    Build settings, letting explicit (non-None) overrides win over the environment.

    Args:
        **overrides: Setting values, typically from CLI options

    Returns:
        The resolved settings
    """
    return KitSettings(**{k: v for k, v in overrides.items() if v is not None})
