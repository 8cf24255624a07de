"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field, model_validator

from patient_rag.configs.base import BaseSettings
from patient_rag.configs.embeddings import EmbeddingSettings
from patient_rag.configs.retrieval import RetrievalSettings
from patient_rag.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    embeddings: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "Settings":
        if self.embeddings.dimension != self.vector_store.dimension:
            raise ValueError(
                f"Embedding dimension {self.embeddings.dimension} does not match "
                f"vector index dimension {self.vector_store.dimension}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from patient_rag.configs import get_settings
        settings = get_settings()
    """
    return Settings()
