"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from patient_rag.configs.embeddings import EmbeddingSettings
from patient_rag.configs.retrieval import RetrievalSettings
from patient_rag.configs.settings import Settings, get_settings
from patient_rag.configs.vector_store import VectorStoreSettings

__all__ = [
    "EmbeddingSettings",
    "RetrievalSettings",
    "Settings",
    "VectorStoreSettings",
    "get_settings",
]
