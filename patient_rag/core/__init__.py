"""
Core business logic module.

Contains the exception hierarchy, the sentence chunker and the context
builder. Nothing here performs I/O.
"""

from patient_rag.core.chunker import SentenceChunker, chunk_text
from patient_rag.core.context_builder import ContextBuilder
from patient_rag.core.exceptions import (
    BackendUnavailableError,
    DimensionMismatchError,
    EmbeddingError,
    InvalidParameterError,
    PatientRAGException,
    ProviderUnavailableError,
    VectorStoreError,
)

__all__ = [
    # Exceptions
    "PatientRAGException",
    "InvalidParameterError",
    "ProviderUnavailableError",
    "EmbeddingError",
    "VectorStoreError",
    "BackendUnavailableError",
    "DimensionMismatchError",
    # Business logic
    "ContextBuilder",
    "SentenceChunker",
    "chunk_text",
]
