"""Domain models for chunks and retrieval results."""

from patient_rag.models.chunk import DocumentChunk, generate_chunk_id
from patient_rag.models.retrieval import (
    DocumentSummary,
    IngestionResult,
    IngestionStatus,
    PatientStats,
    RAGContext,
    RetrievalMatch,
)

__all__ = [
    "DocumentChunk",
    "DocumentSummary",
    "IngestionResult",
    "IngestionStatus",
    "PatientStats",
    "RAGContext",
    "RetrievalMatch",
    "generate_chunk_id",
]
