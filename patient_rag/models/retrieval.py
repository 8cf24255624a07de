"""
Retrieval domain models.

Query matches, ingestion outcomes, per-patient statistics and the assembled
prompt context.

Dependencies: pydantic
System role: Public result types of the retrieval service
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class RetrievalMatch(BaseModel):
    """Single ranked match returned by a similarity query."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Chunk identifier")
    score: float = Field(description="Cosine similarity (-1.0 to 1.0)")
    content: str = Field(description="Chunk text content")
    document_name: str = Field(description="Source document name")
    patient_id: str = Field(description="Owning patient")


class IngestionStatus(str, Enum):
    """
    Ingestion request lifecycle.

    add_document logs every transition; callers only see the terminal DONE or FAILED.
    """

    RECEIVED = "received"
    CHUNKED = "chunked"
    EMBEDDING = "embedding"
    STORED = "stored"
    DONE = "done"
    FAILED = "failed"


class IngestionResult(BaseModel):
    """Outcome of adding one document."""

    success: bool = Field(description="True when at least one chunk was stored")
    chunks_stored: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    status: IngestionStatus = Field(description="Terminal state, DONE or FAILED")
    error: str | None = Field(default=None)
    failed_chunk_indexes: list[int] = Field(
        default_factory=list,
        description="Chunks that could not be embedded or stored",
    )


class PatientStats(BaseModel):
    """Stored document and chunk counts for a patient."""

    document_count: int = Field(default=0, ge=0)
    chunk_count: int = Field(default=0, ge=0)


class DocumentSummary(BaseModel):
    """One stored document of a patient."""

    document_name: str
    chunk_count: int = Field(ge=0)
    created_at: datetime | None = None


class RAGContext(BaseModel):
    """Bounded context block plus citation list for prompt assembly."""

    context: str = Field(default="")
    sources: list[str] = Field(default_factory=list)
