"""
Vector database schemas.

Pydantic models for records written to the index, the metadata stored next to
each vector and the patient filter applied to every read and delete.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PatientFilter(BaseModel):
    """
    Mandatory patient scope for queries, scans and deletes.

    There is no unscoped variant: every read path of the adapters takes one.
    """

    model_config = ConfigDict(frozen=True)

    patient_id: str = Field(description="Patient whose vectors are visible")

    @field_validator("patient_id")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("patient_id must be non-empty")
        return value


class VectorMetadata(BaseModel):
    """
    Metadata attached to each vector.

    patient_id and document_name are filterable; content is stored as
    non-filterable metadata in S3 Vectors.
    """

    chunk_id: str = Field(default="", description="Deterministic chunk identifier (vector key)")
    patient_id: str = Field(description="Owning patient, used for isolation")
    document_name: str = Field(description="Source document name")
    chunk_index: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=1, ge=1)
    content: str = Field(default="", description="Chunk text content")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    embedding_provider: str = Field(default="", description="Provider that produced the vector")


class VectorRecord(BaseModel):
    """Single vector ready for upsert."""

    id: str = Field(description="Vector key, equal to the chunk id")
    vector: list[float] = Field(description="Embedding of the chunk content")
    metadata: VectorMetadata
