"""
Chunk domain model.

Represents a document chunk with a deterministic ID derived from the owning
patient, the document name and the chunk position.

Dependencies: pydantic, hashlib
System role: Document chunk data structure
"""

import hashlib
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def generate_chunk_id(patient_id: str, document_name: str, chunk_index: int) -> str:
    """
    Generate a deterministic chunk ID.

    Re-ingesting the same document position yields the same ID so that the
    vector store overwrites instead of duplicating.

    Args:
        patient_id: Owning patient
        document_name: Source document name
        chunk_index: Position of the chunk within the document

    Returns:
        str: 32-char hex digest
    """
    id_input = f"{patient_id}\x1f{document_name}\x1f{chunk_index}"
    return hashlib.sha256(id_input.encode("utf-8")).hexdigest()[:32]


class DocumentChunk(BaseModel):
    """Immutable document chunk."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Deterministic chunk identifier")
    text: str = Field(description="Chunk text content")
    patient_id: str = Field(description="Owning patient (tenant partition key)")
    document_name: str = Field(description="Source document name")
    chunk_index: int = Field(ge=0, description="Position within the document")
    total_chunks: int = Field(ge=1, description="Number of chunks the document produced")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        text: str,
        patient_id: str,
        document_name: str,
        chunk_index: int,
        total_chunks: int,
    ) -> "DocumentChunk":
        """Build a chunk with its deterministic ID."""
        return cls(
            id=generate_chunk_id(patient_id, document_name, chunk_index),
            text=text,
            patient_id=patient_id,
            document_name=document_name,
            chunk_index=chunk_index,
            total_chunks=total_chunks,
        )
