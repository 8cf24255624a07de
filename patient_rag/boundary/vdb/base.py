"""
Abstract vector store adapter.

Shared contract of the in-memory and S3 Vectors backends plus the dimension,
top_k and isolation checks both apply.

Dependencies: patient_rag.boundary.embeddings.dimension, patient_rag.models
System role: Vector store port
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from patient_rag.boundary.embeddings.dimension import reconcile_dimension
from patient_rag.boundary.vdb.vector_schemas import PatientFilter, VectorMetadata, VectorRecord
from patient_rag.core.exceptions import DimensionMismatchError, InvalidParameterError
from patient_rag.models.retrieval import RetrievalMatch

logger = logging.getLogger(__name__)


class VectorStoreAdapter(ABC):
    """
    Patient-scoped vector index.

    Write methods are idempotent by record id. Read and delete methods degrade
    to empty/false results when the backend is unreachable; only wrong vector
    dimensions and invalid parameters raise.
    """

    def __init__(self, dimension: int = 1024, strict_dimensions: bool = True, max_top_k: int = 30) -> None:
        if dimension <= 0:
            raise InvalidParameterError("dimension must be positive", field="dimension")
        self.dimension = dimension
        self.strict_dimensions = strict_dimensions
        self.max_top_k = max_top_k

    @abstractmethod
    async def ensure_initialized(self) -> bool:
        """Create or connect to the index. Safe to call repeatedly."""

    @abstractmethod
    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        """Write records, replacing any with the same id. Returns records written."""

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        patient_filter: PatientFilter,
    ) -> list[RetrievalMatch]:
        """Return up to top_k matches of one patient, best first."""

    @abstractmethod
    async def delete_by_filter(self, patient_filter: PatientFilter) -> bool:
        """Delete every vector of a patient."""

    @abstractmethod
    async def delete_chunks(
        self,
        patient_filter: PatientFilter,
        document_name: str,
        keep_ids: Iterable[str] | None = None,
    ) -> int:
        """Delete a patient's chunks of one document, except keep_ids. Returns count deleted."""

    @abstractmethod
    async def scan(self, patient_filter: PatientFilter) -> list[VectorMetadata]:
        """Return the metadata of every vector of a patient."""

    def _check_dimension(self, vector: Sequence[float], operation: str) -> list[float]:
        if len(vector) == self.dimension:
            return list(vector)
        if self.strict_dimensions or len(vector) == 0:
            raise DimensionMismatchError(self.dimension, len(vector), operation=operation)
        logger.error(
            f"{__name__}:{operation} - Vector dimension {len(vector)} does not match "
            f"index dimension {self.dimension}, coercing",
            extra={"expected": self.dimension, "actual": len(vector)},
        )
        return reconcile_dimension(vector, self.dimension)

    def _clamp_top_k(self, top_k: int) -> int:
        if top_k < 1:
            raise InvalidParameterError("top_k must be at least 1", field="top_k", details={"top_k": top_k})
        return min(top_k, self.max_top_k)

    @staticmethod
    def _rank(matches: Iterable[RetrievalMatch], top_k: int) -> list[RetrievalMatch]:
        """Order by descending score, ties broken by chunk id."""
        return sorted(matches, key=lambda m: (-m.score, m.chunk_id))[:top_k]

    @staticmethod
    def _drop_foreign(
        matches: Iterable[RetrievalMatch],
        patient_filter: PatientFilter,
    ) -> list[RetrievalMatch]:
        """Re-check isolation after the backend filter."""
        kept = []
        for match in matches:
            if match.patient_id != patient_filter.patient_id:
                logger.error(
                    f"{__name__}:query - Dropping match {match.chunk_id} of another patient",
                    extra={"chunk_id": match.chunk_id},
                )
                continue
            kept.append(match)
        return kept
