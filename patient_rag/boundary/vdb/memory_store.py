"""
In-memory vector store for development and tests.

Keeps one partition per patient so a query can only ever see the vectors of
the patient it is scoped to. Cosine similarity is computed with numpy over the
partition. Nothing is persisted.

Dependencies: numpy
System role: Development vector store (local testing only)
"""

import logging
from collections.abc import Iterable, Sequence

import numpy as np

from patient_rag.boundary.vdb.base import VectorStoreAdapter
from patient_rag.boundary.vdb.vector_schemas import PatientFilter, VectorMetadata, VectorRecord
from patient_rag.models.retrieval import RetrievalMatch

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStoreAdapter):
    """
    Partitioned in-memory index.

    Example:
        >>> store = InMemoryVectorStore(dimension=8)
        >>> await store.upsert([record])
        1
        >>> await store.query(vector, top_k=5, patient_filter=PatientFilter(patient_id="p1"))
    """

    def __init__(self, dimension: int = 1024, strict_dimensions: bool = True, max_top_k: int = 30) -> None:
        super().__init__(dimension=dimension, strict_dimensions=strict_dimensions, max_top_k=max_top_k)
        self._partitions: dict[str, dict[str, tuple[np.ndarray, VectorMetadata]]] = {}
        self._owners: dict[str, str] = {}
        self._initialized = False

    async def ensure_initialized(self) -> bool:
        self._initialized = True
        return True

    async def upsert(self, records: Sequence[VectorRecord]) -> int:
        # Validate the whole batch before touching any partition.
        vectors = [self._check_dimension(record.vector, "upsert") for record in records]
        await self.ensure_initialized()

        for record, vector in zip(records, vectors):
            patient_id = record.metadata.patient_id
            previous_owner = self._owners.get(record.id)
            if previous_owner is not None and previous_owner != patient_id:
                self._partitions.get(previous_owner, {}).pop(record.id, None)

            metadata = record.metadata.model_copy(update={"chunk_id": record.id})
            partition = self._partitions.setdefault(patient_id, {})
            partition[record.id] = (np.asarray(vector, dtype=np.float64), metadata)
            self._owners[record.id] = patient_id

        logger.debug(f"{__name__}:upsert - Stored {len(records)} vectors")
        return len(records)

    async def query(
        self,
        vector: Sequence[float],
        top_k: int,
        patient_filter: PatientFilter,
    ) -> list[RetrievalMatch]:
        query_vector = np.asarray(self._check_dimension(vector, "query"), dtype=np.float64)
        top_k = self._clamp_top_k(top_k)

        partition = self._partitions.get(patient_filter.patient_id)
        if not partition:
            return []

        ids = list(partition)
        matrix = np.vstack([partition[chunk_id][0] for chunk_id in ids])
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)
        dots = matrix @ query_vector
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        matches = []
        for chunk_id, score in zip(ids, scores):
            metadata = partition[chunk_id][1]
            matches.append(
                RetrievalMatch(
                    chunk_id=chunk_id,
                    score=float(score),
                    content=metadata.content,
                    document_name=metadata.document_name,
                    patient_id=metadata.patient_id,
                )
            )
        return self._rank(self._drop_foreign(matches, patient_filter), top_k)

    async def delete_by_filter(self, patient_filter: PatientFilter) -> bool:
        partition = self._partitions.pop(patient_filter.patient_id, {})
        for chunk_id in partition:
            self._owners.pop(chunk_id, None)
        logger.info(
            f"{__name__}:delete_by_filter - Deleted {len(partition)} vectors",
            extra={"patient_id": patient_filter.patient_id},
        )
        return True

    async def delete_chunks(
        self,
        patient_filter: PatientFilter,
        document_name: str,
        keep_ids: Iterable[str] | None = None,
    ) -> int:
        keep = set(keep_ids or ())
        partition = self._partitions.get(patient_filter.patient_id, {})
        doomed = [
            chunk_id
            for chunk_id, (_, metadata) in partition.items()
            if metadata.document_name == document_name and chunk_id not in keep
        ]
        for chunk_id in doomed:
            del partition[chunk_id]
            self._owners.pop(chunk_id, None)
        return len(doomed)

    async def scan(self, patient_filter: PatientFilter) -> list[VectorMetadata]:
        partition = self._partitions.get(patient_filter.patient_id, {})
        return sorted(
            (metadata for _, metadata in partition.values()),
            key=lambda m: (m.document_name, m.chunk_index),
        )
