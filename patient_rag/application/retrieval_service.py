"""
Patient retrieval service orchestrator.

Coordinates chunking, embedding and vector storage for ingestion, and
embedding plus patient-filtered search for queries. Every read, write and
delete is scoped to a single patient.

Ingestion runs received -> chunked -> embedding -> stored -> done (or failed).
Chunks are embedded concurrently in batches and each batch is written as soon
as it is embedded, so a failure late in a document still leaves the earlier
chunks searchable. The caller keeps the original content and may re-submit;
chunk ids are deterministic, so re-submission overwrites rather than
duplicates.

Dependencies: patient_rag.boundary, patient_rag.core, patient_rag.configs
System role: Retrieval orchestration
"""

import asyncio
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from patient_rag.boundary.embeddings.chain import EmbeddingOutcome, EmbeddingProviderChain
from patient_rag.boundary.vdb.base import VectorStoreAdapter
from patient_rag.boundary.vdb.vector_schemas import PatientFilter, VectorMetadata, VectorRecord
from patient_rag.boundary.vdb.vector_store_factory import get_vector_store
from patient_rag.configs.settings import Settings, get_settings
from patient_rag.core.chunker import SentenceChunker
from patient_rag.core.context_builder import ContextBuilder
from patient_rag.core.exceptions import EmbeddingError, InvalidParameterError
from patient_rag.models.chunk import DocumentChunk
from patient_rag.models.retrieval import (
    DocumentSummary,
    IngestionResult,
    IngestionStatus,
    PatientStats,
    RAGContext,
    RetrievalMatch,
)
from patient_rag.observability.log_utils import log_exception_with_context, safe_log_value

logger = logging.getLogger(__name__)


def _log_transition(status: IngestionStatus, extra: dict) -> None:
    logger.debug(
        f"{__name__}:add_document - Ingestion {status.value}",
        extra={**extra, "status": status.value},
    )

def _patient_filter(patient_id: str) -> PatientFilter:
    try:
        return PatientFilter(patient_id=patient_id)
    except ValidationError as e:
        raise InvalidParameterError("patient_id must be a non-empty string", field="patient_id") from e


class RetrievalService:
    """
    Patient retrieval service orchestrator.

    Collaborators are injected for tests and lazily built from settings
    otherwise.
    """

    def __init__(
        self,
        vector_store: VectorStoreAdapter | None = None,
        embedder: EmbeddingProviderChain | None = None,
        chunker: SentenceChunker | None = None,
        context_builder: ContextBuilder | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize retrieval service.

        Args:
            vector_store: Optional adapter (created from settings if None)
            embedder: Optional provider chain (created from settings if None)
            chunker: Optional chunker (created from settings if None)
            context_builder: Optional context builder (created from settings if None)
            settings: Optional settings (get_settings() if None)
        """
        self._settings = settings
        self._vector_store = vector_store
        self._embedder = embedder
        self._chunker = chunker
        self._context_builder = context_builder

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def vector_store(self) -> VectorStoreAdapter:
        """Lazy-load vector store to avoid initialization cost."""
        if self._vector_store is None:
            self._vector_store = get_vector_store(self.settings.vector_store)
        return self._vector_store

    @property
    def embedder(self) -> EmbeddingProviderChain:
        if self._embedder is None:
            self._embedder = EmbeddingProviderChain.from_settings(self.settings.embeddings)
        return self._embedder

    @property
    def chunker(self) -> SentenceChunker:
        if self._chunker is None:
            self._chunker = SentenceChunker.from_settings(self.settings.retrieval)
        return self._chunker

    @property
    def context_builder(self) -> ContextBuilder:
        if self._context_builder is None:
            self._context_builder = ContextBuilder(self.settings.retrieval.context_char_budget)
        return self._context_builder

    async def add_document(self, patient_id: str, document_name: str, content: str) -> IngestionResult:
        """
        Chunk, embed and store a document for a patient.

        Args:
            patient_id: Owning patient
            document_name: Source document name (re-using a name replaces that document)
            content: Extracted document text

        Returns:
            IngestionResult: success is True iff at least one chunk was stored

        Raises:
            InvalidParameterError: Empty patient id, document name or content
            DimensionMismatchError: Embedder and index dimensions disagree
        """
        patient_filter = _patient_filter(patient_id)
        if not document_name or not document_name.strip():
            raise InvalidParameterError("document_name must be a non-empty string", field="document_name")
        log_extra = {"patient_id": patient_id, "document_name": document_name}
        _log_transition(IngestionStatus.RECEIVED, log_extra)

        chunks = self.chunker.build_chunks(patient_id, document_name, content)
        total = len(chunks)

        if not chunks:
            logger.info(
                f"{__name__}:add_document - No indexable chunks",
                extra=log_extra,
            )
            _log_transition(IngestionStatus.FAILED, log_extra)
            return IngestionResult(
                success=False,
                total_chunks=0,
                status=IngestionStatus.FAILED,
                error="Document is too short to index",
            )

        _log_transition(IngestionStatus.CHUNKED, log_extra)
        logger.info(
            f"{__name__}:add_document - Processing {total} chunks",
            extra={"patient_id": patient_id, "document_name": document_name},
        )

        batch_size = self.settings.retrieval.embed_batch_size
        stored = 0
        failed: list[int] = []

        _log_transition(IngestionStatus.EMBEDDING, log_extra)
        for start in range(0, total, batch_size):
            batch = chunks[start:start + batch_size]
            records, batch_failed = await self._embed_batch(batch)
            failed.extend(batch_failed)
            if not records:
                continue

            written = await self.vector_store.upsert(records)
            stored += written
            if written < len(records):
                failed.extend(record.metadata.chunk_index for record in records[written:])

        if stored:
            _log_transition(IngestionStatus.STORED, log_extra)

        # Leftovers of a longer earlier version are only removed once the new one is complete.
        if stored == total:
            pruned = await self.vector_store.delete_chunks(
                patient_filter,
                document_name,
                keep_ids=[chunk.id for chunk in chunks],
            )
            if pruned:
                logger.info(
                    f"{__name__}:add_document - Pruned {pruned} stale chunks",
                    extra={"patient_id": patient_id, "document_name": document_name},
                )

        status = IngestionStatus.DONE if stored else IngestionStatus.FAILED
        _log_transition(status, log_extra)

        error = None
        if failed:
            error = f"Stored {stored} of {total} chunks"
            logger.warning(
                f"{__name__}:add_document - {error}",
                extra={"patient_id": patient_id, "document_name": document_name},
            )

        return IngestionResult(
            success=stored > 0,
            chunks_stored=stored,
            total_chunks=total,
            status=status,
            error=error,
            failed_chunk_indexes=sorted(failed),
        )

    async def _embed_batch(self, batch: Sequence[DocumentChunk]) -> tuple[list[VectorRecord], list[int]]:
        outcomes = await asyncio.gather(
            *(self.embedder.embed_detailed(chunk.text) for chunk in batch),
            return_exceptions=True,
        )

        records: list[VectorRecord] = []
        failed: list[int] = []
        for chunk, outcome in zip(batch, outcomes):
            if isinstance(outcome, EmbeddingError):
                log_exception_with_context(
                    logger,
                    f"{__name__}:add_document - Embedding failed for chunk {chunk.chunk_index}",
                    outcome,
                    patient_id=chunk.patient_id,
                    document_name=chunk.document_name,
                )
                failed.append(chunk.chunk_index)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            records.append(self._to_record(chunk, outcome))
        return records, failed

    @staticmethod
    def _to_record(chunk: DocumentChunk, outcome: EmbeddingOutcome) -> VectorRecord:
        return VectorRecord(
            id=chunk.id,
            vector=outcome.vector,
            metadata=VectorMetadata(
                chunk_id=chunk.id,
                patient_id=chunk.patient_id,
                document_name=chunk.document_name,
                chunk_index=chunk.chunk_index,
                total_chunks=chunk.total_chunks,
                content=chunk.text,
                created_at=chunk.created_at,
                embedding_provider=outcome.provider,
            ),
        )

    async def query_relevant_content(
        self,
        patient_id: str,
        query: str,
        top_k: int | None = None,
    ) -> list[RetrievalMatch]:
        """
        Find the chunks of one patient most similar to a query.

        Args:
            patient_id: Patient whose documents are searched
            query: Natural-language query
            top_k: Number of matches (defaults to configured default_top_k)

        Returns:
            list[RetrievalMatch]: Best first; empty when nothing matches or the
            backend is unavailable

        Raises:
            InvalidParameterError: Empty patient id or top_k < 1
        """
        patient_filter = _patient_filter(patient_id)
        if top_k is None:
            top_k = self.settings.retrieval.default_top_k
        if top_k < 1:
            raise InvalidParameterError("top_k must be at least 1", field="top_k", details={"top_k": top_k})

        if not query or not query.strip():
            return []

        vector = await self.embedder.embed(query)
        matches = await self.vector_store.query(vector, top_k, patient_filter)

        logger.info(
            f"{__name__}:query_relevant_content - Found {len(matches)} matches",
            extra={"patient_id": patient_id, "query_preview": safe_log_value(query), "k": top_k},
        )
        return matches

    async def get_stats(self, patient_id: str) -> PatientStats:
        """Count a patient's stored documents and chunks."""
        entries = await self.vector_store.scan(_patient_filter(patient_id))
        return PatientStats(
            document_count=len({entry.document_name for entry in entries}),
            chunk_count=len(entries),
        )

    async def list_documents(self, patient_id: str) -> list[DocumentSummary]:
        """
        List a patient's stored documents.

        Returns:
            list[DocumentSummary]: Sorted by document name, with chunk counts
            and the earliest chunk timestamp
        """
        entries = await self.vector_store.scan(_patient_filter(patient_id))
        grouped: dict[str, list[VectorMetadata]] = {}
        for entry in entries:
            grouped.setdefault(entry.document_name, []).append(entry)

        return [
            DocumentSummary(
                document_name=name,
                chunk_count=len(group),
                created_at=min(entry.created_at for entry in group),
            )
            for name, group in sorted(grouped.items())
        ]

    async def remove_patient_documents(self, patient_id: str) -> bool:
        """Delete every stored chunk of a patient."""
        success = await self.vector_store.delete_by_filter(_patient_filter(patient_id))
        logger.info(
            f"{__name__}:remove_patient_documents - success={success}",
            extra={"patient_id": patient_id},
        )
        return success

    async def remove_document(self, patient_id: str, document_name: str) -> bool:
        """
        Delete one document of a patient.

        Returns:
            bool: True when at least one chunk was removed
        """
        patient_filter = _patient_filter(patient_id)
        if not document_name or not document_name.strip():
            raise InvalidParameterError("document_name must be a non-empty string", field="document_name")

        removed = await self.vector_store.delete_chunks(patient_filter, document_name)
        logger.info(
            f"{__name__}:remove_document - Removed {removed} chunks",
            extra={"patient_id": patient_id, "document_name": document_name},
        )
        return removed > 0

    def build_context(self, matches: Sequence[RetrievalMatch]) -> RAGContext:
        """Assemble a bounded prompt context from ranked matches."""
        return self.context_builder.build(matches)
