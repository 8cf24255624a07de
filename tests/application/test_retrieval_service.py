"""
Test suite for RetrievalService.

Runs the full pipeline against the in-memory store and local embeddings, and
against an S3 Vectors store whose client always fails to check degradation.

System role: Verification of retrieval orchestration layer
"""

import logging
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from patient_rag.application.retrieval_service import RetrievalService
from patient_rag.boundary.embeddings.chain import LOCAL_FALLBACK_NAME, EmbeddingProviderChain
from patient_rag.boundary.embeddings.providers import EmbeddingProvider, ProviderResult
from patient_rag.boundary.vdb.s3_vectors_store import S3VectorsStore
from patient_rag.boundary.vdb.vector_schemas import PatientFilter
from patient_rag.core.chunker import SentenceChunker
from patient_rag.core.exceptions import EmbeddingError, InvalidParameterError
from patient_rag.models.retrieval import IngestionStatus

LAB_REPORT = (
    "Troponin I elevated at 2.4 ng/mL. Repeat troponin in six hours and monitor ECG for dynamic changes."
)
NURSING_NOTE = (
    "Patient ambulating independently in the corridor. Diet tolerated well, no nausea reported overnight."
)
IMAGING_REPORT = (
    "Chest radiograph shows mild bibasilar atelectasis. No pneumothorax or pleural effusion identified."
)


def _long_document(sentences: int) -> str:
    return " ".join(
        f"Progress note {i}: hemodynamically stable on current regimen, continue telemetry monitoring."
        for i in range(sentences)
    )


class FlakyChain(EmbeddingProviderChain):
    """Chain that fails for any text containing a marker word."""

    def __init__(self, marker: str, dimension: int) -> None:
        super().__init__(providers=[], dimension=dimension)
        self.marker = marker

    async def embed_detailed(self, text, target_dim=None):
        if self.marker in text:
            raise EmbeddingError("simulated failure")
        return await super().embed_detailed(text, target_dim)


class TestAddDocument:
    """Test suite for ingestion."""

    @pytest.mark.asyncio
    async def test_should_store_every_chunk(self, retrieval_service: RetrievalService) -> None:
        # Act
        result = await retrieval_service.add_document("p1", "notes.txt", _long_document(20))

        # Assert
        assert result.success is True
        assert result.total_chunks > 1
        assert result.chunks_stored == result.total_chunks
        assert result.status is IngestionStatus.DONE
        assert result.failed_chunk_indexes == []
        assert result.error is None

    @pytest.mark.asyncio
    async def test_reingestion_should_not_change_stats(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        await retrieval_service.add_document("p1", "notes.txt", _long_document(20))
        before = await retrieval_service.get_stats("p1")

        # Act
        await retrieval_service.add_document("p1", "notes.txt", _long_document(20))
        after = await retrieval_service.get_stats("p1")

        # Assert
        assert after == before
        assert after.document_count == 2

    @pytest.mark.asyncio
    async def test_shorter_reingestion_should_prune_stale_chunks(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        long_result = await retrieval_service.add_document("p1", "notes.txt", _long_document(30))

        # Act
        short_result = await retrieval_service.add_document("p1", "notes.txt", _long_document(3))

        # Assert
        stats = await retrieval_service.get_stats("p1")
        assert short_result.total_chunks < long_result.total_chunks
        assert stats.chunk_count == short_result.total_chunks

    @pytest.mark.asyncio
    async def test_too_short_document_should_fail_without_storing(self, retrieval_service: RetrievalService) -> None:
        # Act
        result = await retrieval_service.add_document("p1", "tiny.txt", "BP stable.")

        # Assert
        assert result.success is False
        assert result.status is IngestionStatus.FAILED
        assert result.total_chunks == 0
        assert (await retrieval_service.get_stats("p1")).chunk_count == 0

    @pytest.mark.asyncio
    async def test_successful_ingestion_should_walk_every_state(
        self, retrieval_service: RetrievalService, caplog
    ) -> None:
        # Arrange
        caplog.set_level(logging.DEBUG, logger="patient_rag.application.retrieval_service")

        # Act
        result = await retrieval_service.add_document("p1", "notes.txt", _long_document(5))

        # Assert
        states = [r.status for r in caplog.records if hasattr(r, "status")]
        assert states == ["received", "chunked", "embedding", "stored", "done"]
        assert result.status is IngestionStatus.DONE

    @pytest.mark.asyncio
    async def test_rejected_document_should_report_failed_after_received(
        self, retrieval_service: RetrievalService, caplog
    ) -> None:
        caplog.set_level(logging.DEBUG, logger="patient_rag.application.retrieval_service")

        result = await retrieval_service.add_document("p1", "tiny.txt", "BP stable.")

        states = [r.status for r in caplog.records if hasattr(r, "status")]
        assert states == ["received", "failed"]
        assert result.status is IngestionStatus.FAILED

    @pytest.mark.asyncio
    async def test_should_record_embedding_provider(self, retrieval_service, memory_store) -> None:
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)

        entries = await memory_store.scan(PatientFilter(patient_id="p1"))

        assert {entry.embedding_provider for entry in entries} == {LOCAL_FALLBACK_NAME}

    @pytest.mark.asyncio
    async def test_partial_embedding_failure_should_report_failed_chunks(self, test_settings, memory_store) -> None:
        # Arrange
        service = RetrievalService(
            vector_store=memory_store,
            embedder=FlakyChain("Progress note 5:", dimension=64),
            chunker=SentenceChunker(chunk_size=100, overlap=10),
            settings=test_settings,
        )

        # Act
        result = await service.add_document("p1", "notes.txt", _long_document(10))

        # Assert
        assert result.success is True
        assert result.failed_chunk_indexes
        assert result.chunks_stored == result.total_chunks - len(result.failed_chunk_indexes)
        assert result.error is not None

    @pytest.mark.asyncio
    async def test_raising_provider_should_not_fail_ingestion(self, test_settings, memory_store) -> None:
        # Arrange
        class ResetProvider(EmbeddingProvider):
            name = "openai"

            async def try_embed(self, text: str) -> ProviderResult:
                raise ConnectionError("socket reset")

        service = RetrievalService(
            vector_store=memory_store,
            embedder=EmbeddingProviderChain([ResetProvider()], dimension=64),
            chunker=SentenceChunker(),
            settings=test_settings,
        )

        # Act
        result = await service.add_document("p1", "labs.txt", LAB_REPORT)

        # Assert
        assert result.success is True
        assert result.failed_chunk_indexes == []
        entries = await memory_store.scan(PatientFilter(patient_id="p1"))
        assert {entry.embedding_provider for entry in entries} == {LOCAL_FALLBACK_NAME}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("patient_id", "document_name", "content"),
        [("", "a.txt", LAB_REPORT), ("p1", "", LAB_REPORT), ("p1", "a.txt", "   ")],
    )
    async def test_invalid_input_should_raise(
        self, retrieval_service: RetrievalService, patient_id: str, document_name: str, content: str
    ) -> None:
        with pytest.raises(InvalidParameterError):
            await retrieval_service.add_document(patient_id, document_name, content)


class TestQueryRelevantContent:
    """Test suite for similarity queries."""

    @pytest.mark.asyncio
    async def test_troponin_end_to_end(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)

        # Act
        results = await retrieval_service.query_relevant_content("p1", "troponin level")

        # Assert
        assert results
        assert "Troponin I elevated at 2.4" in results[0].content
        assert results[0].document_name == "labs.txt"

    @pytest.mark.asyncio
    async def test_most_similar_document_should_rank_first(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        await retrieval_service.add_document("p1", "nursing.txt", NURSING_NOTE)
        await retrieval_service.add_document("p1", "imaging.txt", IMAGING_REPORT)

        # Act
        results = await retrieval_service.query_relevant_content(
            "p1", "Troponin I elevated at 2.4 ng/mL, repeat troponin", top_k=3
        )

        # Assert
        assert [r.document_name for r in results][0] == "labs.txt"
        assert results == sorted(results, key=lambda r: (-r.score, r.chunk_id))

    @pytest.mark.asyncio
    async def test_should_never_return_another_patients_chunks(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        await retrieval_service.add_document("p2", "nursing.txt", NURSING_NOTE)

        # Act
        results = await retrieval_service.query_relevant_content("p2", "troponin elevated", top_k=10)

        # Assert
        assert results
        assert all(r.patient_id == "p2" for r in results)
        assert all("Troponin" not in r.content for r in results)

    @pytest.mark.asyncio
    async def test_blank_query_should_return_empty(self, retrieval_service: RetrievalService) -> None:
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)

        assert await retrieval_service.query_relevant_content("p1", "   ") == []

    @pytest.mark.asyncio
    async def test_patient_without_documents_should_get_empty(self, retrieval_service: RetrievalService) -> None:
        assert await retrieval_service.query_relevant_content("nobody", "troponin") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("patient_id", "top_k"), [("", 5), ("p1", 0), ("p1", -3)])
    async def test_invalid_parameters_should_raise(
        self, retrieval_service: RetrievalService, patient_id: str, top_k: int
    ) -> None:
        with pytest.raises(InvalidParameterError):
            await retrieval_service.query_relevant_content(patient_id, "troponin", top_k=top_k)


class TestDocumentManagement:
    """Test suite for stats, listing and deletion."""

    @pytest.mark.asyncio
    async def test_get_stats_should_count_documents_and_chunks(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        first = await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        second = await retrieval_service.add_document("p1", "notes.txt", _long_document(20))

        # Act
        stats = await retrieval_service.get_stats("p1")

        # Assert
        assert stats.document_count == 2
        assert stats.chunk_count == first.total_chunks + second.total_chunks

    @pytest.mark.asyncio
    async def test_list_documents_should_summarize_each_document(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "notes.txt", _long_document(20))
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)

        # Act
        documents = await retrieval_service.list_documents("p1")

        # Assert
        assert [d.document_name for d in documents] == ["labs.txt", "notes.txt"]
        assert documents[0].chunk_count == 1
        assert documents[1].chunk_count > 1
        assert all(d.created_at is not None for d in documents)

    @pytest.mark.asyncio
    async def test_remove_document_should_leave_other_documents(self, retrieval_service: RetrievalService) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        await retrieval_service.add_document("p1", "nursing.txt", NURSING_NOTE)

        # Act
        removed = await retrieval_service.remove_document("p1", "labs.txt")

        # Assert
        assert removed is True
        assert [d.document_name for d in await retrieval_service.list_documents("p1")] == ["nursing.txt"]
        assert await retrieval_service.remove_document("p1", "labs.txt") is False

    @pytest.mark.asyncio
    async def test_remove_patient_documents_should_only_affect_that_patient(
        self, retrieval_service: RetrievalService
    ) -> None:
        # Arrange
        await retrieval_service.add_document("p1", "labs.txt", LAB_REPORT)
        await retrieval_service.add_document("p2", "labs.txt", LAB_REPORT)

        # Act
        success = await retrieval_service.remove_patient_documents("p1")

        # Assert
        assert success is True
        assert (await retrieval_service.get_stats("p1")).chunk_count == 0
        assert (await retrieval_service.get_stats("p2")).chunk_count == 1

    def test_build_context_should_delegate_to_builder(self, retrieval_service, match_factory) -> None:
        # Arrange
        matches = [match_factory("c1", "Troponin I elevated.", "labs.txt")]

        # Act
        context = retrieval_service.build_context(matches)

        # Assert
        assert context.context == "Troponin I elevated."
        assert context.sources == ["labs.txt"]


class TestBackendDown:
    """Test suite for graceful degradation when the vector backend is unreachable."""

    @pytest.fixture
    def degraded_service(self, test_settings, local_embedder) -> RetrievalService:
        client = MagicMock()
        denied = ClientError({"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetIndex")
        client.get_index.side_effect = denied
        return RetrievalService(
            vector_store=S3VectorsStore(dimension=64, client=client),
            embedder=local_embedder,
            chunker=SentenceChunker(),
            settings=test_settings,
        )

    @pytest.mark.asyncio
    async def test_add_document_should_report_failure(self, degraded_service: RetrievalService) -> None:
        # Act
        result = await degraded_service.add_document("p1", "labs.txt", LAB_REPORT)

        # Assert
        assert result.success is False
        assert result.chunks_stored == 0
        assert result.status is IngestionStatus.FAILED
        assert result.failed_chunk_indexes == list(range(result.total_chunks))

    @pytest.mark.asyncio
    async def test_reads_and_deletes_should_degrade(self, degraded_service: RetrievalService) -> None:
        assert await degraded_service.query_relevant_content("p1", "troponin") == []
        assert (await degraded_service.get_stats("p1")).chunk_count == 0
        assert await degraded_service.list_documents("p1") == []
        assert await degraded_service.remove_patient_documents("p1") is False
        assert await degraded_service.remove_document("p1", "labs.txt") is False
