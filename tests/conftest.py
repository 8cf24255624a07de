"""
Shared test fixtures and configuration for entire test suite.

Provides: provider fakes, small-dimension settings, in-memory store and a
fully wired RetrievalService. No fixture touches the network.
Dependencies: pytest, patient_rag
System role: Test infrastructure and fixture management
"""

import pytest

from patient_rag.application.retrieval_service import RetrievalService
from patient_rag.boundary.embeddings.chain import EmbeddingProviderChain
from patient_rag.boundary.embeddings.providers import EmbeddingProvider, ProviderResult
from patient_rag.boundary.vdb.memory_store import InMemoryVectorStore
from patient_rag.configs import EmbeddingSettings, RetrievalSettings, Settings, VectorStoreSettings
from patient_rag.core.chunker import SentenceChunker
from patient_rag.core.context_builder import ContextBuilder
from patient_rag.models.retrieval import RetrievalMatch

TEST_DIMENSION = 64

_PROVIDER_ENV = (
    "OPENAI_API_KEY",
    "HUGGINGFACE_API_KEY",
    "GOOGLE_API_KEY",
    "EMBEDDING_OPENAI_API_KEY",
    "EMBEDDING_HUGGINGFACE_API_KEY",
    "EMBEDDING_GOOGLE_API_KEY",
    "EMBEDDING_PROVIDER_ORDER",
    "EMBEDDING_DIMENSION",
    "VECTOR_STORE_DIMENSION",
    "VECTOR_STORE_STORE_TYPE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolate_provider_env(monkeypatch):
    """Ensure no real credentials or overrides leak into tests."""
    for name in _PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)


class FakeProvider(EmbeddingProvider):
    """Scripted provider recording every text it was asked to embed."""

    def __init__(self, name: str, vector: list[float] | None = None, reason: str = "down") -> None:
        self.name = name
        self._vector = vector
        self._reason = reason
        self.calls: list[str] = []

    async def try_embed(self, text: str) -> ProviderResult:
        self.calls.append(text)
        if self._vector is None:
            return ProviderResult.unavailable(self.name, self._reason)
        return ProviderResult.success(self.name, list(self._vector))


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a small index dimension and no network providers."""
    return Settings(
        embeddings=EmbeddingSettings(dimension=TEST_DIMENSION, provider_order=[]),
        vector_store=VectorStoreSettings(dimension=TEST_DIMENSION),
        retrieval=RetrievalSettings(),
    )


@pytest.fixture
def local_embedder() -> EmbeddingProviderChain:
    """Chain with no network providers, so the hash fallback always answers."""
    return EmbeddingProviderChain(providers=[], dimension=TEST_DIMENSION)


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore(dimension=TEST_DIMENSION)


@pytest.fixture
def retrieval_service(test_settings, local_embedder, memory_store) -> RetrievalService:
    """RetrievalService wired to the in-memory store and local embeddings."""
    return RetrievalService(
        vector_store=memory_store,
        embedder=local_embedder,
        chunker=SentenceChunker(),
        context_builder=ContextBuilder(char_budget=4000),
        settings=test_settings,
    )


def make_match(
    chunk_id: str,
    content: str,
    document_name: str = "notes.txt",
    score: float = 0.5,
    patient_id: str = "p1",
) -> RetrievalMatch:
    return RetrievalMatch(
        chunk_id=chunk_id,
        score=score,
        content=content,
        document_name=document_name,
        patient_id=patient_id,
    )


@pytest.fixture
def match_factory():
    """Factory for RetrievalMatch instances."""
    return make_match


@pytest.fixture
def fake_provider():
    """FakeProvider class, for tests that build several providers."""
    return FakeProvider
