"""Embedding providers, the provider chain and the offline fallback."""

from patient_rag.boundary.embeddings.chain import (
    LOCAL_FALLBACK_NAME,
    EmbeddingOutcome,
    EmbeddingProviderChain,
)
from patient_rag.boundary.embeddings.dimension import reconcile_dimension
from patient_rag.boundary.embeddings.local_embeddings import LocalHashEmbeddings, hash_embedding
from patient_rag.boundary.embeddings.providers import (
    EmbeddingProvider,
    LangChainEmbeddingProvider,
    ProviderResult,
    ProviderStatus,
    UnconfiguredProvider,
    build_providers,
)

__all__ = [
    "LOCAL_FALLBACK_NAME",
    "EmbeddingOutcome",
    "EmbeddingProvider",
    "EmbeddingProviderChain",
    "LangChainEmbeddingProvider",
    "LocalHashEmbeddings",
    "ProviderResult",
    "ProviderStatus",
    "UnconfiguredProvider",
    "build_providers",
    "hash_embedding",
    "reconcile_dimension",
]
