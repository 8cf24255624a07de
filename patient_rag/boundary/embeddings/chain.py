"""
Embedding provider chain with guaranteed local fallback.

Tries each configured provider in order; the first usable vector wins and is
reconciled to the target dimension. When every provider is unavailable the
deterministic hash embedding is used, so embedding only fails if that final
step fails too.

Dependencies: patient_rag.boundary.embeddings.*, patient_rag.configs
System role: Single embedding entry point for ingestion and query
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from patient_rag.boundary.embeddings.dimension import reconcile_dimension
from patient_rag.boundary.embeddings.local_embeddings import hash_embedding
from patient_rag.boundary.embeddings.providers import EmbeddingProvider, build_providers
from patient_rag.configs.embeddings import EmbeddingSettings
from patient_rag.core.exceptions import EmbeddingError, InvalidParameterError

logger = logging.getLogger(__name__)

LOCAL_FALLBACK_NAME = "local-hash"


@dataclass(frozen=True)
class EmbeddingOutcome:
    """Embedding vector plus the provider that produced it."""

    vector: list[float]
    provider: str
    native_dimension: int


class EmbeddingProviderChain:
    """
    Ordered provider chain producing fixed-dimension vectors.

    Example:
        >>> chain = EmbeddingProviderChain.from_settings(EmbeddingSettings())
        >>> vector = await chain.embed("Troponin I elevated at 2.4")
        >>> len(vector)
        1024
    """

    def __init__(
        self,
        providers: Sequence[EmbeddingProvider] = (),
        dimension: int = 1024,
        pad_mode: str = "zero",
        max_input_chars: int = 8000,
        fallback: Callable[[str, int], list[float]] = hash_embedding,
    ) -> None:
        if dimension <= 0:
            raise InvalidParameterError("dimension must be positive", field="dimension")
        self._providers = list(providers)
        self.dimension = dimension
        self._pad_mode = pad_mode
        self._max_input_chars = max_input_chars
        self._fallback = fallback

    @classmethod
    def from_settings(cls, settings: EmbeddingSettings) -> "EmbeddingProviderChain":
        return cls(
            providers=build_providers(settings),
            dimension=settings.dimension,
            pad_mode=settings.pad_mode,
            max_input_chars=settings.max_input_chars,
        )

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self._providers] + [LOCAL_FALLBACK_NAME]

    async def embed(self, text: str, target_dim: int | None = None) -> list[float]:
        """
        Embed text to exactly target_dim components.

        Args:
            text: Text to embed (truncated to max_input_chars)
            target_dim: Output dimension, defaults to the chain dimension

        Returns:
            list[float]: Embedding vector

        Raises:
            EmbeddingError: Every provider and the local fallback failed
        """
        outcome = await self.embed_detailed(text, target_dim)
        return outcome.vector

    async def embed_detailed(self, text: str, target_dim: int | None = None) -> EmbeddingOutcome:
        """Embed text and report which provider produced the vector."""
        dim = target_dim if target_dim is not None else self.dimension
        if dim <= 0:
            raise InvalidParameterError("target_dim must be positive", field="target_dim")

        text = text or ""
        if len(text) > self._max_input_chars:
            text = text[: self._max_input_chars]

        for provider in self._providers:
            try:
                result = await provider.try_embed(text)
            except Exception as e:
                logger.warning(
                    f"{__name__}:embed - Provider {provider.name} raised "
                    f"{type(e).__name__}: {e}, trying next",
                    extra={"provider": provider.name},
                )
                continue
            if not result.ok:
                logger.info(
                    f"{__name__}:embed - Provider {provider.name} unavailable "
                    f"({result.reason}), trying next"
                )
                continue

            native = len(result.vector)
            if native != dim:
                logger.debug(
                    f"{__name__}:embed - Reconciling {provider.name} vector {native} -> {dim}"
                )
            return EmbeddingOutcome(
                vector=reconcile_dimension(result.vector, dim, self._pad_mode),
                provider=provider.name,
                native_dimension=native,
            )

        try:
            vector = self._fallback(text, dim)
        except Exception as e:
            logger.error(f"{__name__}:embed - Local fallback failed: {type(e).__name__}: {e}")
            raise EmbeddingError(
                "All embedding providers failed, including local fallback",
                details={"providers": self.provider_names, "error": str(e)},
            ) from e

        if len(vector) != dim:
            raise EmbeddingError(
                "Local fallback produced a vector of the wrong dimension",
                details={"expected": dim, "actual": len(vector)},
            )

        logger.info(f"{__name__}:embed - Using {LOCAL_FALLBACK_NAME} fallback")
        return EmbeddingOutcome(vector=list(vector), provider=LOCAL_FALLBACK_NAME, native_dimension=dim)
