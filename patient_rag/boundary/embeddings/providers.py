"""
Remote embedding providers behind a uniform, non-raising interface.

Each provider wraps a LangChain Embeddings client. try_embed never raises:
missing credentials, timeouts, HTTP errors and malformed responses all come
back as an UNAVAILABLE result so the chain can move on to the next provider.

Dependencies: langchain_openai, langchain_huggingface, langchain_google_genai,
              langchain_aws, numpy
System role: Embedding provider adapters
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import numpy as np
from dotenv import load_dotenv
from langchain_aws import BedrockEmbeddings
from langchain_core.embeddings import Embeddings
from langchain_google_genai import GoogleGenerativeAIEmbeddings
from langchain_huggingface import HuggingFaceEndpointEmbeddings
from langchain_openai import OpenAIEmbeddings

from patient_rag.configs.embeddings import EmbeddingSettings
from patient_rag.core.exceptions import ProviderUnavailableError

load_dotenv()
logger = logging.getLogger(__name__)


class ProviderStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of a single provider attempt."""

    provider: str
    status: ProviderStatus
    vector: list[float] | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ProviderStatus.OK and bool(self.vector)

    @classmethod
    def success(cls, provider: str, vector: list[float]) -> "ProviderResult":
        return cls(provider=provider, status=ProviderStatus.OK, vector=vector)

    @classmethod
    def unavailable(cls, provider: str, reason: str) -> "ProviderResult":
        return cls(provider=provider, status=ProviderStatus.UNAVAILABLE, reason=reason)


class EmbeddingProvider(ABC):
    """A single link of the embedding provider chain."""

    name: str

    @abstractmethod
    async def try_embed(self, text: str) -> ProviderResult:
        """Embed text, reporting failure as an UNAVAILABLE result."""


class UnconfiguredProvider(EmbeddingProvider):
    """Provider without credentials. Never touches the network."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self._reason = reason

    async def try_embed(self, text: str) -> ProviderResult:
        return ProviderResult.unavailable(self.name, self._reason)


def _coerce_vector(raw: object) -> list[float]:
    """Normalize a provider response to a flat list of finite floats."""
    try:
        values = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ProviderUnavailableError("Provider returned a non-numeric embedding") from e

    # Feature-extraction endpoints may answer with a batch of one.
    if values.ndim == 2 and values.shape[0] >= 1:
        values = values[0]
    if values.ndim != 1 or values.size == 0:
        raise ProviderUnavailableError(
            "Provider returned a malformed embedding", details={"shape": list(values.shape)}
        )
    if not np.all(np.isfinite(values)):
        raise ProviderUnavailableError("Provider returned non-finite embedding values")
    return values.tolist()


class LangChainEmbeddingProvider(EmbeddingProvider):
    """
    Provider backed by a LangChain Embeddings client.

    The client is built lazily on first use so that constructing the chain
    never performs network or credential lookups.
    """

    def __init__(
        self,
        name: str,
        client_factory: Callable[[], Embeddings],
        timeout_seconds: float = 10.0,
    ) -> None:
        self.name = name
        self._client_factory = client_factory
        self._client: Embeddings | None = None
        self._timeout_seconds = timeout_seconds

    def _get_client(self) -> Embeddings:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except Exception as e:
                raise ProviderUnavailableError(
                    f"Could not initialize {self.name} embeddings client",
                    provider=self.name,
                    details={"error": str(e)},
                ) from e
        return self._client

    async def _embed(self, text: str) -> list[float]:
        client = self._get_client()
        raw = await client.aembed_query(text)
        return _coerce_vector(raw)

    async def try_embed(self, text: str) -> ProviderResult:
        try:
            vector = await asyncio.wait_for(self._embed(text), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"{__name__}:try_embed - {self.name} timed out after {self._timeout_seconds}s"
            )
            return ProviderResult.unavailable(self.name, f"timed out after {self._timeout_seconds}s")
        except Exception as e:
            # SDKs raise their own HTTP/auth error types; all mean "try the next provider".
            logger.warning(
                f"{__name__}:try_embed - {self.name} failed: {type(e).__name__}: {e}",
                extra={"provider": self.name},
            )
            return ProviderResult.unavailable(self.name, f"{type(e).__name__}: {e}")
        return ProviderResult.success(self.name, vector)


def _openai_provider(settings: EmbeddingSettings) -> EmbeddingProvider:
    if settings.openai_api_key is None:
        return UnconfiguredProvider("openai", "OPENAI_API_KEY not set")
    return LangChainEmbeddingProvider(
        "openai",
        lambda: OpenAIEmbeddings(
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            max_retries=1,
            timeout=settings.provider_timeout_seconds,
        ),
        timeout_seconds=settings.provider_timeout_seconds,
    )


def _huggingface_provider(settings: EmbeddingSettings) -> EmbeddingProvider:
    if settings.huggingface_api_key is None:
        return UnconfiguredProvider("huggingface", "HUGGINGFACE_API_KEY not set")
    return LangChainEmbeddingProvider(
        "huggingface",
        lambda: HuggingFaceEndpointEmbeddings(
            model=settings.huggingface_model,
            huggingfacehub_api_token=settings.huggingface_api_key.get_secret_value(),
        ),
        timeout_seconds=settings.provider_timeout_seconds,
    )


def _gemini_provider(settings: EmbeddingSettings) -> EmbeddingProvider:
    if settings.google_api_key is None:
        return UnconfiguredProvider("gemini", "GOOGLE_API_KEY not set")
    return LangChainEmbeddingProvider(
        "gemini",
        lambda: GoogleGenerativeAIEmbeddings(
            model=settings.gemini_model,
            google_api_key=settings.google_api_key,
        ),
        timeout_seconds=settings.provider_timeout_seconds,
    )


def _bedrock_provider(settings: EmbeddingSettings) -> EmbeddingProvider:
    # Credentials come from the default AWS chain, resolved when the client is built.
    return LangChainEmbeddingProvider(
        "bedrock",
        lambda: BedrockEmbeddings(
            model_id=settings.bedrock_model_id,
            region_name=settings.bedrock_region,
        ),
        timeout_seconds=settings.provider_timeout_seconds,
    )


PROVIDER_BUILDERS: dict[str, Callable[[EmbeddingSettings], EmbeddingProvider]] = {
    "openai": _openai_provider,
    "huggingface": _huggingface_provider,
    "gemini": _gemini_provider,
    "bedrock": _bedrock_provider,
}


def build_providers(settings: EmbeddingSettings) -> list[EmbeddingProvider]:
    """
    Build providers in configured preference order.

    Args:
        settings: Embedding settings (provider_order, credentials, models)

    Returns:
        list[EmbeddingProvider]: One provider per configured name
    """
    providers = [PROVIDER_BUILDERS[name](settings) for name in settings.provider_order]
    logger.info(
        f"{__name__}:build_providers - Provider order: "
        f"{[p.name for p in providers]}"
    )
    return providers
