"""
Embedding provider configuration settings.

Controls the ordered provider chain, target dimensionality, per-provider
timeouts and credentials. API keys accept the conventional vendor variable
names (OPENAI_API_KEY, HUGGINGFACE_API_KEY, GOOGLE_API_KEY) as well as the
prefixed form.

Dependencies: pydantic, pydantic_settings
System role: Embedding chain configuration
"""

from typing import Annotated

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

SUPPORTED_PROVIDERS = ("openai", "huggingface", "gemini", "bedrock")
SUPPORTED_PAD_MODES = ("zero", "repeat")


class EmbeddingSettings(BaseSettings):
    """Embedding provider chain configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    provider_order: Annotated[list[str], NoDecode] = Field(
        default=["openai", "huggingface"],
        description="Network providers tried in order before the local fallback",
    )
    dimension: int = Field(
        default=1024,
        description="Target embedding dimension (must match the vector index)",
        gt=0,
    )
    pad_mode: str = Field(
        default="zero",
        description="Padding for short provider vectors: 'zero' or 'repeat'",
    )
    max_input_chars: int = Field(
        default=8000,
        description="Input text is truncated to this many characters before embedding",
        gt=0,
    )
    provider_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound on a single provider call",
        gt=0,
    )

    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("EMBEDDING_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_model: str = Field(default="text-embedding-3-small")

    huggingface_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("EMBEDDING_HUGGINGFACE_API_KEY", "HUGGINGFACE_API_KEY"),
    )
    huggingface_model: str = Field(default="sentence-transformers/all-MiniLM-L6-v2")

    google_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("EMBEDDING_GOOGLE_API_KEY", "GOOGLE_API_KEY"),
    )
    gemini_model: str = Field(default="models/gemini-embedding-001")

    bedrock_model_id: str = Field(default="amazon.titan-embed-text-v2:0")
    bedrock_region: str = Field(default="us-east-1")

    @field_validator("provider_order", mode="before")
    @classmethod
    def _split_provider_order(cls, value):
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        return [str(part).strip().lower() for part in value if str(part).strip()]

    @field_validator("provider_order")
    @classmethod
    def _check_provider_names(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in SUPPORTED_PROVIDERS]
        if unknown:
            raise ValueError(
                f"Unknown embedding providers {unknown}; supported: {list(SUPPORTED_PROVIDERS)}"
            )
        return value

    @field_validator("pad_mode")
    @classmethod
    def _check_pad_mode(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_PAD_MODES:
            raise ValueError(f"pad_mode must be one of {list(SUPPORTED_PAD_MODES)}")
        return value
