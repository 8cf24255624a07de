"""
Retrieval pipeline configuration settings.

Chunking parameters, ingestion batch size and context budget.

Dependencies: pydantic, pydantic_settings
System role: Chunking and retrieval orchestration configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalSettings(BaseSettings):
    """Chunking, ingestion and context assembly configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size: int = Field(default=500, description="Maximum chunk size in characters", gt=0)
    chunk_overlap: int = Field(
        default=50,
        description="Trailing characters of a closed chunk carried into the next",
        ge=0,
    )
    min_chunk_length: int = Field(
        default=50,
        description="Chunks shorter than this carry negligible retrieval value",
        ge=0,
    )
    max_chunks: int = Field(default=10_000, description="Hard cap on chunks per document", gt=0)
    max_text_chars: int = Field(
        default=50 * 1024 * 1024,
        description="Input text beyond this length is truncated before chunking",
        gt=0,
    )
    embed_batch_size: int = Field(
        default=10,
        description="Chunks embedded concurrently per batch",
        gt=0,
    )
    default_top_k: int = Field(default=5, description="Matches returned per query", gt=0)
    context_char_budget: int = Field(
        default=4000,
        description="Maximum characters of retrieved context injected into a prompt",
        gt=0,
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> "RetrievalSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self
