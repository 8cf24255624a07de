"""
Vector store configuration settings.

Manages vector index selection (in-memory for dev, S3 Vectors for prod),
index naming and dimension enforcement.

Dependencies: pydantic, pydantic_settings
System role: Vector database configuration for patient retrieval
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (in-memory for dev, S3 Vectors for prod)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="memory",
        description="Vector store type: 'memory' for local dev, 's3' for production",
    )
    aws_region: str = Field(default="us-east-1", description="AWS region for S3 Vectors")
    vectors_bucket: str = Field(
        default="healthcare-rag-vectors",
        description="S3 Vectors bucket name",
    )
    index_name: str = Field(default="healthcare-rag", description="Vector index name")
    dimension: int = Field(
        default=1024,
        description="Fixed vector dimension of the index",
        gt=0,
    )
    strict_dimensions: bool = Field(
        default=True,
        description="Raise on dimension mismatch instead of coercing and logging",
    )
    max_top_k: int = Field(
        default=30,
        description="Upper bound on top_k accepted by the backend",
        gt=0,
    )
    create_index_if_missing: bool = Field(
        default=True,
        description="Create the vector index on first use when it does not exist",
    )

    @field_validator("store_type")
    @classmethod
    def _check_store_type(cls, value: str) -> str:
        value = value.lower()
        if value not in ("memory", "s3"):
            raise ValueError("store_type must be 'memory' or 's3'")
        return value
