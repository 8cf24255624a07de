"""
Vector store factory for selecting between in-memory (dev) and S3 Vectors (prod).

Depends on VECTOR_STORE_STORE_TYPE environment variable.
Provides consistent interface regardless of underlying implementation.

Dependencies: patient_rag.boundary.vdb, patient_rag.configs
System role: Vector store instantiation and selection
"""

import logging

from patient_rag.boundary.vdb.base import VectorStoreAdapter
from patient_rag.boundary.vdb.memory_store import InMemoryVectorStore
from patient_rag.boundary.vdb.s3_vectors_store import S3VectorsStore
from patient_rag.configs.vector_store import VectorStoreSettings

logger = logging.getLogger(__name__)


def get_vector_store(settings: VectorStoreSettings | None = None) -> VectorStoreAdapter:
    """
    Factory function to get vector store based on configuration.

    Args:
        settings: Vector store settings, read from the environment when omitted

    Returns:
        VectorStoreAdapter: InMemoryVectorStore or S3VectorsStore

    Raises:
        ValueError: If store_type is invalid
    """
    settings = settings or VectorStoreSettings()
    store_type = settings.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:get_vector_store - Creating in-memory vector store (local dev mode)")
        return InMemoryVectorStore(
            dimension=settings.dimension,
            strict_dimensions=settings.strict_dimensions,
            max_top_k=settings.max_top_k,
        )

    if store_type == "s3":
        logger.info(f"{__name__}:get_vector_store - Creating S3 Vectors store (production mode)")
        return S3VectorsStore(
            vectors_bucket=settings.vectors_bucket,
            index_name=settings.index_name,
            region=settings.aws_region,
            dimension=settings.dimension,
            strict_dimensions=settings.strict_dimensions,
            max_top_k=settings.max_top_k,
            create_index_if_missing=settings.create_index_if_missing,
        )

    raise ValueError(
        f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. "
        f"Must be 'memory' (dev) or 's3' (production)."
    )
