"""Patient-scoped vector store adapters."""

from patient_rag.boundary.vdb.base import VectorStoreAdapter
from patient_rag.boundary.vdb.memory_store import InMemoryVectorStore
from patient_rag.boundary.vdb.s3_vectors_store import S3VectorsStore
from patient_rag.boundary.vdb.vector_schemas import PatientFilter, VectorMetadata, VectorRecord
from patient_rag.boundary.vdb.vector_store_factory import get_vector_store

__all__ = [
    "InMemoryVectorStore",
    "PatientFilter",
    "S3VectorsStore",
    "VectorMetadata",
    "VectorRecord",
    "VectorStoreAdapter",
    "get_vector_store",
]
