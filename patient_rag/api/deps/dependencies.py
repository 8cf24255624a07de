"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: patient_rag.configs, patient_rag.application
System role: DI container for service injection
"""

from patient_rag.application.retrieval_service import RetrievalService
from patient_rag.configs import get_settings


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self) -> None:
        self._retrieval_service: RetrievalService | None = None

    @property
    def retrieval_service(self) -> RetrievalService:
        """Get cached retrieval service (one vector store per process)."""
        if self._retrieval_service is None:
            self._retrieval_service = RetrievalService(settings=get_settings())
        return self._retrieval_service

    def clear(self) -> None:
        """Clear all cached instances."""
        self._retrieval_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_retrieval_service() -> RetrievalService:
    """
    Get retrieval service instance.

    Returns:
        RetrievalService: Shared service bound to the configured vector store
    """
    return get_service_cache().retrieval_service
