"""API-specific dependencies."""

from .dependencies import ServiceCache, get_retrieval_service, get_service_cache

__all__ = ["ServiceCache", "get_retrieval_service", "get_service_cache"]
