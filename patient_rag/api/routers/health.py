"""
Health check API endpoints.

Routes: GET /health, GET /health/vector-store

Dependencies: patient_rag.application
System role: Health check HTTP API
"""

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from patient_rag.api.deps import get_retrieval_service
from patient_rag.application.retrieval_service import RetrievalService


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", message="Server Healthy")


@router.get("/vector-store", response_model=HealthResponse)
async def health_check_vector_store(
    response: Response,
    service: RetrievalService = Depends(get_retrieval_service),
) -> HealthResponse:
    """Vector store health check. Returns 503 when the index cannot be reached."""
    if await service.vector_store.ensure_initialized():
        return HealthResponse(status="healthy", message="Vector store accessible")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="unhealthy", message="Vector store unavailable")
