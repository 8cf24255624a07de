"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, patient_rag.api, patient_rag.observability, patient_rag.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from patient_rag.api import api_router
from patient_rag.api.deps import get_service_cache
from patient_rag.configs import get_settings
from patient_rag.observability.logger import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging and connects the shared vector store once at startup.
    An unreachable vector store does not block startup; requests degrade
    until it becomes reachable.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    service = get_service_cache().retrieval_service
    if await service.vector_store.ensure_initialized():
        logger.info(f"Vector store ready ({settings.vector_store.store_type})")
    else:
        logger.warning(f"Vector store unavailable at startup ({settings.vector_store.store_type})")

    yield

    logger.info("Application shutdown")
    get_service_cache().clear()


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Patient RAG API",
        description="Patient-scoped retrieval over clinical documents",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "patient_rag.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
