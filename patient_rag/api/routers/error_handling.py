"""
RAG error handling utilities.

Decorator mapping domain exceptions raised by the retrieval service to HTTP
responses with consistent logging.

Dependencies: fastapi, patient_rag.core.exceptions
System role: Router error translation
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from patient_rag.core.exceptions import (
    DimensionMismatchError,
    EmbeddingError,
    InvalidParameterError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_rag_errors(func: F) -> F:
    """
    Transform retrieval errors into HTTPExceptions.

    - InvalidParameterError -> 400
    - EmbeddingError -> 503
    - DimensionMismatchError and anything unexpected -> 500
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except InvalidParameterError as e:
            logger.warning("Invalid RAG request", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

        except EmbeddingError as e:
            logger.error("Embedding unavailable", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Embedding is currently unavailable",
            )

        except DimensionMismatchError as e:
            logger.error(
                "Embedding and index dimensions disagree",
                extra={"expected": e.expected, "actual": e.actual},
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Vector dimension mismatch, check EMBEDDING_DIMENSION and VECTOR_STORE_DIMENSION",
            )

        except Exception as e:
            logger.exception("Unexpected failure in RAG operation", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred during RAG operation",
            )

    return wrapper  # type: ignore
