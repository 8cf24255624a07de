"""
Patient document and query API endpoints.

Routes:
    POST   /patients/{patient_id}/documents
    GET    /patients/{patient_id}/documents
    DELETE /patients/{patient_id}/documents
    DELETE /patients/{patient_id}/documents/{document_name}
    POST   /patients/{patient_id}/query
    GET    /patients/{patient_id}/stats
    POST   /context

Authorization of patient_id is the caller's responsibility.

Dependencies: patient_rag.application, patient_rag.models
System role: RAG HTTP API
"""

from fastapi import APIRouter, Depends

from patient_rag.api.deps import get_retrieval_service
from patient_rag.api.routers.error_handling import handle_rag_errors
from patient_rag.application.retrieval_service import RetrievalService
from patient_rag.models.api import (
    AddDocumentRequest,
    ContextRequest,
    QueryRequest,
    QueryResponse,
    SuccessResponse,
)
from patient_rag.models.retrieval import DocumentSummary, IngestionResult, PatientStats, RAGContext

router = APIRouter(tags=["rag"])


@router.post("/patients/{patient_id}/documents", response_model=IngestionResult)
@handle_rag_errors
async def add_document(
    patient_id: str,
    request: AddDocumentRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> IngestionResult:
    """
    Chunk, embed and index a document for a patient.

    Partial failures are reported in the body (chunks_stored < total_chunks),
    not as an error status.
    """
    return await service.add_document(patient_id, request.document_name, request.content)


@router.get("/patients/{patient_id}/documents", response_model=list[DocumentSummary])
@handle_rag_errors
async def list_documents(
    patient_id: str,
    service: RetrievalService = Depends(get_retrieval_service),
) -> list[DocumentSummary]:
    """List a patient's indexed documents."""
    return await service.list_documents(patient_id)


@router.delete("/patients/{patient_id}/documents", response_model=SuccessResponse)
@handle_rag_errors
async def remove_patient_documents(
    patient_id: str,
    service: RetrievalService = Depends(get_retrieval_service),
) -> SuccessResponse:
    """Delete every indexed chunk of a patient."""
    return SuccessResponse(success=await service.remove_patient_documents(patient_id))


@router.delete("/patients/{patient_id}/documents/{document_name:path}", response_model=SuccessResponse)
@handle_rag_errors
async def remove_document(
    patient_id: str,
    document_name: str,
    service: RetrievalService = Depends(get_retrieval_service),
) -> SuccessResponse:
    """Delete one document of a patient."""
    return SuccessResponse(success=await service.remove_document(patient_id, document_name))


@router.post("/patients/{patient_id}/query", response_model=QueryResponse)
@handle_rag_errors
async def query_patient(
    patient_id: str,
    request: QueryRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> QueryResponse:
    """
    Similarity search over one patient's documents.

    Example Response:
        {
            "results": [
                {
                    "chunk_id": "3f1c...",
                    "score": 0.82,
                    "content": "Troponin I elevated at 2.4 ng/mL.",
                    "document_name": "labs.txt",
                    "patient_id": "p1"
                }
            ],
            "count": 1,
            "context": null
        }
    """
    matches = await service.query_relevant_content(patient_id, request.query, request.top_k)
    context = service.build_context(matches) if request.include_context else None
    return QueryResponse(results=matches, count=len(matches), context=context)


@router.get("/patients/{patient_id}/stats", response_model=PatientStats)
@handle_rag_errors
async def get_stats(
    patient_id: str,
    service: RetrievalService = Depends(get_retrieval_service),
) -> PatientStats:
    """Count a patient's indexed documents and chunks."""
    return await service.get_stats(patient_id)


@router.post("/context", response_model=RAGContext)
@handle_rag_errors
async def build_context(
    request: ContextRequest,
    service: RetrievalService = Depends(get_retrieval_service),
) -> RAGContext:
    """Assemble a bounded prompt context from ranked matches."""
    return service.build_context(request.matches)
