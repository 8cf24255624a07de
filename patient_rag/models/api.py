"""
HTTP request/response schemas.

Request/response contracts of the patient document and query endpoints.

Dependencies: pydantic
System role: RAG API contracts
"""

from pydantic import BaseModel, Field

from patient_rag.models.retrieval import RAGContext, RetrievalMatch


class AddDocumentRequest(BaseModel):
    """Request schema for indexing an already-extracted document."""

    document_name: str = Field(..., min_length=1, max_length=1024, description="Source document name")
    content: str = Field(..., description="Extracted UTF-8 document text")


class QueryRequest(BaseModel):
    """Request schema for a patient-scoped similarity query."""

    query: str = Field(..., description="Natural-language query")
    top_k: int | None = Field(None, description="Number of matches (server default when omitted)")
    include_context: bool = Field(False, description="Also return an assembled prompt context")


class QueryResponse(BaseModel):
    """Response schema for a similarity query."""

    results: list[RetrievalMatch]
    count: int
    context: RAGContext | None = None


class ContextRequest(BaseModel):
    """Request schema for assembling context from previously returned matches."""

    matches: list[RetrievalMatch] = Field(default_factory=list)


class SuccessResponse(BaseModel):
    """Response schema for delete operations."""

    success: bool
