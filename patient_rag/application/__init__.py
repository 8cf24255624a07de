"""Application services orchestrating chunking, embedding and storage."""

from patient_rag.application.retrieval_service import RetrievalService

__all__ = ["RetrievalService"]
