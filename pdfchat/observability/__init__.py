"""Observability module for metrics and monitoring."""

from pdfchat.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_document_indexed,
    track_embedding_request,
    track_llm_request,
    track_rag_query,
    track_retrieval_request,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_document_indexed",
    "track_embedding_request",
    "track_llm_request",
    "track_rag_query",
    "track_retrieval_request",
    "track_vectorstore_operation",
]
