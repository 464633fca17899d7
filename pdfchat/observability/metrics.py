"""Prometheus metrics.

Covers HTTP traffic, the external calls each pipeline makes (embedding,
vector store, LLM), and pipeline outcomes (documents indexed, query
end states).
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from pdfchat.logging_config import get_logger

logger = get_logger(__name__)

# HTTP
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Query pipeline
RAG_QUERY_TOTAL = Counter(
    "rag_queries_total",
    "RAG queries by terminal state",
    ["state"],
)

RAG_QUERY_DURATION = Histogram(
    "rag_query_duration_seconds",
    "RAG query duration in seconds",
    ["state"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

RETRIEVAL_CHUNKS_RETURNED = Histogram(
    "retrieval_chunks_returned",
    "Number of chunks returned per retrieval",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

RETRIEVAL_TOP_SCORE = Histogram(
    "retrieval_top_score",
    "Top retrieval score per query",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Indexing pipeline
DOCUMENTS_INDEXED_TOTAL = Counter(
    "documents_indexed_total",
    "Documents run through the indexing pipeline",
    ["status"],
)

CHUNKS_INDEXED_TOTAL = Counter(
    "chunks_indexed_total",
    "Chunks written to the vector store",
)

# LLM
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

# Embeddings
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "embedding_batch_size",
    "Texts per embedding request",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2048],
)

# Vector store
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector store operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Collapse paths into a bounded set of labels."""
        if path.startswith("/health"):
            return "/health"
        if path in ("/upload", "/chat", "/process-local-pdfs"):
            return path
        return "other"


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Track LLM request metrics."""
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics."""
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track one vector store call (upsert batch, delete, query, count)."""
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(operation=operation, status=status).observe(
        duration
    )


def track_retrieval_request(
    chunks_returned: int,
    top_score: float,
) -> None:
    """Track retrieval request metrics."""
    RETRIEVAL_CHUNKS_RETURNED.observe(chunks_returned)
    if top_score > 0:
        RETRIEVAL_TOP_SCORE.observe(top_score)


def track_rag_query(state: str, duration: float) -> None:
    """Track a finished query by its terminal state."""
    RAG_QUERY_TOTAL.labels(state=state).inc()
    RAG_QUERY_DURATION.labels(state=state).observe(duration)


def track_document_indexed(chunks: int, success: bool = True) -> None:
    """Track one indexing pipeline run."""
    DOCUMENTS_INDEXED_TOTAL.labels(status="success" if success else "error").inc()
    if success:
        CHUNKS_INDEXED_TOTAL.inc(chunks)
