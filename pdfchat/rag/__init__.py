"""Retrieval and synthesis pipeline module."""

from pdfchat.rag.models import (
    EMPTY_INDEX_MESSAGE,
    NO_ANSWER_MESSAGE,
    NO_MATCHES_MESSAGE,
    QueryState,
    RAGQuery,
    RAGResponse,
    SourceAttribution,
)
from pdfchat.rag.pipeline import RAGPipeline, rank_by_reading_order

__all__ = [
    "EMPTY_INDEX_MESSAGE",
    "NO_ANSWER_MESSAGE",
    "NO_MATCHES_MESSAGE",
    "QueryState",
    "RAGPipeline",
    "RAGQuery",
    "RAGResponse",
    "SourceAttribution",
    "rank_by_reading_order",
]
