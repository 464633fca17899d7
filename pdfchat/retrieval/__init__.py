"""Retrieval module."""

from pdfchat.retrieval.models import RetrievalResult
from pdfchat.retrieval.retriever import Retriever, SemanticRetriever

__all__ = [
    "Retriever",
    "RetrievalResult",
    "SemanticRetriever",
]
