"""Embedding gateway module."""

from pdfchat.embeddings.models import EmbeddingResult
from pdfchat.embeddings.retry import embed_with_backoff, embed_with_settings
from pdfchat.embeddings.service import EmbeddingService, HTTPEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
    "embed_with_backoff",
    "embed_with_settings",
]
