"""Indexing pipeline module."""

from pdfchat.indexing.models import IndexingResult, IndexingState, LocalIndexingResult
from pdfchat.indexing.pipeline import IndexingPipeline

__all__ = [
    "IndexingPipeline",
    "IndexingResult",
    "IndexingState",
    "LocalIndexingResult",
]
