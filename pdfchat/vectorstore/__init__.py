"""Vector store module."""

from pdfchat.vectorstore.models import (
    ChunkMetadata,
    IndexStats,
    SearchMatch,
    VectorRecord,
    make_record_id,
    truncate_embedding,
)
from pdfchat.vectorstore.service import QdrantVectorStore, VectorStore, point_id

__all__ = [
    "ChunkMetadata",
    "IndexStats",
    "QdrantVectorStore",
    "SearchMatch",
    "VectorRecord",
    "VectorStore",
    "make_record_id",
    "point_id",
    "truncate_embedding",
]
