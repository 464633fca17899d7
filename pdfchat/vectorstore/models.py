"""Vector store data models and record identity helpers."""

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pdfchat.documents.models import Chunk
from pdfchat.exceptions import ErrorCode, VectorStoreError

_WHITESPACE = re.compile(r"\s+")


def make_record_id(source: str, chunk_index: int) -> str:
    """Derive the record id of a chunk.

    ``"annual report.pdf", 3`` becomes ``"annual-report.pdf-chunk-3"``.
    Re-indexing the same source with the same chunking yields the same ids.
    """
    return f"{_WHITESPACE.sub('-', source)}-chunk-{chunk_index}"


def truncate_embedding(values: list[float], dimension: int) -> list[float]:
    """Cut a native embedding down to the index dimension.

    Plain slicing, not a projection: the first ``dimension`` values are
    kept unchanged.

    Raises:
        VectorStoreError: If the embedding is shorter than ``dimension``.
    """
    if len(values) < dimension:
        raise VectorStoreError(
            f"Embedding has {len(values)} dimensions, index expects {dimension}",
            code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
            details={"native": len(values), "index": dimension},
        )
    return list(values[:dimension])


class ChunkMetadata(BaseModel):
    """Payload stored with every vector.

    Attributes:
        text: Chunk text.
        source: Source document name, the replace-by-source key.
        chunk: Chunk index within the source.
        type: Document type tag.
        page: Page the chunk was cut from.
    """

    model_config = ConfigDict(extra="ignore")

    text: str = Field(description="Chunk text")
    source: str = Field(description="Source document name")
    chunk: int = Field(ge=0, description="Chunk index")
    type: Literal["pdf"] = Field(default="pdf", description="Document type")
    page: int = Field(default=1, ge=1, description="Page number")


class VectorRecord(BaseModel):
    """A record to store in the vector index.

    Attributes:
        id: Deterministic record id (see ``make_record_id``).
        values: Embedding vector; truncated to the index dimension on upsert.
        metadata: Payload stored with the vector.
    """

    id: str = Field(description="Record identifier")
    values: list[float] = Field(description="Embedding vector")
    metadata: ChunkMetadata = Field(description="Record payload")

    @classmethod
    def from_chunk(cls, chunk: Chunk, values: list[float]) -> "VectorRecord":
        """Build the record for an embedded chunk."""
        return cls(
            id=make_record_id(chunk.source_id, chunk.chunk_index),
            values=values,
            metadata=ChunkMetadata(
                text=chunk.text,
                source=chunk.source_id,
                chunk=chunk.chunk_index,
                page=chunk.page,
            ),
        )

    def payload(self) -> dict[str, Any]:
        """Payload as written to the store, including the readable id."""
        return {**self.metadata.model_dump(), "record_id": self.id}


class SearchMatch(BaseModel):
    """One nearest-neighbour hit.

    Attributes:
        id: Record identifier.
        score: Similarity score (higher is more similar).
        metadata: Stored payload.
    """

    id: str = Field(description="Record identifier")
    score: float = Field(description="Similarity score")
    metadata: ChunkMetadata = Field(description="Record payload")


class IndexStats(BaseModel):
    """Index-level counters."""

    total_record_count: int = Field(ge=0, description="Records in the index")

    @property
    def is_empty(self) -> bool:
        return self.total_record_count == 0
