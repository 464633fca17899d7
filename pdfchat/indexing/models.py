"""Indexing pipeline data models."""

from enum import Enum

from pydantic import BaseModel, Field


class IndexingState(str, Enum):
    """Stages of one document's indexing run."""

    RECEIVED = "received"
    PARSED = "parsed"
    CHUNKED = "chunked"
    EMBEDDED = "embedded"
    REPLACED = "replaced"
    DONE = "done"
    FAILED = "failed"


class IndexingResult(BaseModel):
    """Outcome of a successful indexing run.

    Attributes:
        source: Source document name the records are keyed by.
        chunks: Number of chunks written.
        state: Terminal state, always ``DONE`` for a returned result.
    """

    source: str = Field(description="Source document name")
    chunks: int = Field(ge=0, description="Chunks written")
    state: IndexingState = Field(default=IndexingState.DONE, description="Terminal state")


class LocalIndexingResult(BaseModel):
    """Per-file outcome of a folder indexing run."""

    success: bool = Field(description="Whether the file was indexed")
    file_name: str | None = Field(default=None, description="File name, also the source id")
    chunks: int | None = Field(default=None, description="Chunks written")
    error: str | None = Field(default=None, description="Failure reason")
