"""Retrieval data models."""

from pydantic import BaseModel, Field


class RetrievalResult(BaseModel):
    """A retrieved chunk.

    Attributes:
        content: The chunk text.
        score: Relevance score (higher is more relevant).
        source: Source document name.
        chunk: Chunk index within the source, used for reading order.
        page: Page the chunk came from.
        record_id: Vector record identifier.
    """

    content: str = Field(description="Retrieved text content")
    score: float = Field(description="Relevance score")
    source: str = Field(description="Source document name")
    chunk: int = Field(ge=0, description="Chunk index within the source")
    page: int = Field(default=1, ge=1, description="Page number")
    record_id: str = Field(default="", description="Vector record identifier")
