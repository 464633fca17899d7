"""Embedding data models."""

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Result of embedding one text.

    Attributes:
        text: The text that was embedded (after newline stripping).
        embedding: The native-length embedding vector.
        model: The model used to generate the embedding.
        dimensions: Number of dimensions in the embedding.
        index: Position of the text in the request batch.
    """

    text: str = Field(description="Embedded text")
    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    dimensions: int = Field(description="Vector dimensions")
    index: int = Field(default=0, ge=0, description="Position in the request batch")

    def model_post_init(self, __context: object) -> None:
        """Validate dimensions match embedding length."""
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )
