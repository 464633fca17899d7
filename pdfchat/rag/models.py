"""Query pipeline data models."""

from enum import Enum

from pydantic import BaseModel, Field

EMPTY_INDEX_MESSAGE = (
    "I don't have any information from the PDF yet. "
    "Please upload a PDF document first."
)
NO_MATCHES_MESSAGE = (
    "I couldn't find any relevant information in the PDF to answer your question. "
    "Please try rephrasing your question or upload a different PDF."
)
NO_ANSWER_MESSAGE = "I wasn't able to generate an answer from the PDF content."


class QueryState(str, Enum):
    """Stages of the retrieval and synthesis pipeline.

    ``DONE``, ``EMPTY_INDEX``, ``NO_MATCHES`` and ``FAILED`` are terminal.
    """

    RECEIVED = "received"
    EMBEDDED_QUERY = "embedded_query"
    SEARCHED = "searched"
    RANKED = "ranked"
    SYNTHESIZED = "synthesized"
    DONE = "done"
    EMPTY_INDEX = "empty_index"
    NO_MATCHES = "no_matches"
    FAILED = "failed"


class SourceAttribution(BaseModel):
    """A chunk the answer was synthesized from."""

    source: str = Field(description="Source document name")
    chunk: int = Field(description="Chunk index within the source")
    content: str = Field(description="Chunk text snippet")
    score: float = Field(description="Relevance score")


class RAGQuery(BaseModel):
    """Input for a question.

    Attributes:
        question: The user's question.
        top_k: Number of chunks to retrieve.
        source: Restrict the search to one document.
    """

    question: str = Field(description="User question")
    top_k: int | None = Field(
        default=None, ge=1, le=50, description="Chunks to retrieve (pipeline default when None)"
    )
    source: str | None = Field(default=None, description="Only search this document")


class RAGResponse(BaseModel):
    """Outcome of a question.

    Attributes:
        answer: Answer text, or a fixed message for the early-exit states.
        state: Terminal pipeline state.
        sources: Chunks used as context, in reading order.
        model: LLM model used, empty when no model was called.
        tokens_used: Total tokens consumed.
    """

    answer: str = Field(description="Answer text")
    state: QueryState = Field(description="Terminal pipeline state")
    sources: list[SourceAttribution] = Field(
        default_factory=list,
        description="Source attributions",
    )
    model: str = Field(default="", description="LLM model used")
    tokens_used: int = Field(default=0, description="Total tokens consumed")
