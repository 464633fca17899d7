"""Retriever interface and the semantic implementation."""

from abc import ABC, abstractmethod
from typing import Any

from pdfchat.config import EmbeddingSettings, get_settings
from pdfchat.embeddings.retry import embed_with_settings
from pdfchat.embeddings.service import EmbeddingService
from pdfchat.exceptions import ErrorCode, PDFChatError, RetrievalError
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_retrieval_request
from pdfchat.retrieval.models import RetrievalResult
from pdfchat.vectorstore.service import VectorStore

logger = get_logger(__name__)


class Retriever(ABC):
    """Abstract base class for retrievers."""

    @abstractmethod
    async def retrieve(
        self,
        query: str,
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[RetrievalResult]:
        """Retrieve relevant chunks for a query, most relevant first.

        Raises:
            PDFChatError: If an upstream service fails.
        """
        ...


class SemanticRetriever(Retriever):
    """Embeds the question and runs a nearest-neighbour search."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        embedding_settings: EmbeddingSettings | None = None,
    ) -> None:
        """Initialize the semantic retriever.

        Args:
            embedding_service: Service for generating embeddings.
            vector_store: Vector index adapter.
            embedding_settings: Rate-limit backoff limits for the query embedding.
        """
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._embedding_settings = embedding_settings or get_settings().embedding

    async def retrieve(
        self,
        query: str,
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[RetrievalResult]:
        if not query.strip():
            return []

        try:
            embeddings = await embed_with_settings(
                self._embedding_service, [query], self._embedding_settings
            )
            matches = await self._vector_store.query(
                vector=embeddings[0].embedding,
                top_k=top_k,
                filters=filters,
            )
        except PDFChatError:
            raise
        except Exception as e:
            logger.error(f"Retrieval failed: {e}")
            raise RetrievalError(
                f"Failed to retrieve documents: {e}",
                code=ErrorCode.RETRIEVAL_ERROR,
                details={"query": query[:100], "error": str(e)},
            ) from e

        results = [
            RetrievalResult(
                content=match.metadata.text,
                score=match.score,
                source=match.metadata.source,
                chunk=match.metadata.chunk,
                page=match.metadata.page,
                record_id=match.id,
            )
            for match in matches
        ]

        track_retrieval_request(
            chunks_returned=len(results),
            top_score=max((r.score for r in results), default=0.0),
        )
        logger.debug(
            f"Retrieved {len(results)} results for query",
            extra={
                "query_length": len(query),
                "top_k": top_k,
                "chunks": [r.chunk for r in results],
            },
        )

        return results
