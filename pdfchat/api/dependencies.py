"""Service container and FastAPI dependencies.

Clients are built once at startup and stored on ``app.state``; request
handlers receive the pipelines through the dependency functions below,
which tests replace with ``app.dependency_overrides``.
"""

from fastapi import Request

from pdfchat.config import Settings
from pdfchat.embeddings.service import EmbeddingService, HTTPEmbeddingService
from pdfchat.indexing.pipeline import IndexingPipeline
from pdfchat.llm.client import LLMClient, OpenAICompatibleClient
from pdfchat.logging_config import get_logger
from pdfchat.rag.pipeline import RAGPipeline
from pdfchat.retrieval.retriever import SemanticRetriever
from pdfchat.vectorstore.service import QdrantVectorStore, VectorStore

logger = get_logger(__name__)


class ServiceContainer:
    """Holds the shared clients and the pipelines built on them."""

    def __init__(
        self,
        settings: Settings,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        llm_client: LLMClient,
    ) -> None:
        self.settings = settings
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.llm_client = llm_client

        self.indexing_pipeline = IndexingPipeline(
            embedding_service=embedding_service,
            vector_store=vector_store,
            indexing_settings=settings.indexing,
            embedding_settings=settings.embedding,
        )
        self.rag_pipeline = RAGPipeline(
            retriever=SemanticRetriever(
                embedding_service=embedding_service,
                vector_store=vector_store,
                embedding_settings=settings.embedding,
            ),
            vector_store=vector_store,
            llm_client=llm_client,
            top_k=settings.retrieval.top_k,
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        """Build the production clients from validated settings."""
        return cls(
            settings=settings,
            embedding_service=HTTPEmbeddingService(settings.embedding),
            vector_store=QdrantVectorStore(settings.qdrant),
            llm_client=OpenAICompatibleClient(settings.llm),
        )

    async def startup(self) -> None:
        """Create the collection if needed."""
        await self.vector_store.ensure_collection()
        logger.info(
            "Services ready",
            extra={
                "embedding_model": self.embedding_service.model_name,
                "llm_model": self.llm_client.model_name,
                "dimension": self.vector_store.dimension,
            },
        )

    async def close(self) -> None:
        """Close every client."""
        await self.embedding_service.close()
        await self.vector_store.close()
        await self.llm_client.close()


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services  # type: ignore[no-any-return]


def get_indexing_pipeline(request: Request) -> IndexingPipeline:
    return get_container(request).indexing_pipeline


def get_rag_pipeline(request: Request) -> RAGPipeline:
    return get_container(request).rag_pipeline


def get_vector_store(request: Request) -> VectorStore:
    return get_container(request).vector_store
