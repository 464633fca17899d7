"""Pytest configuration and shared fixtures."""

import hashlib
import re
from collections.abc import AsyncGenerator

import fitz  # PyMuPDF
import pytest
from httpx import ASGITransport, AsyncClient

from pdfchat.api.app import create_app
from pdfchat.api.dependencies import ServiceContainer
from pdfchat.config import (
    EmbeddingSettings,
    IndexingSettings,
    LLMSettings,
    QdrantSettings,
    Settings,
)
from pdfchat.embeddings.models import EmbeddingResult
from pdfchat.embeddings.service import EmbeddingService
from pdfchat.llm.client import LLMClient
from pdfchat.llm.models import GenerationResult, Message
from pdfchat.vectorstore.service import QdrantVectorStore

NATIVE_DIMENSION = 1536
INDEX_DIMENSION = 1024

_WORD = re.compile(r"[a-z0-9]+")


def make_pdf(pages: list[str]) -> bytes:
    """Build an in-memory PDF with one page per string.

    Keep each page to short lines; text outside the page box is not
    extracted.
    """
    doc = fitz.open()
    try:
        for text in pages:
            page = doc.new_page()
            if text:
                page.insert_text((50, 50), text, fontsize=8)
        return doc.tobytes()
    finally:
        doc.close()


def bag_of_words_vector(text: str) -> list[float]:
    """Deterministic embedding: hashed word counts plus a constant tail.

    Word buckets live in the first ``INDEX_DIMENSION`` slots so truncation
    keeps them; the tail only pads the vector to the native length.
    """
    vector = [0.01] * NATIVE_DIMENSION
    for word in _WORD.findall(text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % INDEX_DIMENSION
        vector[bucket] += 1.0
    return vector


class FakeEmbeddingService(EmbeddingService):
    """In-process embedding service that records its calls."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    @property
    def model_name(self) -> str:
        return "fake-embedding"

    async def embed(self, text: str) -> EmbeddingResult:
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        self.calls.append(list(texts))
        return [
            EmbeddingResult(
                text=text,
                embedding=bag_of_words_vector(text),
                model=self.model_name,
                dimensions=NATIVE_DIMENSION,
                index=i,
            )
            for i, text in enumerate(texts)
        ]


class FakeLLMClient(LLMClient):
    """LLM client returning a fixed answer and recording prompts."""

    def __init__(self, answer: str = "The answer.") -> None:
        self.answer = answer
        self.calls: list[dict] = []

    @property
    def model_name(self) -> str:
        return "fake-llm"

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        self.calls.append(
            {"messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        return GenerationResult(
            content=self.answer,
            model=self.model_name,
            finish_reason="stop",
            prompt_tokens=10,
            completion_tokens=5,
            total_tokens=15,
        )


@pytest.fixture
def qdrant_settings() -> QdrantSettings:
    return QdrantSettings(url=":memory:", collection_name="test_chunks")


@pytest.fixture
async def vector_store(qdrant_settings: QdrantSettings) -> AsyncGenerator[QdrantVectorStore, None]:
    """In-process Qdrant collection, fresh for every test."""
    store = QdrantVectorStore(settings=qdrant_settings)
    await store.ensure_collection()
    yield store
    await store.close()


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def settings(qdrant_settings: QdrantSettings, tmp_path) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(
        llm=LLMSettings(base_url="http://llm.test/v1"),
        embedding=EmbeddingSettings(
            base_url="http://embeddings.test/v1",
            backoff_min=0.0,
            backoff_max=0.0,
        ),
        qdrant=qdrant_settings,
        indexing=IndexingSettings(local_pdf_dir=str(tmp_path / "pdfs")),
    )


@pytest.fixture
async def services(
    settings: Settings,
    embedding_service: FakeEmbeddingService,
    llm_client: FakeLLMClient,
) -> AsyncGenerator[ServiceContainer, None]:
    container = ServiceContainer(
        settings=settings,
        embedding_service=embedding_service,
        vector_store=QdrantVectorStore(settings=settings.qdrant),
        llm_client=llm_client,
    )
    await container.startup()
    yield container
    await container.close()


@pytest.fixture
async def client(services: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for a fully wired app.

    Yields:
        AsyncClient configured for testing.
    """
    app = create_app()
    app.state.services = services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
