"""Upload a document, ask about it, then upload it again."""

from conftest import FakeEmbeddingService, FakeLLMClient, make_pdf
from httpx import AsyncClient

from pdfchat.api.dependencies import ServiceContainer

PAGE_ONE = "\n".join(
    [
        "The device ships with a two year limited warranty.",
        "Warranty claims require the original receipt.",
    ]
)
PAGE_TWO = "\n".join(
    [
        "Batteries are covered for twelve months.",
        "Water damage is not covered by the warranty.",
    ]
)


async def test_upload_ask_reupload(
    client: AsyncClient,
    services: ServiceContainer,
    embedding_service: FakeEmbeddingService,
    llm_client: FakeLLMClient,
) -> None:
    raw = make_pdf([PAGE_ONE, PAGE_TWO])

    upload = await client.post("/upload", files={"file": ("warranty.pdf", raw, "application/pdf")})
    assert upload.status_code == 200
    chunks = upload.json()["chunks"]
    assert chunks >= 2
    assert len(embedding_service.calls) == 1

    chat = await client.post("/chat", json={"question": "How long are batteries covered?"})
    assert chat.status_code == 200
    data = chat.json()
    assert data["answer"] == "The answer."

    indices = [s["chunk"] for s in data["sources"]]
    assert len(indices) >= 2
    assert indices == sorted(indices)
    assert len(set(indices)) == len(indices)
    assert any("Batteries are covered" in s["content"] for s in data["sources"])

    prompt = llm_client.calls[0]["messages"][-1].content
    assert "How long are batteries covered?" in prompt
    assert "Batteries are covered for twelve months." in prompt
    first = prompt.index("two year limited warranty")
    second = prompt.index("Batteries are covered")
    assert first < second

    again = await client.post("/upload", files={"file": ("warranty.pdf", raw, "application/pdf")})
    assert again.json()["chunks"] == chunks
    stats = await services.vector_store.stats()
    assert stats.total_record_count == chunks
