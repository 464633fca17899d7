"""Tests for the retrieval and synthesis pipeline."""

from unittest.mock import AsyncMock

import pytest
from conftest import FakeLLMClient

from pdfchat.exceptions import ErrorCode, LLMError, ValidationError
from pdfchat.rag import (
    EMPTY_INDEX_MESSAGE,
    NO_ANSWER_MESSAGE,
    NO_MATCHES_MESSAGE,
    QueryState,
    RAGPipeline,
    RAGQuery,
    rank_by_reading_order,
)
from pdfchat.retrieval.models import RetrievalResult
from pdfchat.vectorstore.models import IndexStats


def _result(chunk: int, score: float = 0.5, source: str = "doc.pdf") -> RetrievalResult:
    return RetrievalResult(content=f"chunk {chunk} text", score=score, source=source, chunk=chunk)


def _pipeline(
    results: list[RetrievalResult] | None = None,
    records: int = 10,
    llm: FakeLLMClient | None = None,
) -> tuple[RAGPipeline, AsyncMock, AsyncMock, FakeLLMClient]:
    retriever = AsyncMock()
    retriever.retrieve = AsyncMock(return_value=results or [])
    vector_store = AsyncMock()
    vector_store.stats = AsyncMock(return_value=IndexStats(total_record_count=records))
    llm = llm or FakeLLMClient()
    pipeline = RAGPipeline(
        retriever=retriever,
        vector_store=vector_store,
        llm_client=llm,
        max_tokens=256,
    )
    return pipeline, retriever, vector_store, llm


class TestRankByReadingOrder:
    """Tests for context ordering."""

    def test_sorts_by_chunk(self) -> None:
        ranked = rank_by_reading_order([_result(3, 0.9), _result(1, 0.8), _result(2, 0.7)])
        assert [r.chunk for r in ranked] == [1, 2, 3]

    def test_ties_keep_search_order(self) -> None:
        """Equal chunk indices from different sources keep relevance order."""
        ranked = rank_by_reading_order(
            [_result(0, 0.9, "b.pdf"), _result(1, 0.8, "a.pdf"), _result(0, 0.7, "a.pdf")]
        )
        assert [(r.source, r.chunk) for r in ranked] == [
            ("b.pdf", 0),
            ("a.pdf", 0),
            ("a.pdf", 1),
        ]


class TestRAGPipeline:
    """Tests for RAGPipeline."""

    async def test_empty_index_short_circuit(self) -> None:
        """An empty index answers without embedding or generation."""
        pipeline, retriever, _, llm = _pipeline(records=0)

        response = await pipeline.query(RAGQuery(question="What is this about?"))

        assert response.state == QueryState.EMPTY_INDEX
        assert response.answer == EMPTY_INDEX_MESSAGE
        retriever.retrieve.assert_not_called()
        assert llm.calls == []

    async def test_no_matches_short_circuit(self) -> None:
        """Zero matches answers without generation."""
        pipeline, retriever, _, llm = _pipeline(results=[])

        response = await pipeline.query(RAGQuery(question="Anything?"))

        assert response.state == QueryState.NO_MATCHES
        assert response.answer == NO_MATCHES_MESSAGE
        retriever.retrieve.assert_called_once()
        assert llm.calls == []

    async def test_context_in_chunk_order(self) -> None:
        """Matches [3, 1, 2] reach the model as chunk 1, 2, 3."""
        pipeline, _, _, llm = _pipeline(
            results=[_result(3, 0.9), _result(1, 0.8), _result(2, 0.7)]
        )

        response = await pipeline.query(RAGQuery(question="Summarize"))

        user_prompt = llm.calls[0]["messages"][-1].content
        assert "chunk 1 text\n\nchunk 2 text\n\nchunk 3 text" in user_prompt
        assert [s.chunk for s in response.sources] == [1, 2, 3]
        assert response.state == QueryState.DONE

    async def test_synthesis_parameters(self) -> None:
        """Synthesis runs at zero temperature with a bounded answer length."""
        pipeline, _, _, llm = _pipeline(results=[_result(0)])

        response = await pipeline.query(RAGQuery(question="Question?"))

        call = llm.calls[0]
        assert call["temperature"] == 0.0
        assert call["max_tokens"] == 256
        assert call["messages"][0].content == pipeline._prompt_template.system_prompt
        assert response.answer == "The answer."
        assert response.model == "fake-llm"
        assert response.tokens_used == 15

    async def test_default_and_explicit_top_k(self) -> None:
        pipeline, retriever, _, _ = _pipeline(results=[_result(0)])

        await pipeline.query(RAGQuery(question="q"))
        await pipeline.query(RAGQuery(question="q", top_k=3, source="a.pdf"))

        first, second = retriever.retrieve.call_args_list
        assert first.kwargs == {"query": "q", "top_k": 5, "filters": None}
        assert second.kwargs == {"query": "q", "top_k": 3, "filters": {"source": "a.pdf"}}

    async def test_empty_answer_fallback(self) -> None:
        """Blank model output is replaced by a fixed message."""
        pipeline, _, _, _ = _pipeline(results=[_result(0)], llm=FakeLLMClient(answer="   "))

        response = await pipeline.query(RAGQuery(question="q"))

        assert response.answer == NO_ANSWER_MESSAGE
        assert response.state == QueryState.DONE

    async def test_blank_question(self) -> None:
        pipeline, _, vector_store, _ = _pipeline()

        with pytest.raises(ValidationError):
            await pipeline.query(RAGQuery(question="  "))

        vector_store.stats.assert_not_called()

    async def test_llm_failure_propagates(self) -> None:
        pipeline, _, _, llm = _pipeline(results=[_result(0)])
        llm.generate = AsyncMock(side_effect=LLMError("down", code=ErrorCode.LLM_TIMEOUT))

        with pytest.raises(LLMError) as exc_info:
            await pipeline.query(RAGQuery(question="q"))

        assert exc_info.value.code == ErrorCode.LLM_TIMEOUT

    async def test_long_source_snippets_truncated(self) -> None:
        long_result = RetrievalResult(content="x" * 500, score=0.5, source="a.pdf", chunk=0)
        pipeline, _, _, _ = _pipeline(results=[long_result])

        response = await pipeline.query(RAGQuery(question="q"))

        assert response.sources[0].content == "x" * 200 + "..."

    async def test_answer_shortcut(self) -> None:
        pipeline, _, _, _ = _pipeline(records=0)
        assert await pipeline.answer("Hello?") == EMPTY_INDEX_MESSAGE
