"""Retrieval and synthesis pipeline."""

import time

from pdfchat.exceptions import PDFChatError, ValidationError
from pdfchat.llm.client import LLMClient
from pdfchat.llm.prompts import RAGPromptTemplate
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_rag_query
from pdfchat.rag.models import (
    EMPTY_INDEX_MESSAGE,
    NO_ANSWER_MESSAGE,
    NO_MATCHES_MESSAGE,
    QueryState,
    RAGQuery,
    RAGResponse,
    SourceAttribution,
)
from pdfchat.retrieval.models import RetrievalResult
from pdfchat.retrieval.retriever import Retriever
from pdfchat.vectorstore.service import VectorStore

logger = get_logger(__name__)

SNIPPET_LENGTH = 200


def rank_by_reading_order(results: list[RetrievalResult]) -> list[RetrievalResult]:
    """Order retrieved chunks by ascending chunk index.

    The sort is stable, so chunks with the same index keep their
    relevance order.
    """
    return sorted(results, key=lambda result: result.chunk)


class RAGPipeline:
    """Answers a question from the indexed documents.

    Flow: index stats check, question embedding and search, reading-order
    ranking, then one LLM completion over the joined context.
    """

    def __init__(
        self,
        retriever: Retriever,
        vector_store: VectorStore,
        llm_client: LLMClient,
        prompt_template: RAGPromptTemplate | None = None,
        top_k: int = 5,
        temperature: float = 0.0,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the RAG pipeline.

        Args:
            retriever: Chunk retriever.
            vector_store: Index adapter, used for the empty-index check.
            llm_client: LLM client for generation.
            prompt_template: Prompt template for synthesis.
            top_k: Chunks to retrieve when the query does not say.
            temperature: Sampling temperature for synthesis.
            max_tokens: Answer length bound (client default when None).
        """
        self._retriever = retriever
        self._vector_store = vector_store
        self._llm_client = llm_client
        self._prompt_template = prompt_template or RAGPromptTemplate()
        self._top_k = top_k
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def query(self, request: RAGQuery) -> RAGResponse:
        """Run the pipeline for one question.

        Raises:
            ValidationError: If the question is blank.
            PDFChatError: If an upstream service fails.
        """
        started = time.perf_counter()

        try:
            response = await self._run(request)
        except PDFChatError as e:
            logger.error(
                f"Query failed: {e.message}",
                extra={"state": QueryState.FAILED.value, "code": e.code.value},
            )
            track_rag_query(QueryState.FAILED.value, time.perf_counter() - started)
            raise

        track_rag_query(response.state.value, time.perf_counter() - started)
        return response

    async def answer(self, question: str) -> str:
        """Return just the answer text for ``question``."""
        response = await self.query(RAGQuery(question=question))
        return response.answer

    async def _run(self, request: RAGQuery) -> RAGResponse:
        if not request.question.strip():
            raise ValidationError("Question must not be empty")

        top_k = request.top_k or self._top_k

        logger.info(
            "Processing question",
            extra={
                "state": QueryState.RECEIVED.value,
                "question_length": len(request.question),
                "top_k": top_k,
            },
        )

        # Checked before embedding so an empty index costs no API call
        stats = await self._vector_store.stats()
        if stats.is_empty:
            logger.info("Index is empty", extra={"state": QueryState.EMPTY_INDEX.value})
            return RAGResponse(answer=EMPTY_INDEX_MESSAGE, state=QueryState.EMPTY_INDEX)

        filters = {"source": request.source} if request.source else None
        results = await self._retriever.retrieve(
            query=request.question,
            top_k=top_k,
            filters=filters,
        )
        logger.debug(
            f"Search returned {len(results)} chunks",
            extra={"state": QueryState.SEARCHED.value},
        )

        if not results:
            logger.info("No matching chunks", extra={"state": QueryState.NO_MATCHES.value})
            return RAGResponse(answer=NO_MATCHES_MESSAGE, state=QueryState.NO_MATCHES)

        ranked = rank_by_reading_order(results)
        context = self._prompt_template.format_context([r.content for r in ranked])
        logger.debug(
            "Ranked chunks by reading order",
            extra={"state": QueryState.RANKED.value, "chunks": [r.chunk for r in ranked]},
        )

        system_prompt, user_prompt = self._prompt_template.build_prompt(
            question=request.question,
            context=context,
        )
        generation = await self._llm_client.generate_text(
            prompt=user_prompt,
            system_prompt=system_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        answer = generation.content.strip()
        if generation.is_empty:
            logger.warning("Model returned no content", extra={"model": generation.model})
            answer = NO_ANSWER_MESSAGE

        logger.info(
            "Question answered",
            extra={
                "state": QueryState.DONE.value,
                "sources_count": len(ranked),
                "tokens_used": generation.total_tokens,
            },
        )

        return RAGResponse(
            answer=answer,
            state=QueryState.DONE,
            sources=[
                SourceAttribution(
                    source=r.source,
                    chunk=r.chunk,
                    content=(
                        r.content[:SNIPPET_LENGTH] + "..."
                        if len(r.content) > SNIPPET_LENGTH
                        else r.content
                    ),
                    score=r.score,
                )
                for r in ranked
            ],
            model=generation.model,
            tokens_used=generation.total_tokens,
        )
