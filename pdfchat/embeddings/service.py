"""Embedding gateway interface and the HTTP implementation."""

import time
from abc import ABC, abstractmethod

import httpx

from pdfchat.config import EmbeddingSettings, get_settings
from pdfchat.embeddings.models import EmbeddingResult
from pdfchat.exceptions import EmbeddingError, ErrorCode
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Implementations do not retry; see ``embed_with_backoff`` for the
    caller-side rate-limit policy.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, in input order.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service for OpenAI-style ``/embeddings`` APIs.

    One request carries up to ``batch_size`` inputs; with the default of
    2048 a whole document is embedded in a single call.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    def _headers(self) -> dict[str, str]:
        if self._settings.api_key is None:
            return {}
        return {"Authorization": f"Bearer {self._settings.api_key.get_secret_value()}"}

    def _prepare(self, text: str) -> str:
        if self._settings.strip_newlines:
            return text.replace("\n", " ")
        return text

    async def embed(self, text: str) -> EmbeddingResult:
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        if not texts:
            return []

        client = await self._get_client()
        url = f"{self._settings.base_url.rstrip('/')}/embeddings"
        prepared = [self._prepare(text) for text in texts]

        all_results: list[EmbeddingResult] = []
        batch_size = self._settings.batch_size

        for offset in range(0, len(prepared), batch_size):
            batch = prepared[offset : offset + batch_size]
            started = time.perf_counter()
            try:
                batch_results = await self._embed_batch_request(client, url, batch, offset)
            except EmbeddingError:
                track_embedding_request(
                    model=self.model_name,
                    duration=time.perf_counter() - started,
                    batch_size=len(batch),
                    success=False,
                )
                raise
            track_embedding_request(
                model=self.model_name,
                duration=time.perf_counter() - started,
                batch_size=len(batch),
            )
            all_results.extend(batch_results)

        return all_results

    async def _embed_batch_request(
        self,
        client: httpx.AsyncClient,
        url: str,
        texts: list[str],
        offset: int = 0,
    ) -> list[EmbeddingResult]:
        """Make one embedding request.

        ``offset`` is the position of ``texts[0]`` in the caller's full list.

        Raises:
            EmbeddingError: If the request fails or the response is malformed.
        """
        payload = {
            "input": texts,
            "model": self._settings.model,
        }

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Embedding request timed out: {e}", extra={"url": url})
            raise EmbeddingError(
                "Embedding service timed out",
                code=ErrorCode.EMBEDDING_UNAVAILABLE,
                details={"timeout": self._settings.timeout},
            ) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(
                f"Embedding request failed: {status}",
                extra={"url": url, "status": status},
            )
            if status == 429:
                raise EmbeddingError(
                    "Embedding service rate limit exceeded",
                    code=ErrorCode.EMBEDDING_RATE_LIMIT,
                    details={"status_code": status},
                ) from e
            raise EmbeddingError(
                f"Embedding service returned {status}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": status},
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_UNAVAILABLE,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            items = sorted(
                enumerate(data["data"]),
                key=lambda pair: pair[1].get("index", pair[0]),
            )

            if len(items) != len(texts):
                raise ValueError(f"expected {len(texts)} embeddings, got {len(items)}")

            return [
                EmbeddingResult(
                    text=texts[position],
                    embedding=item["embedding"],
                    model=data.get("model", self._settings.model),
                    dimensions=len(item["embedding"]),
                    index=offset + position,
                )
                for position, (_, item) in enumerate(items)
            ]

        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e
