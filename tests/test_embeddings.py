"""Tests for the embedding gateway."""

from unittest.mock import AsyncMock

import httpx
import pytest
from pydantic import SecretStr

from pdfchat.config import EmbeddingSettings
from pdfchat.embeddings.models import EmbeddingResult
from pdfchat.embeddings.retry import embed_with_backoff, embed_with_settings
from pdfchat.embeddings.service import HTTPEmbeddingService
from pdfchat.exceptions import EmbeddingError, ErrorCode

URL = "http://embeddings.test/v1/embeddings"


def _response(status_code: int, json: dict | None = None) -> httpx.Response:
    return httpx.Response(status_code, json=json or {}, request=httpx.Request("POST", URL))


def _data(*vectors: list[float]) -> dict:
    return {
        "model": "text-embedding-ada-002",
        "data": [{"index": i, "embedding": v} for i, v in enumerate(vectors)],
    }


def _service(mock_client: AsyncMock, **overrides: object) -> HTTPEmbeddingService:
    settings = EmbeddingSettings(base_url="http://embeddings.test/v1", **overrides)  # type: ignore[arg-type]
    return HTTPEmbeddingService(settings=settings, client=mock_client)


class TestEmbeddingResult:
    """Tests for EmbeddingResult model."""

    def test_valid_result(self) -> None:
        result = EmbeddingResult(
            text="test",
            embedding=[0.1, 0.2, 0.3],
            model="test-model",
            dimensions=3,
        )
        assert result.dimensions == 3
        assert result.index == 0

    def test_dimensions_mismatch(self) -> None:
        """Mismatched dimensions raise error."""
        with pytest.raises(ValueError, match="dimensions"):
            EmbeddingResult(
                text="test",
                embedding=[0.1, 0.2, 0.3],
                model="test-model",
                dimensions=5,
            )


class TestHTTPEmbeddingService:
    """Tests for HTTPEmbeddingService."""

    def test_model_name(self) -> None:
        service = HTTPEmbeddingService(settings=EmbeddingSettings(model="test-model"))
        assert service.model_name == "test-model"

    async def test_embed_batch_request_shape(self) -> None:
        """One POST carries every input, newlines replaced, with bearer auth."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(200, _data([0.1, 0.2], [0.3, 0.4]))
        service = _service(mock_client, api_key=SecretStr("sk-test"))

        results = await service.embed_batch(["line one\nline two", "other"])

        mock_client.post.assert_called_once()
        call = mock_client.post.call_args
        assert call.args[0] == URL
        assert call.kwargs["json"] == {
            "input": ["line one line two", "other"],
            "model": "text-embedding-ada-002",
        }
        assert call.kwargs["headers"] == {"Authorization": "Bearer sk-test"}
        assert [r.embedding for r in results] == [[0.1, 0.2], [0.3, 0.4]]
        assert results[0].text == "line one line two"

    async def test_newlines_kept_when_disabled(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(200, _data([0.5]))
        service = _service(mock_client, strip_newlines=False)

        await service.embed("a\nb")

        assert mock_client.post.call_args.kwargs["json"]["input"] == ["a\nb"]

    async def test_results_follow_response_index(self) -> None:
        """Out-of-order response items are matched back by index."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(
            200,
            {
                "data": [
                    {"index": 1, "embedding": [2.0]},
                    {"index": 0, "embedding": [1.0]},
                ]
            },
        )
        service = _service(mock_client)

        results = await service.embed_batch(["first", "second"])

        assert results[0].text == "first"
        assert results[0].embedding == [1.0]
        assert results[1].embedding == [2.0]

    async def test_batches_carry_global_index(self) -> None:
        """Inputs beyond batch_size go in further requests."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = [
            _response(200, _data([1.0], [2.0])),
            _response(200, _data([3.0])),
        ]
        service = _service(mock_client, batch_size=2)

        results = await service.embed_batch(["a", "b", "c"])

        assert mock_client.post.call_count == 2
        assert [r.index for r in results] == [0, 1, 2]
        assert [r.text for r in results] == ["a", "b", "c"]

    async def test_embed_empty_list(self) -> None:
        """Empty list returns empty results without a request."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        service = _service(mock_client)

        assert await service.embed_batch([]) == []
        mock_client.post.assert_not_called()

    async def test_rate_limit(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(429)

        with pytest.raises(EmbeddingError) as exc_info:
            await _service(mock_client).embed("x")

        assert exc_info.value.code == ErrorCode.EMBEDDING_RATE_LIMIT
        assert exc_info.value.is_rate_limited

    async def test_server_error(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(500)

        with pytest.raises(EmbeddingError) as exc_info:
            await _service(mock_client).embed("x")

        assert exc_info.value.code == ErrorCode.EMBEDDING_SERVICE_ERROR

    async def test_timeout(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(EmbeddingError) as exc_info:
            await _service(mock_client).embed("x")

        assert exc_info.value.code == ErrorCode.EMBEDDING_UNAVAILABLE

    async def test_connection_error(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.ConnectError("refused")

        with pytest.raises(EmbeddingError) as exc_info:
            await _service(mock_client).embed("x")

        assert exc_info.value.code == ErrorCode.EMBEDDING_UNAVAILABLE

    async def test_count_mismatch(self) -> None:
        """Fewer vectors than inputs is a malformed response."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(200, _data([1.0]))

        with pytest.raises(EmbeddingError, match="Invalid response"):
            await _service(mock_client).embed_batch(["a", "b"])

    async def test_non_object_items(self) -> None:
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = _response(200, {"data": ["oops", "nope"]})

        with pytest.raises(EmbeddingError) as exc_info:
            await _service(mock_client).embed_batch(["a", "b"])

        assert exc_info.value.code == ErrorCode.EMBEDDING_SERVICE_ERROR

    async def test_close_owned_client_only(self) -> None:
        """An injected client is left open."""
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        service = _service(mock_client)

        await service.close()

        mock_client.aclose.assert_not_called()


class TestEmbedWithBackoff:
    """Tests for caller-side rate-limit retry."""

    def _result(self, text: str) -> EmbeddingResult:
        return EmbeddingResult(text=text, embedding=[1.0], model="m", dimensions=1)

    async def test_retries_rate_limit_then_succeeds(self) -> None:
        service = AsyncMock()
        service.embed_batch.side_effect = [
            EmbeddingError("slow down", code=ErrorCode.EMBEDDING_RATE_LIMIT),
            [self._result("q")],
        ]

        results = await embed_with_backoff(service, ["q"], backoff_min=0, backoff_max=0)

        assert service.embed_batch.call_count == 2
        assert results[0].text == "q"

    async def test_gives_up_after_max_attempts(self) -> None:
        service = AsyncMock()
        service.embed_batch.side_effect = EmbeddingError(
            "slow down", code=ErrorCode.EMBEDDING_RATE_LIMIT
        )

        with pytest.raises(EmbeddingError) as exc_info:
            await embed_with_backoff(
                service, ["q"], max_attempts=3, backoff_min=0, backoff_max=0
            )

        assert service.embed_batch.call_count == 3
        assert exc_info.value.code == ErrorCode.EMBEDDING_RATE_LIMIT

    async def test_other_errors_not_retried(self) -> None:
        service = AsyncMock()
        service.embed_batch.side_effect = EmbeddingError(
            "down", code=ErrorCode.EMBEDDING_UNAVAILABLE
        )

        with pytest.raises(EmbeddingError):
            await embed_with_backoff(service, ["q"], backoff_min=0, backoff_max=0)

        assert service.embed_batch.call_count == 1

    async def test_settings_limits(self) -> None:
        service = AsyncMock()
        service.embed_batch.side_effect = EmbeddingError(
            "slow down", code=ErrorCode.EMBEDDING_RATE_LIMIT
        )
        settings = EmbeddingSettings(max_attempts=2, backoff_min=0.0, backoff_max=0.0)

        with pytest.raises(EmbeddingError):
            await embed_with_settings(service, ["q"], settings)

        assert service.embed_batch.call_count == 2
