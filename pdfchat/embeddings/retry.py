"""Caller-side backoff for rate-limited embedding calls."""

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from pdfchat.config import EmbeddingSettings
from pdfchat.embeddings.models import EmbeddingResult
from pdfchat.embeddings.service import EmbeddingService
from pdfchat.exceptions import EmbeddingError
from pdfchat.logging_config import get_logger

logger = get_logger(__name__)


def _is_rate_limited(error: BaseException) -> bool:
    return isinstance(error, EmbeddingError) and error.is_rate_limited


def _log_retry(retry_state) -> None:  # type: ignore[no-untyped-def]
    logger.warning(
        "Embedding rate limited, backing off",
        extra={
            "attempt": retry_state.attempt_number,
            "sleep": retry_state.next_action.sleep if retry_state.next_action else 0,
        },
    )


async def embed_with_backoff(
    service: EmbeddingService,
    texts: list[str],
    max_attempts: int = 3,
    backoff_min: float = 1.0,
    backoff_max: float = 10.0,
) -> list[EmbeddingResult]:
    """Embed ``texts``, retrying only when the service reports a rate limit.

    Every other ``EmbeddingError`` propagates on the first attempt. After
    ``max_attempts`` rate-limited attempts the last error is re-raised.
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(_is_rate_limited),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_min, min=backoff_min, max=backoff_max),
        before_sleep=_log_retry,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            return await service.embed_batch(texts)

    raise AssertionError("unreachable")  # pragma: no cover


async def embed_with_settings(
    service: EmbeddingService,
    texts: list[str],
    settings: EmbeddingSettings,
) -> list[EmbeddingResult]:
    """``embed_with_backoff`` using the attempt and backoff limits in ``settings``."""
    return await embed_with_backoff(
        service,
        texts,
        max_attempts=settings.max_attempts,
        backoff_min=settings.backoff_min,
        backoff_max=settings.backoff_max,
    )
