"""LLM client interface and the OpenAI-compatible implementation."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from pdfchat.config import LLMSettings, get_settings
from pdfchat.exceptions import ErrorCode, LLMError
from pdfchat.llm.models import GenerationResult, Message, Role
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_llm_request

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from messages.

        Args:
            messages: Conversation messages.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.

        Raises:
            LLMError: If generation fails.
        """
        ...

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from a user prompt and optional system prompt."""
        messages: list[Message] = []

        if system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=system_prompt))

        messages.append(Message(role=Role.USER, content=prompt))

        return await self.generate(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None


class OpenAICompatibleClient(LLMClient):
    """LLM client for OpenAI-compatible ``/chat/completions`` APIs.

    Works with the OpenAI API, vLLM, Ollama and other compatible servers.
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        return self._settings.model

    @property
    def completions_url(self) -> str:
        return f"{self._settings.base_url.rstrip('/')}/chat/completions"

    def _payload(
        self,
        messages: list[Message],
        temperature: float | None,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        if temperature is None:
            temperature = self._settings.temperature
        if max_tokens is None:
            max_tokens = self._settings.max_tokens
        return {
            "model": self._settings.model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def _headers(self) -> dict[str, str]:
        if self._settings.api_key is None:
            return {}
        return {"Authorization": f"Bearer {self._settings.api_key.get_secret_value()}"}

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        client = await self._get_client()
        started = time.perf_counter()

        try:
            response = await client.post(
                self.completions_url,
                json=self._payload(messages, temperature, max_tokens),
                headers=self._headers(),
            )
            response.raise_for_status()
            result = self._parse(response.json())
        except LLMError:
            self._track(started, None)
            raise
        except httpx.HTTPError as e:
            self._track(started, None)
            raise self._map_http_error(e) from e
        except ValueError as e:
            self._track(started, None)
            raise LLMError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
            ) from e

        self._track(started, result)
        logger.debug(
            "LLM completion",
            extra={"model": result.model, "tokens_used": result.total_tokens},
        )
        return result

    def _parse(self, data: Any) -> GenerationResult:
        """Read the first choice of a completions response."""
        try:
            choice = data["choices"][0]
            usage = data.get("usage") or {}
            # Content is null for refusals and some tool-call responses
            content = choice["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise LLMError(
                f"Invalid response from LLM: {e!r}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"error": repr(e)},
            ) from e

        return GenerationResult(
            content=content,
            model=data.get("model", self._settings.model),
            finish_reason=choice.get("finish_reason"),
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )

    def _map_http_error(self, error: httpx.HTTPError) -> LLMError:
        if isinstance(error, httpx.TimeoutException):
            logger.error(f"LLM request timed out: {error}")
            return LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"timeout": self._settings.timeout},
            )

        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            logger.error(f"LLM request failed: {status}")
            if status == 429:
                return LLMError(
                    "Rate limit exceeded",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"status_code": status},
                )
            return LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"status_code": status},
            )

        logger.error(f"LLM connection error: {error}")
        return LLMError(
            f"Failed to connect to LLM service: {error}",
            code=ErrorCode.LLM_SERVICE_ERROR,
            details={"url": self.completions_url},
        )

    def _track(self, started: float, result: GenerationResult | None) -> None:
        track_llm_request(
            model=self.model_name,
            duration=time.perf_counter() - started,
            prompt_tokens=result.prompt_tokens if result else 0,
            completion_tokens=result.completion_tokens if result else 0,
            success=result is not None,
        )
