"""Application exception hierarchy.

All custom exceptions inherit from PDFChatError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "PDF-1000"
    CONFIGURATION_ERROR = "PDF-1001"
    VALIDATION_ERROR = "PDF-1002"

    # Document errors (2xxx)
    UNSUPPORTED_FORMAT = "PDF-2000"
    DOCUMENT_PARSE_ERROR = "PDF-2001"
    EMPTY_DOCUMENT = "PDF-2002"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "PDF-3000"
    EMBEDDING_UNAVAILABLE = "PDF-3001"
    EMBEDDING_RATE_LIMIT = "PDF-3002"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "PDF-4000"
    EMBEDDING_DIMENSION_MISMATCH = "PDF-4001"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "PDF-5000"
    LLM_TIMEOUT = "PDF-5001"
    LLM_RATE_LIMIT = "PDF-5002"

    # Retrieval errors (6xxx)
    RETRIEVAL_ERROR = "PDF-6000"

    # Indexing errors (7xxx)
    INDEXING_ERROR = "PDF-7000"


class PDFChatError(Exception):
    """Base exception for all application errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body."""
        return {
            "error": self.message,
            "code": self.code.value,
            "success": False,
        }


class ConfigurationError(PDFChatError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(PDFChatError):
    """Invalid caller input (missing file, blank question)."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class DocumentError(PDFChatError):
    """Document could not be turned into chunks."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DOCUMENT_PARSE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingError(PDFChatError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)

    @property
    def is_rate_limited(self) -> bool:
        """Whether the service asked us to slow down."""
        return self.code == ErrorCode.EMBEDDING_RATE_LIMIT


class VectorStoreError(PDFChatError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(PDFChatError):
    """LLM service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class RetrievalError(PDFChatError):
    """Retrieval operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RETRIEVAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IndexingError(PDFChatError):
    """Indexing pipeline error not covered by a more specific type."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INDEXING_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
