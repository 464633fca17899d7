"""Tests for application exceptions."""

from pdfchat.exceptions import (
    ConfigurationError,
    DocumentError,
    EmbeddingError,
    ErrorCode,
    IndexingError,
    LLMError,
    PDFChatError,
    RetrievalError,
    ValidationError,
    VectorStoreError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow PDF-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("PDF-")
            assert len(code.value) == 8

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestPDFChatError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = PDFChatError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}

    def test_exception_with_details(self) -> None:
        """Exception can have additional details."""
        error = PDFChatError(
            "Validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            details={"field": "question"},
        )
        assert error.details == {"field": "question"}

    def test_to_dict(self) -> None:
        """Exception converts to the API error body; details stay server-side."""
        error = PDFChatError(
            "Something went wrong",
            details={"trace_id": "abc123"},
        )

        assert error.to_dict() == {
            "error": "Something went wrong",
            "code": "PDF-1000",
            "success": False,
        }

    def test_str_representation(self) -> None:
        """Exception string is the message."""
        assert str(PDFChatError("Test error")) == "Test error"


class TestSpecificExceptions:
    """Tests for the component exceptions."""

    def test_fixed_codes(self) -> None:
        """Configuration and validation errors carry fixed codes."""
        assert ConfigurationError("x").code == ErrorCode.CONFIGURATION_ERROR
        assert ValidationError("x").code == ErrorCode.VALIDATION_ERROR

    def test_default_codes(self) -> None:
        """Each component error has a default code."""
        assert DocumentError("x").code == ErrorCode.DOCUMENT_PARSE_ERROR
        assert EmbeddingError("x").code == ErrorCode.EMBEDDING_SERVICE_ERROR
        assert VectorStoreError("x").code == ErrorCode.VECTOR_STORE_ERROR
        assert LLMError("x").code == ErrorCode.LLM_SERVICE_ERROR
        assert RetrievalError("x").code == ErrorCode.RETRIEVAL_ERROR
        assert IndexingError("x").code == ErrorCode.INDEXING_ERROR

    def test_all_inherit_from_base(self) -> None:
        """All exceptions can be caught as PDFChatError."""
        for exc_class in (
            ConfigurationError,
            ValidationError,
            DocumentError,
            EmbeddingError,
            VectorStoreError,
            LLMError,
            RetrievalError,
            IndexingError,
        ):
            assert isinstance(exc_class("x"), PDFChatError)

    def test_rate_limit_flag(self) -> None:
        """Only the rate-limit code marks an embedding error as retryable."""
        assert EmbeddingError("x", code=ErrorCode.EMBEDDING_RATE_LIMIT).is_rate_limited
        assert not EmbeddingError("x", code=ErrorCode.EMBEDDING_UNAVAILABLE).is_rate_limited
