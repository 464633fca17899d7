"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables (or a local .env).
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pdfchat.exceptions import ConfigurationError

OPENAI_BASE_URL = "https://api.openai.com/v1"


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ReplaceStrategy(str, Enum):
    """How re-indexing a source replaces its previous vectors."""

    DELETE_THEN_UPSERT = "delete_then_upsert"
    UPSERT_THEN_PRUNE = "upsert_then_prune"


class LLMSettings(BaseSettings):
    """Chat-completion service configuration.

    Any OpenAI-compatible endpoint works (OpenAI, vLLM, Ollama).
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default=OPENAI_BASE_URL,
        description="Chat completions API base URL",
    )
    model: str = Field(
        default="gpt-3.5-turbo",
        description="Model name to use for answer synthesis",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the completions API",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=512,
        ge=1,
        description="Maximum tokens in the answer",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default=OPENAI_BASE_URL,
        description="Embeddings API base URL",
    )
    model: str = Field(
        default="text-embedding-ada-002",
        description="Embedding model name",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the embeddings API",
    )
    batch_size: int = Field(
        default=2048,
        ge=1,
        description="Maximum inputs per embedding request",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    strip_newlines: bool = Field(
        default=True,
        description="Replace newlines with spaces before embedding",
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts per call when the API signals a rate limit",
    )
    backoff_min: float = Field(
        default=1.0,
        ge=0.0,
        description="Minimum backoff between rate-limited attempts (seconds)",
    )
    backoff_max: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum backoff between rate-limited attempts (seconds)",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL, or ':memory:' for an in-process index",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="pdf_chunks",
        description="Collection holding the chunk vectors",
    )
    dimension: int = Field(
        default=1024,
        ge=1,
        description="Vector size of the collection; embeddings are truncated to it",
    )
    upsert_batch_size: int = Field(
        default=100,
        ge=1,
        description="Records per upsert request",
    )
    timeout: int = Field(
        default=30,
        description="Request timeout in seconds",
    )


class IndexingSettings(BaseSettings):
    """Document ingestion configuration."""

    model_config = SettingsConfigDict(env_prefix="INDEXING_")

    chunk_size: int = Field(
        default=1000,
        ge=50,
        description="Target chunk size in characters",
    )
    chunk_overlap: int = Field(
        default=200,
        ge=0,
        description="Characters shared by consecutive chunks",
    )
    local_pdf_dir: str = Field(
        default="pdfs",
        description="Folder scanned by the local batch indexer",
    )
    replace_strategy: ReplaceStrategy = Field(
        default=ReplaceStrategy.DELETE_THEN_UPSERT,
        description="How a re-indexed source replaces its old vectors",
    )


class RetrievalSettings(BaseSettings):
    """Query-time retrieval configuration."""

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_")

    top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Nearest chunks handed to the language model",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)

    def validate_required(self) -> None:
        """Check the settings needed before any client is built.

        Raises:
            ConfigurationError: If a required value is missing.
        """
        missing: list[str] = []

        if self.embedding.base_url.startswith(OPENAI_BASE_URL) and not self.embedding.api_key:
            missing.append("EMBEDDING_API_KEY")
        if self.llm.base_url.startswith(OPENAI_BASE_URL) and not self.llm.api_key:
            missing.append("LLM_API_KEY")
        if not self.qdrant.collection_name.strip():
            missing.append("QDRANT_COLLECTION_NAME")

        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing},
            )

        if self.indexing.chunk_overlap >= self.indexing.chunk_size:
            raise ConfigurationError(
                "INDEXING_CHUNK_OVERLAP must be less than INDEXING_CHUNK_SIZE",
                details={
                    "chunk_size": self.indexing.chunk_size,
                    "chunk_overlap": self.indexing.chunk_overlap,
                },
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
