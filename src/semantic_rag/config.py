"""Settings for the semantic RAG service, loaded from the environment and `.env`."""

import warnings
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Every settings group reads `.env` as well as the process environment
_ENV_FILE = {
    "env_file": ".env",
    "env_file_encoding": "utf-8",
    "case_sensitive": False,
    "extra": "ignore",
}


class Environment(str, Enum):
    """Deployment environment; production switches on JSON logs and strict checks."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DistanceMetric(str, Enum):
    """Distance metrics supported for vector collections (Qdrant naming)."""

    COSINE = "Cosine"
    EUCLID = "Euclid"
    DOT = "Dot"
    MANHATTAN = "Manhattan"


class OpenAISettings(BaseSettings):
    """OpenAI credentials shared by the embedding and generation clients."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", **_ENV_FILE)

    api_key: Optional[str] = Field(
        default=None, description="OpenAI API key. Env var: OPENAI_API_KEY"
    )
    base_url: Optional[str] = Field(
        default=None, description="Optional OpenAI base URL (advanced). Env var: OPENAI_BASE_URL"
    )

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)


class EmbeddingSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_", **_ENV_FILE)

    model: str = Field(
        default="text-embedding-ada-002",
        description="Embedding model name. Env var: EMBEDDING_MODEL",
    )
    dimension: int = Field(
        default=1536,
        gt=0,
        description="Embedding dimension, also used to size both collections. Env var: EMBEDDING_DIMENSION",
    )
    batch_size: int = Field(
        default=100,
        description="Batch size for batch embedding requests. Env var: EMBEDDING_BATCH_SIZE",
    )
    timeout: float = Field(
        default=30.0,
        description="Embedding request timeout in seconds. Env var: EMBEDDING_TIMEOUT",
    )
    max_retries: int = Field(
        default=1,
        ge=1,
        description="Total attempts per embedding request (1 = no retry). Env var: EMBEDDING_MAX_RETRIES",
    )


class GenerationSettings(BaseSettings):
    """Completion model configuration (LiteLLM model names)."""

    model_config = SettingsConfigDict(env_prefix="GENERATION_", **_ENV_FILE)

    model: str = Field(
        default="openai/gpt-4o",
        description="Completion model name (LiteLLM format). Env var: GENERATION_MODEL",
    )
    temperature: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=2.0,
        description="Optional sampling temperature. Env var: GENERATION_TEMPERATURE",
    )
    max_tokens: Optional[int] = Field(
        default=None, description="Optional completion token limit. Env var: GENERATION_MAX_TOKENS"
    )
    timeout: float = Field(
        default=60.0,
        description="Completion request timeout in seconds. Env var: GENERATION_TIMEOUT",
    )
    max_retries: int = Field(
        default=1,
        ge=1,
        description="Total attempts per completion request (1 = no retry). Env var: GENERATION_MAX_RETRIES",
    )
    system_prompt: str = Field(
        default=(
            "You are a helpful assistant. Answer the user's question using the "
            "provided context. If the context does not contain the answer, say so."
        ),
        description="Fixed system preamble sent with every prompt. Env var: GENERATION_SYSTEM_PROMPT",
    )


class QdrantSettings(BaseSettings):
    """Qdrant connection and the two collections it hosts."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", **_ENV_FILE)

    url: str = Field(
        default="http://localhost:6333", description="Qdrant URL. Env var: QDRANT_URL"
    )
    api_key: Optional[str] = Field(
        default=None, description="Qdrant API key (for Qdrant Cloud). Env var: QDRANT_API_KEY"
    )
    timeout: int = Field(default=30, description="Per-call timeout in seconds. Env var: QDRANT_TIMEOUT")
    prefer_grpc: bool = Field(
        default=False, description="Talk to Qdrant over gRPC. Env var: QDRANT_PREFER_GRPC"
    )
    knowledge_collection: str = Field(
        default="my-collection",
        description="Collection holding source documents. Env var: QDRANT_KNOWLEDGE_COLLECTION",
    )
    knowledge_distance: DistanceMetric = Field(
        default=DistanceMetric.COSINE,
        description="Distance metric for the knowledge collection",
    )
    cache_collection: str = Field(
        default="my-collection_cached",
        description="Collection holding cached answers. Env var: QDRANT_CACHE_COLLECTION",
    )
    cache_distance: DistanceMetric = Field(
        default=DistanceMetric.EUCLID,
        description="Distance metric for the cache collection",
    )


class CacheSettings(BaseSettings):
    """Semantic cache policy."""

    model_config = SettingsConfigDict(env_prefix="CACHE_", **_ENV_FILE)

    max_distance: Optional[float] = Field(
        default=None,
        description=(
            "Optional score threshold for cache hits, interpreted by the cache "
            "collection's metric (max distance for Euclid). Unset accepts any "
            "nearest point. Env var: CACHE_MAX_DISTANCE"
        ),
    )
    write_best_effort: bool = Field(
        default=False,
        description=(
            "When true, a failed cache write is logged and the answer is still "
            "returned. Env var: CACHE_WRITE_BEST_EFFORT"
        ),
    )


class ServerSettings(BaseSettings):
    """Uvicorn bind address."""

    model_config = SettingsConfigDict(env_prefix="", **_ENV_FILE)

    host: str = Field(default="0.0.0.0", description="Server host", alias="HOST")
    port: int = Field(default=8000, description="HTTP server port", alias="PORT")
    reload: bool = Field(
        default=False, description="Enable auto-reload (development only)"
    )


class Settings(BaseSettings):
    """Top-level settings; sub-groups are read with their own env prefixes."""

    model_config = SettingsConfigDict(**_ENV_FILE)

    # Application settings
    app_name: str = Field(default="semantic-rag", description="Application name")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Start-up behaviour
    setup_collections: bool = Field(
        default=True,
        description="Declare both collections on start-up. Env var: SETUP_COLLECTIONS",
    )
    seed_csv_path: Optional[str] = Field(
        default=None,
        description="Optional CSV file ingested into the knowledge collection on start-up. Env var: SEED_CSV_PATH",
    )

    # Sub-settings
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_configuration(self) -> None:
        """Warn about missing credentials."""
        if not self.openai.is_configured:
            warnings.warn(
                "OPENAI_API_KEY is not set. Embedding and generation calls will fail.",
                UserWarning,
            )

    def validate_production_settings(self) -> None:
        """Reject settings that must not reach production."""
        if self.is_production:
            if self.debug:
                raise ValueError("DEBUG must be False in production")
            if not self.openai.is_configured:
                raise ValueError("OPENAI_API_KEY must be configured in production.")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings instance.

    Entry points (the FastAPI app and the ingestion CLI) call this once and
    pass the result to every client explicitly.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.validate_configuration()
        try:
            _settings.validate_production_settings()
        except ValueError as e:
            import logging

            logging.error(f"Configuration validation failed: {e}")
            if _settings.is_production:
                raise  # Fail fast in production
    return _settings
