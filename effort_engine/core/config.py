"""Configuration management for the Effort Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required) - durable tier and log source
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    EFFORT_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, test, prod")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # Fast tier (Redis). Unset REDIS_URL disables the fast tier entirely.
    REDIS_URL: str | None = Field(default=None, description="Redis URL for the fast tier")
    FAST_TIER_KEY_PREFIX: str = Field(
        default="subject_embedding", description="Key prefix for cached embeddings"
    )
    FAST_TIER_TTL_SECONDS: int | None = Field(
        default=86_400, description="Fast tier entry TTL (None keeps entries until evicted)"
    )

    # Durable tier / log source tables
    EMBEDDINGS_TABLE: str = Field(
        default="subject_embeddings", description="Table holding one row per subject/type"
    )
    LOG_EVENTS_TABLE: str = Field(
        default="subject_log_events", description="Table holding raw subject log lines"
    )

    # Pipeline defaults
    DEFAULT_WINDOW_HOURS: int = Field(default=24, description="Default log lookback window")
    ANOMALY_SIMILARITY_THRESHOLD: float = Field(
        default=0.7, description="Cosine similarity below which behavior counts as anomalous"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
