"""OpenAI embeddings generation with validation."""

from typing import Protocol

from openai import OpenAI

from effort_engine.core.config import get_settings
from effort_engine.core.logging import get_logger

logger = get_logger(__name__)


class EmbeddingModel(Protocol):
    """Opaque text -> fixed-length vector function."""

    model_id: str

    def embed(self, text: str) -> list[float]: ...


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def embed_texts(texts: list[str]) -> list[list[float]]:
    """
    Generate embeddings for a list of texts using OpenAI.

    Args:
        texts: List of text strings to embed

    Returns:
        List of embedding vectors (each vector is list of floats)

    Raises:
        ValueError: If embedding dimension doesn't match expected EMBEDDING_DIM
        Exception: If OpenAI API call fails
    """
    if not texts:
        return []

    settings = get_settings()
    client = _get_client()

    try:
        response = client.embeddings.create(
            model=settings.EMBEDDING_MODEL,
            input=texts,
        )

        embeddings = []
        for i, embedding_obj in enumerate(response.data):
            embedding = embedding_obj.embedding

            # Validate dimension
            if len(embedding) != settings.EMBEDDING_DIM:
                raise ValueError(
                    f"Embedding dimension mismatch for text {i}: "
                    f"expected {settings.EMBEDDING_DIM}, got {len(embedding)}"
                )

            embeddings.append(embedding)

        logger.info(
            f"Generated {len(embeddings)} embeddings using {settings.EMBEDDING_MODEL}",
            extra={"extra_data": {"model": settings.EMBEDDING_MODEL, "count": len(embeddings)}},
        )

        return embeddings

    except Exception as e:
        logger.error(f"Failed to generate embeddings: {e}")
        raise


def embed_text(text: str) -> list[float]:
    """Embed a single text. Raises ValueError on blank input."""
    if not text or not text.strip():
        raise ValueError("Cannot embed empty text")
    return embed_texts([text])[0]


class OpenAIEmbeddingModel:
    """EmbeddingModel backed by the configured OpenAI embeddings model."""

    def __init__(self):
        self.model_id = get_settings().EMBEDDING_MODEL

    def embed(self, text: str) -> list[float]:
        return embed_text(text)
