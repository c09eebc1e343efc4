"""Two-tier embedding storage.

The durable tier is the source of truth: its write outcome is the outcome of
the whole write. The optional fast tier only accelerates reads, so every
fast-tier failure is logged and swallowed.

Write: durable first, then best-effort fast. If the fast write fails the
       cached entry is deleted so it cannot shadow the new durable row.
Read:  fast first; on a fast miss, error or unreadable entry fall back to
       durable and warm the fast tier with what durable returned.
"""

from typing import Any, Protocol

from effort_engine.core.errors import NotFoundError, StoreWriteError
from effort_engine.core.logging import get_logger
from effort_engine.core.schemas_effort import DEFAULT_EMBEDDING_TYPE, EmbeddingRecord

logger = get_logger(__name__)


class DurableTier(Protocol):
    def get(self, subject_id: str, embedding_type: str) -> dict[str, Any] | None: ...

    def put(self, row: dict[str, Any]) -> Any: ...

    def list_types(self, subject_id: str) -> list[str]: ...


class FastTier(Protocol):
    def get(self, subject_id: str, embedding_type: str) -> dict[str, Any] | None: ...

    def put(self, row: dict[str, Any]) -> Any: ...

    def delete(self, subject_id: str, embedding_type: str) -> Any: ...


class EmbeddingStore:
    """Cache-accelerated storage for (subject_id, embedding_type) -> EmbeddingRecord."""

    def __init__(self, durable: DurableTier, fast: FastTier | None = None):
        self.durable = durable
        self.fast = fast

    def write(self, record: EmbeddingRecord) -> None:
        """
        Persist a record, overwriting any previous one for the same key.

        Args:
            record: Record to store

        Raises:
            ValueError: If the record's vector is empty
            StoreWriteError: If the durable tier write fails
        """
        if not record.vector:
            raise ValueError(
                f"Refusing to store empty {record.embedding_type} vector for {record.subject_id}"
            )

        row = record.to_row()

        try:
            self.durable.put(row)
        except Exception as e:
            raise StoreWriteError(
                f"Durable write failed for {record.embedding_type} embedding "
                f"of {record.subject_id}: {e}",
                subject_id=record.subject_id,
                embedding_type=record.embedding_type,
            ) from e

        self._fast_put(row)

    def read(
        self,
        subject_id: str,
        embedding_type: str = DEFAULT_EMBEDDING_TYPE,
    ) -> EmbeddingRecord | None:
        """
        Look up a record, fast tier first.

        Args:
            subject_id: Subject identifier
            embedding_type: Embedding type tag

        Returns:
            The record, or None when neither tier has it

        Raises:
            Exception: If the durable tier read fails
        """
        record = self._fast_get(subject_id, embedding_type)
        if record is not None:
            return record

        row = self.durable.get(subject_id, embedding_type)
        if row is None:
            logger.debug(f"No {embedding_type} embedding stored for {subject_id}")
            return None

        record = EmbeddingRecord.from_row(row)
        self._fast_put(record.to_row())
        return record

    def require(
        self,
        subject_id: str,
        embedding_type: str = DEFAULT_EMBEDDING_TYPE,
    ) -> EmbeddingRecord:
        """Like read(), but a missing record raises NotFoundError."""
        record = self.read(subject_id, embedding_type)
        if record is None:
            raise NotFoundError(subject_id, embedding_type)
        return record

    def list_embedding_types(self, subject_id: str) -> list[str]:
        return self.durable.list_types(subject_id)

    def _fast_get(self, subject_id: str, embedding_type: str) -> EmbeddingRecord | None:
        """Fast-tier lookup. Unreachable tiers and unreadable entries both count as a miss."""
        if self.fast is None:
            return None
        try:
            row = self.fast.get(subject_id, embedding_type)
            return EmbeddingRecord.from_row(row) if row is not None else None
        except Exception as e:
            logger.warning(
                f"Fast tier read failed for {embedding_type} embedding of {subject_id}, "
                f"falling back to durable tier: {e}",
                extra={"subject_id": subject_id, "embedding_type": embedding_type},
            )
            return None

    def _fast_put(self, row: dict[str, Any]) -> None:
        if self.fast is None:
            return
        try:
            self.fast.put(row)
        except Exception as e:
            logger.warning(
                f"Fast tier write failed for {row['embedding_type']} embedding "
                f"of {row['subject_id']}, invalidating cached entry: {e}",
                extra={"subject_id": row["subject_id"], "embedding_type": row["embedding_type"]},
            )
            self._fast_delete(row["subject_id"], row["embedding_type"])

    def _fast_delete(self, subject_id: str, embedding_type: str) -> None:
        # A stale entry would shadow the durable row until its TTL expires
        try:
            self.fast.delete(subject_id, embedding_type)
        except Exception as e:
            logger.warning(
                f"Fast tier invalidation failed for {embedding_type} embedding "
                f"of {subject_id}: {e}",
                extra={"subject_id": subject_id, "embedding_type": embedding_type},
            )
