"""Durable tier: subject embeddings stored in Supabase.

One row per (subject_id, embedding_type); writes upsert on that pair so the
latest run overwrites the previous vector.
"""

from typing import Any

from supabase import Client

from effort_engine.core.config import get_settings
from effort_engine.core.logging import get_logger
from effort_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


class SupabaseEmbeddingTable:
    """Point get/put and per-subject listing over the embeddings table."""

    def __init__(self, client: Client | None = None, table: str | None = None):
        self.client = client or get_supabase()
        self.table = table or get_settings().EMBEDDINGS_TABLE

    def get(self, subject_id: str, embedding_type: str) -> dict[str, Any] | None:
        """
        Fetch one embedding row.

        Args:
            subject_id: Subject identifier
            embedding_type: Embedding type tag

        Returns:
            Row dict, or None if no row exists

        Raises:
            Exception: If database operation fails
        """
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("subject_id", subject_id)
                .eq("embedding_type", embedding_type)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            logger.error(f"Failed to fetch {embedding_type} embedding for {subject_id}: {e}")
            raise

    def put(self, row: dict[str, Any]) -> dict[str, Any]:
        """
        Upsert an embedding row on (subject_id, embedding_type).

        Args:
            row: Serialized EmbeddingRecord (see EmbeddingRecord.to_row)

        Returns:
            The stored row

        Raises:
            ValueError: If the upsert returned no data
            Exception: If database operation fails
        """
        try:
            response = (
                self.client.table(self.table)
                .upsert(row, on_conflict="subject_id,embedding_type")
                .execute()
            )

            if not response.data:
                raise ValueError("No data returned from embedding upsert")

            logger.info(
                f"Stored {row['embedding_type']} embedding for {row['subject_id']}",
                extra={"subject_id": row["subject_id"]},
            )
            return response.data[0]

        except Exception as e:
            logger.error(
                f"Failed to store {row.get('embedding_type')} embedding "
                f"for {row.get('subject_id')}: {e}"
            )
            raise

    def list_types(self, subject_id: str) -> list[str]:
        """
        List every embedding type stored for a subject.

        Args:
            subject_id: Subject identifier

        Returns:
            Embedding type tags, ordered by type name
        """
        try:
            response = (
                self.client.table(self.table)
                .select("embedding_type")
                .eq("subject_id", subject_id)
                .order("embedding_type", desc=False)
                .execute()
            )
            return [row["embedding_type"] for row in response.data or [] if row.get("embedding_type")]

        except Exception as e:
            logger.error(f"Failed to list embedding types for {subject_id}: {e}")
            raise
