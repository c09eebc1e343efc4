"""Log source backed by a Supabase table of raw subject log lines.

Expected columns: subject_id, message, timestamp (epoch ms), and an optional
log_group used to narrow the query to one stream.
"""

import time

from supabase import Client

from effort_engine.core.config import get_settings
from effort_engine.core.log_normalizer import MS_PER_HOUR
from effort_engine.core.logging import get_logger
from effort_engine.core.schemas_effort import LogEvent
from effort_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)


class SupabaseLogSource:
    """Fetches a subject's log lines for a lookback window."""

    def __init__(
        self,
        client: Client | None = None,
        table: str | None = None,
        log_group: str | None = None,
        limit: int = 5000,
    ):
        self.client = client or get_supabase()
        self.table = table or get_settings().LOG_EVENTS_TABLE
        self.log_group = log_group
        self.limit = limit

    @property
    def name(self) -> str:
        return f"{self.table}:{self.log_group}" if self.log_group else self.table

    def fetch(self, subject_id: str, window_hours: int) -> list[LogEvent]:
        """
        Fetch log events newer than now - window_hours, oldest first.

        Args:
            subject_id: Subject identifier
            window_hours: Lookback window in hours

        Returns:
            LogEvents (possibly empty)

        Raises:
            Exception: If database operation fails
        """
        cutoff_ms = int(time.time() * 1000) - window_hours * MS_PER_HOUR

        try:
            query = (
                self.client.table(self.table)
                .select("message, timestamp")
                .eq("subject_id", subject_id)
                .gte("timestamp", cutoff_ms)
            )
            if self.log_group:
                query = query.eq("log_group", self.log_group)

            response = query.order("timestamp", desc=False).limit(self.limit).execute()

            events = [
                LogEvent(message=row["message"], timestamp=int(row["timestamp"]))
                for row in response.data or []
                if row.get("message")
            ]
            logger.info(
                f"Fetched {len(events)} log events for {subject_id}",
                extra={"subject_id": subject_id},
            )
            return events

        except Exception as e:
            logger.error(f"Failed to fetch log events for {subject_id}: {e}")
            raise
