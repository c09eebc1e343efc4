"""Packaging raw log output into ordered, tagged LogEvent sequences.

The normalizer never fetches logs itself. It delegates to a LogSource
(Supabase table, synthetic generator, ...) and guarantees that what comes
back is non-empty, field-tagged and sorted oldest first.
"""

from collections.abc import Iterable
from typing import Protocol

from effort_engine.core.errors import EmptyResultError
from effort_engine.core.log_patterns import extract_fields
from effort_engine.core.logging import get_logger
from effort_engine.core.schemas_effort import LogEvent

logger = get_logger(__name__)

MS_PER_HOUR = 3_600_000


class LogSource(Protocol):
    """Anything that can return a subject's log events for a lookback window."""

    name: str

    def fetch(self, subject_id: str, window_hours: int) -> list[LogEvent]: ...


def tag_event(event: LogEvent) -> LogEvent:
    """Return the event with extracted fields attached (no-op if already tagged)."""
    if event.fields:
        return event
    return event.model_copy(update={"fields": extract_fields(event.message)})


def sort_events(events: Iterable[LogEvent]) -> list[LogEvent]:
    """Stable sort by timestamp ascending."""
    return sorted(events, key=lambda e: e.timestamp)


def build_events(pairs: Iterable[tuple[int, str]]) -> list[LogEvent]:
    """
    Turn raw (timestamp_ms, message) pairs into sorted, tagged events.

    Args:
        pairs: Iterable of (timestamp in epoch ms, raw log line)

    Returns:
        LogEvents sorted oldest first
    """
    events = [
        LogEvent(message=message, timestamp=int(timestamp), fields=extract_fields(message))
        for timestamp, message in pairs
    ]
    return sort_events(events)


def spread_timestamps(
    lines: list[str],
    window_hours: int,
    now_ms: int,
    total: int | None = None,
) -> list[tuple[int, str]]:
    """
    Assign evenly spaced timestamps to lines that carry no emission time.

    The first line gets now_ms and each following line steps one increment
    further into the past, where the increment divides the lookback window
    into `total` slots (defaults to len(lines)).

    Args:
        lines: Raw log lines, newest first
        window_hours: Lookback window
        now_ms: Timestamp of the newest line
        total: Number of slots to divide the window into

    Returns:
        List of (timestamp_ms, line) pairs
    """
    slots = total or len(lines) or 1
    increment = window_hours * MS_PER_HOUR // slots
    return [(now_ms - i * increment, line) for i, line in enumerate(lines)]


class LogNormalizer:
    """Fetches a subject's events from a LogSource and normalizes them."""

    def __init__(self, source: LogSource):
        self.source = source

    def fetch_events(self, subject_id: str, window_hours: int) -> list[LogEvent]:
        """
        Fetch, tag and order a subject's log events.

        Args:
            subject_id: Subject whose logs to fetch
            window_hours: Lookback window in hours

        Returns:
            Non-empty list of LogEvents sorted oldest first

        Raises:
            EmptyResultError: If the source returned no events
            Exception: Whatever the source raises (connectivity, permissions)
        """
        raw_events = self.source.fetch(subject_id, window_hours)

        if not raw_events:
            logger.warning(
                f"No logs for subject {subject_id} in {window_hours}h window",
                extra={"subject_id": subject_id},
            )
            raise EmptyResultError(subject_id, window_hours)

        events = sort_events(tag_event(event) for event in raw_events)

        logger.info(
            f"Normalized {len(events)} log events for subject {subject_id}",
            extra={"subject_id": subject_id},
        )
        return events
