"""Deterministic narrative digests fed to the embedding model.

The digest doubles as a cache-key surrogate for the embedding, so identical
inputs must render byte-identical text: fixed section order, histograms
sorted by key, stable ordering for events sharing a timestamp.
"""

from collections import Counter
from collections.abc import Sequence

from effort_engine.core.log_patterns import (
    extract_api_path,
    extract_http_method,
    extract_status_code,
    match_error,
    matched_categories,
)
from effort_engine.core.schemas_effort import EffortAnalysis, LogEvent

MAX_EXCERPT_EVENTS = 15
MAX_ACTIVITY_EVENTS = 10
MAX_MESSAGE_CHARS = 50

CATEGORY_PREFIXES = {
    "error": "ERROR: ",
    "click": "CLICK: ",
    "navigation": "NAVIGATION: ",
    "channel": "CHANNEL: ",
}


def truncate_message(message: str, limit: int = MAX_MESSAGE_CHARS) -> str:
    """Cut a message to `limit` characters, ending in '...' when shortened."""
    if len(message) > limit:
        return message[: limit - 3] + "..."
    return message


def _newest_first(events: Sequence[LogEvent]) -> list[LogEvent]:
    # reverse=True keeps equal timestamps in their original relative order
    return sorted(events, key=lambda e: e.timestamp, reverse=True)


def _flagged(label: str, count: int, flag: bool, flag_text: str) -> str:
    suffix = f" ({flag_text})" if flag else ""
    return f"{label}: {count}{suffix}."


def high_effort_excerpt(
    events: Sequence[LogEvent],
    limit: int = MAX_EXCERPT_EVENTS,
) -> list[str]:
    """
    Render the most recent friction-relevant events.

    Only events matching the error, click, navigation or channel rules are
    kept. Each entry is prefixed by every category it matched.

    Args:
        events: Log events in any order
        limit: Maximum number of entries

    Returns:
        Rendered entries, newest first
    """
    relevant = [
        (event, categories)
        for event in _newest_first(events)
        if (categories := matched_categories(event.message))
    ]

    entries = []
    for event, categories in relevant[:limit]:
        prefix = "".join(CATEGORY_PREFIXES[c] for c in categories)
        entries.append(prefix + truncate_message(event.message))
    return entries


def build_effort_narrative(events: Sequence[LogEvent], analysis: EffortAnalysis) -> str:
    """
    Render an EffortAnalysis plus recent friction events as one digest string.

    Section order: overall score, high-effort flag, errors, repeated clicks,
    back-and-forth navigation, channel switches, recent high-effort events.

    Args:
        events: The events the analysis was computed from
        analysis: Effort analysis for those events

    Returns:
        Digest text
    """
    parts = [
        "User client effort analysis:",
        f"Overall client effort score: {analysis.effort_score:.1f}/100.",
    ]

    if analysis.high_effort:
        parts.append("HIGH CLIENT EFFORT DETECTED.")

    parts.append(
        _flagged(
            "Errors encountered",
            analysis.error_count,
            analysis.high_error_rate,
            "HIGH ERROR RATE",
        )
    )
    parts.append(
        _flagged(
            "Repeated button clicks",
            analysis.repeated_click_count,
            analysis.high_repeated_clicks,
            "EXCESSIVE CLICKING DETECTED",
        )
    )
    parts.append(
        _flagged(
            "Back-and-forth navigation",
            analysis.back_forth_navigation_count,
            analysis.high_back_forth_navigation,
            "EXCESSIVE NAVIGATION DETECTED",
        )
    )
    parts.append(
        _flagged(
            "Channel switches",
            analysis.channel_switch_count,
            analysis.high_channel_switching,
            "FREQUENT CHANNEL SWITCHING DETECTED",
        )
    )

    excerpt = high_effort_excerpt(events)
    if excerpt:
        parts.append("Recent high-effort events: " + ", ".join(excerpt))

    return " ".join(parts)


def _histogram(counts: Counter[str]) -> str:
    return ", ".join(f"{key} ({n} times)" for key, n in sorted(counts.items()))


def build_activity_summary(events: Sequence[LogEvent]) -> str:
    """
    Render a general activity digest: request histograms plus the latest events.

    Args:
        events: Log events in any order

    Returns:
        Digest text
    """
    api_paths: Counter[str] = Counter()
    status_codes: Counter[str] = Counter()
    errors: Counter[str] = Counter()
    successful = 0
    failed = 0

    for event in events:
        path = extract_api_path(event.message)
        if path:
            api_paths[path] += 1

        status = extract_status_code(event.message)
        if status:
            status_codes[status] += 1
            if status.startswith("2"):
                successful += 1
            elif status.startswith(("4", "5")):
                failed += 1

        error = match_error(event.message)
        if error:
            errors[error] += 1

    parts = ["User activity log summary:", f"Total log entries: {len(events)}."]

    if api_paths:
        parts.append(f"API paths accessed: {_histogram(api_paths)}.")
    if status_codes:
        parts.append(f"Status codes: {_histogram(status_codes)}.")

    parts.append(f"Successful requests: {successful}, Failed requests: {failed}.")

    if errors:
        parts.append(f"Errors encountered: {_histogram(errors)}.")

    recent = []
    for event in _newest_first(events)[:MAX_ACTIVITY_EVENTS]:
        method = extract_http_method(event.message)
        status = extract_status_code(event.message)
        if method and status:
            path = extract_api_path(event.message) or "unknown_path"
            recent.append(f"{method} {path} ({status})")
        else:
            recent.append(f"Log: {truncate_message(event.message)}")

    if recent:
        parts.append("Recent activity sequence: " + ", ".join(recent))

    return " ".join(parts)
