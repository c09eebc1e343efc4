"""Client effort analysis over a subject's log events.

Quantifies friction along four independent dimensions and folds them into a
single 0-100 effort score:

  - errors: lines matching the error keyword rule
  - repeated clicks: bursts of >= 5 clicks on the same control within 5 minutes
  - back-and-forth navigation: A -> B -> A location bounces
  - channel switches: label changes between consecutive channel mentions

Each dimension contributes at most 25 points. Everything here is a pure,
total function: an empty sequence yields a zero-valued EffortAnalysis.
"""

from collections import Counter, defaultdict
from collections.abc import Sequence

from effort_engine.core.log_patterns import (
    API_PATH_RE,
    CHANNEL_RE,
    CLICK_RE,
    ERROR_RE,
    NAVIGATION_RE,
    extract_api_path,
    extract_context,
    extract_http_method,
    extract_status_code,
    match_error,
    resolve_channel,
)
from effort_engine.core.schemas_effort import (
    BehaviorAnalysis,
    EffortAnalysis,
    JourneyStep,
    LogEvent,
)

# =========================
# Thresholds
# =========================

ERROR_THRESHOLD = 3  # errors in a session
BUTTON_CLICK_THRESHOLD = 5  # clicks on one control that make a burst
NAVIGATION_THRESHOLD = 10  # A -> B -> A bounces
CHANNEL_SWITCH_THRESHOLD = 2  # channel changes
TIME_WINDOW_MS = 300_000  # 5 minutes

MAX_SUB_SCORE = 25.0
HIGH_EFFORT_SCORE = 50.0

MAX_JOURNEY_STEPS = 20


def count_errors(events: Sequence[LogEvent]) -> int:
    return sum(1 for event in events if ERROR_RE.search(event.message))


def count_repeated_actions(
    timestamps: list[int],
    time_window_ms: int = TIME_WINDOW_MS,
    threshold: int = BUTTON_CLICK_THRESHOLD,
) -> int:
    """
    Count bursts of `threshold` actions that fit inside `time_window_ms`.

    On a hit the window jumps past the whole run instead of sliding by one,
    so overlapping bursts are counted once.

    Args:
        timestamps: Action timestamps (any order)
        time_window_ms: Maximum span of a burst
        threshold: Actions per burst

    Returns:
        Number of bursts
    """
    if len(timestamps) < threshold:
        return 0

    ordered = sorted(timestamps)
    repeated = 0
    i = 0
    while i <= len(ordered) - threshold:
        if ordered[i + threshold - 1] - ordered[i] <= time_window_ms:
            repeated += 1
            i += threshold
        else:
            i += 1

    return repeated


def count_repeated_clicks(events: Sequence[LogEvent]) -> int:
    """Group click events by (action, surrounding context) and count bursts per group."""
    clicks: dict[tuple[str, str], list[int]] = defaultdict(list)

    for event in events:
        match = CLICK_RE.search(event.message)
        if not match:
            continue
        action = match.group(1).lower()
        context = extract_context(event.message, match.start())
        clicks[(action, context)].append(event.timestamp)

    return sum(count_repeated_actions(timestamps) for timestamps in clicks.values())


def navigation_locations(events: Sequence[LogEvent]) -> list[str]:
    """Chronological navigation locations: API path when present, else keyword context."""
    locations: list[str] = []

    for event in events:
        match = NAVIGATION_RE.search(event.message)
        if not match:
            continue
        path = API_PATH_RE.search(event.message)
        if path:
            locations.append(path.group(1))
        else:
            locations.append(extract_context(event.message, match.start()))

    return locations


def count_back_and_forth(locations: Sequence[str]) -> int:
    """
    Count A -> B -> A bounces.

    After a bounce the scan resumes past the whole triple, so A B A B A
    counts once for the first triple and not again for B A B.
    """
    count = 0
    i = 0
    while i < len(locations) - 2:
        first, middle, last = locations[i], locations[i + 1], locations[i + 2]
        if first == last and first != middle:
            count += 1
            i += 3
        else:
            i += 1
    return count


def channel_labels(events: Sequence[LogEvent]) -> list[str]:
    """Chronological channel labels for events that mention a channel."""
    labels: list[str] = []

    for event in events:
        match = CHANNEL_RE.search(event.message)
        if match:
            labels.append(resolve_channel(event.message, match.group(1)))

    return labels


def count_channel_switches(labels: Sequence[str]) -> int:
    return sum(1 for previous, current in zip(labels, labels[1:]) if previous != current)


def _sub_score(count: int, threshold: int) -> float:
    return max(0.0, min(MAX_SUB_SCORE, count / threshold * MAX_SUB_SCORE))


def effort_score(
    error_count: int,
    repeated_click_count: int,
    back_forth_count: int,
    channel_switch_count: int,
) -> float:
    """Sum of four sub-scores, each normalized against its threshold and capped at 25."""
    return (
        _sub_score(error_count, ERROR_THRESHOLD)
        + _sub_score(repeated_click_count, BUTTON_CLICK_THRESHOLD)
        + _sub_score(back_forth_count, NAVIGATION_THRESHOLD)
        + _sub_score(channel_switch_count, CHANNEL_SWITCH_THRESHOLD)
    )


def analyze(events: Sequence[LogEvent]) -> EffortAnalysis:
    """
    Compute the client effort analysis for a sequence of log events.

    The input is not modified; a copy sorted by timestamp (stable) is analyzed.

    Args:
        events: Log events in any order (may be empty)

    Returns:
        EffortAnalysis with raw counts, composite score and threshold flags
    """
    ordered = sorted(events, key=lambda e: e.timestamp)

    error_count = count_errors(ordered)
    repeated_click_count = count_repeated_clicks(ordered)
    back_forth_count = count_back_and_forth(navigation_locations(ordered))
    channel_switch_count = count_channel_switches(channel_labels(ordered))

    score = effort_score(error_count, repeated_click_count, back_forth_count, channel_switch_count)

    return EffortAnalysis(
        error_count=error_count,
        repeated_click_count=repeated_click_count,
        back_forth_navigation_count=back_forth_count,
        channel_switch_count=channel_switch_count,
        effort_score=score,
        high_error_rate=error_count >= ERROR_THRESHOLD,
        high_repeated_clicks=repeated_click_count > 0,
        high_back_forth_navigation=back_forth_count >= NAVIGATION_THRESHOLD,
        high_channel_switching=channel_switch_count >= CHANNEL_SWITCH_THRESHOLD,
        high_effort=score >= HIGH_EFFORT_SCORE,
    )


def analyze_behavior(events: Sequence[LogEvent], window_hours: int) -> BehaviorAnalysis:
    """
    Summarize a subject's API activity: path, status and error histograms,
    the first API interactions as a journey, and the 2xx success rate.

    Args:
        events: Log events in any order
        window_hours: Lookback window the events were fetched for

    Returns:
        BehaviorAnalysis
    """
    api_paths: Counter[str] = Counter()
    status_codes: Counter[str] = Counter()
    error_types: Counter[str] = Counter()
    journey: list[JourneyStep] = []

    for event in events:
        path = extract_api_path(event.message)
        method = extract_http_method(event.message)
        status = extract_status_code(event.message)
        error = match_error(event.message)

        if path:
            api_paths[path] += 1
        if status:
            status_codes[status] += 1
        if error:
            error_types[error] += 1

        if len(journey) < MAX_JOURNEY_STEPS and (path or method or status):
            journey.append(
                JourneyStep(timestamp=event.timestamp, path=path, method=method, status_code=status)
            )

    journey.sort(key=lambda step: step.timestamp)

    total_requests = sum(status_codes.values())
    successful = sum(n for code, n in status_codes.items() if code.startswith("2"))
    success_rate = successful / total_requests if total_requests else 0.0

    return BehaviorAnalysis(
        total_logs=len(events),
        time_period_hours=window_hours,
        api_paths=dict(sorted(api_paths.items())),
        status_codes=dict(sorted(status_codes.items())),
        error_types=dict(sorted(error_types.items())),
        user_journey=journey,
        success_rate=success_rate,
    )
