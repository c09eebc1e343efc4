"""Pattern extraction for raw log lines.

Every rule is a case-insensitive regex that works on free text and accepts
`key: value`, `key=value` and JSON-quoted fields interchangeably, so no log
schema is assumed. All functions are pure and never raise.
"""

import re

# =========================
# Field rules (capture a value)
# =========================

USER_ID_RE = re.compile(
    r"""["']?\b(?:user_?id|account_?id|client_?id)["']?\s*[:=]\s*["']?([\w-]+)["']?""",
    re.IGNORECASE,
)
API_PATH_RE = re.compile(r"""["']?path["']?\s*[:=]\s*["']?(/[\w/]+)["']?""", re.IGNORECASE)
HTTP_METHOD_RE = re.compile(
    r"""["']?\b(?:http_?method|method)["']?\s*[:=]\s*["']?(GET|POST|PUT|DELETE|PATCH)\b""",
    re.IGNORECASE,
)
STATUS_CODE_RE = re.compile(
    r"""["']?\b(?:status_?code|status)["']?\s*[:=]\s*["']?(\d{3})\b""",
    re.IGNORECASE,
)

# =========================
# Keyword rules (capture the keyword)
# =========================

ERROR_RE = re.compile(r"\b(error|exception|failed|timeout|denied|rejected)\b", re.IGNORECASE)
TRADE_RE = re.compile(r"\b(trade|order|buy|sell|execute|cancel|modify)\b", re.IGNORECASE)
SECURITY_RE = re.compile(
    r"\b(login|logout|auth|password|mfa|verification|suspicious)\b", re.IGNORECASE
)
COMPLIANCE_RE = re.compile(
    r"\b(compliance|regulatory|restriction|limit|kyc|aml|fraud)\b", re.IGNORECASE
)
CLICK_RE = re.compile(r"\b(click|button|submit|tap)\b", re.IGNORECASE)
NAVIGATION_RE = re.compile(r"\b(navigate|page|view|screen|back|forward)\b", re.IGNORECASE)
CHANNEL_RE = re.compile(r"\b(channel|switch|mobile|web|app|desktop|device)\b", re.IGNORECASE)

FIELD_RULES: dict[str, re.Pattern[str]] = {
    "user_id": USER_ID_RE,
    "path": API_PATH_RE,
    "method": HTTP_METHOD_RE,
    "status_code": STATUS_CODE_RE,
}

KEYWORD_RULES: dict[str, re.Pattern[str]] = {
    "error": ERROR_RE,
    "trade": TRADE_RE,
    "security": SECURITY_RE,
    "compliance": COMPLIANCE_RE,
    "click": CLICK_RE,
    "navigation": NAVIGATION_RE,
    "channel": CHANNEL_RE,
}

# Categories that mark an event as friction-relevant, in digest prefix order
EFFORT_CATEGORIES: dict[str, re.Pattern[str]] = {
    "error": ERROR_RE,
    "click": CLICK_RE,
    "navigation": NAVIGATION_RE,
    "channel": CHANNEL_RE,
}

# Explicit channel mentions, checked in priority order
CHANNEL_LABELS = ("mobile", "web", "app", "desktop")

CONTEXT_LENGTH = 30


def _capture(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1) if match else None


def _keyword(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1).lower() if match else None


def extract_user_id(text: str) -> str | None:
    return _capture(USER_ID_RE, text)


def extract_api_path(text: str) -> str | None:
    return _capture(API_PATH_RE, text)


def extract_http_method(text: str) -> str | None:
    method = _capture(HTTP_METHOD_RE, text)
    return method.upper() if method else None


def extract_status_code(text: str) -> str | None:
    return _capture(STATUS_CODE_RE, text)


def match_error(text: str) -> str | None:
    return _keyword(ERROR_RE, text)


def match_trade(text: str) -> str | None:
    return _keyword(TRADE_RE, text)


def match_security(text: str) -> str | None:
    return _keyword(SECURITY_RE, text)


def match_compliance(text: str) -> str | None:
    return _keyword(COMPLIANCE_RE, text)


def match_click(text: str) -> str | None:
    return _keyword(CLICK_RE, text)


def match_navigation(text: str) -> str | None:
    return _keyword(NAVIGATION_RE, text)


def match_channel(text: str) -> str | None:
    return _keyword(CHANNEL_RE, text)


def extract_fields(text: str) -> dict[str, str]:
    """
    Run every rule over a log line.

    Args:
        text: Raw log line

    Returns:
        Dict of rule name -> matched value, containing only the rules that hit.
        Field values keep their original case (method is upper-cased);
        keyword values are lower-cased.
    """
    fields: dict[str, str] = {}

    for name, pattern in FIELD_RULES.items():
        value = _capture(pattern, text)
        if value is not None:
            fields[name] = value.upper() if name == "method" else value

    for name, pattern in KEYWORD_RULES.items():
        value = _keyword(pattern, text)
        if value is not None:
            fields[name] = value

    return fields


def matched_categories(text: str) -> list[str]:
    """Return the effort categories (error, click, navigation, channel) a line hits."""
    return [name for name, pattern in EFFORT_CATEGORIES.items() if pattern.search(text)]


def extract_context(text: str, position: int, length: int = CONTEXT_LENGTH) -> str:
    """
    Cut a window of text centred on a match position.

    Args:
        text: Source text
        position: Index the window is centred on
        length: Total window width

    Returns:
        The stripped substring from position - length//2 to position + length//2,
        clipped to the text bounds
    """
    half = length // 2
    start = max(0, position - half)
    end = min(len(text), position + half)
    return text[start:end].strip()


def resolve_channel(text: str, matched: str) -> str:
    """
    Pick the channel label for a line that matched the channel rule.

    An explicit mention of mobile, web, app or desktop anywhere in the line wins
    over the raw matched keyword (e.g. "switch").
    """
    lowered = text.lower()
    for label in CHANNEL_LABELS:
        if label in lowered:
            return label
    return matched.lower()
