"""Deterministic synthetic log source.

Produces realistic-looking API gateway, Lambda, application and error log
lines for a subject, either as a normal activity mix or with injected
high-effort patterns (bouncing navigation, click bursts, channel hopping,
errors). Output depends only on the constructor arguments, so two sources
built the same way return identical events.
"""

import random
import time
from collections.abc import Callable
from datetime import UTC, datetime

from effort_engine.core.log_normalizer import build_events, spread_timestamps
from effort_engine.core.logging import get_logger
from effort_engine.core.schemas_effort import LogEvent

logger = get_logger(__name__)

LOG_TYPE_API_GATEWAY = "api_gateway"
LOG_TYPE_LAMBDA = "lambda"
LOG_TYPE_APPLICATION = "application"
LOG_TYPE_ERROR = "error"

# Default activity mix: log type -> number of lines
ACTIVITY_MIX = {
    LOG_TYPE_API_GATEWAY: 50,
    LOG_TYPE_LAMBDA: 30,
    LOG_TYPE_APPLICATION: 40,
    LOG_TYPE_ERROR: 5,
}

API_PATHS = ["/api/users", "/api/products", "/api/orders", "/api/cart", "/api/checkout"]
HTTP_METHODS = ["GET", "POST", "PUT", "DELETE"]
STATUS_CODES = ["200", "201", "400", "401", "403", "404", "500"]
ERROR_STATUS_CODES = ["400", "401", "403", "404", "500", "503"]
LAMBDA_FUNCTIONS = ["UserService", "ProductService", "OrderService", "NotificationService"]
LAMBDA_ACTIONS = ["getUser", "createUser", "updateUser", "getProducts", "createOrder", "processPayment"]
APP_ACTIONS = ["login", "logout", "viewProfile", "updateProfile", "addToCart", "checkout", "viewOrder"]
EXCEPTION_TYPES = [
    "NullPointerException",
    "ResourceNotFoundException",
    "AccessDeniedException",
    "TimeoutException",
    "ValidationException",
]
COMPONENTS = ["UserService", "OrderService", "PaymentService", "InventoryService"]
BUTTONS = ["submit", "search", "add_to_cart", "checkout", "apply_filter"]
CHANNELS = ["web", "mobile", "app", "desktop"]

BOUNCING_NAVIGATION = [
    "/api/products",
    "/api/products/123",
    "/api/products",
    "/api/cart",
    "/api/products",
    "/api/cart",
    "/api/checkout",
    "/api/cart",
    "/api/checkout",
]
LINEAR_NAVIGATION = ["/api/products", "/api/products/123", "/api/cart", "/api/checkout"]

# Spacing between generated high-effort lines
STEP_MS = 20_000
RAPID_CLICK_MS = 50


def _now_ms() -> int:
    return int(time.time() * 1000)


def _iso(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, UTC).isoformat()


class SyntheticLogSource:
    """LogSource that fabricates logs instead of reading them."""

    name = "synthetic"

    def __init__(
        self,
        effort_level: int = 0,
        count: int = 100,
        seed: int = 0,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Args:
            effort_level: 0 for a normal activity mix, 1-5 for increasingly
                high-effort sessions
            count: Base line count for high-effort sessions
            seed: Seed for latency / IP jitter
            clock: Returns "now" in epoch ms
        """
        if not 0 <= effort_level <= 5:
            raise ValueError(f"effort_level must be between 0 and 5, got {effort_level}")
        self.effort_level = effort_level
        self.count = count
        self.seed = seed
        self.clock = clock

    def fetch(self, subject_id: str, window_hours: int) -> list[LogEvent]:
        rng = random.Random(self.seed)
        now_ms = self.clock()

        if self.effort_level:
            pairs = self.high_effort_logs(subject_id, now_ms, rng)
        else:
            pairs = self.activity_logs(subject_id, window_hours, now_ms, rng)

        logger.debug(
            f"Generated {len(pairs)} synthetic log lines for {subject_id}",
            extra={"subject_id": subject_id},
        )
        return build_events(pairs)

    # =========================
    # Normal activity mix
    # =========================

    def activity_logs(
        self,
        subject_id: str,
        window_hours: int,
        now_ms: int,
        rng: random.Random,
    ) -> list[tuple[int, str]]:
        """Each log type is spread back from now across the window."""
        total = sum(ACTIVITY_MIX.values())
        pairs: list[tuple[int, str]] = []
        for log_type, count in ACTIVITY_MIX.items():
            lines = self.sample_logs(subject_id, log_type, count, now_ms, rng)
            pairs.extend(spread_timestamps(lines, window_hours, now_ms, total=total))
        return pairs

    def sample_logs(
        self,
        subject_id: str,
        log_type: str,
        count: int,
        now_ms: int,
        rng: random.Random,
    ) -> list[str]:
        """
        Generate `count` sample lines of one log type.

        Raises:
            ValueError: If log_type is unknown
        """
        if log_type == LOG_TYPE_API_GATEWAY:
            return [self._api_line(subject_id, i, now_ms, rng) for i in range(count)]
        if log_type == LOG_TYPE_LAMBDA:
            return [self._lambda_line(subject_id, i, now_ms, rng) for i in range(count)]
        if log_type == LOG_TYPE_APPLICATION:
            return [self._app_line(subject_id, i, now_ms, rng) for i in range(count)]
        if log_type == LOG_TYPE_ERROR:
            return [self._error_line(subject_id, i, now_ms, rng) for i in range(count)]
        raise ValueError(f"Unsupported log type: {log_type}")

    def _api_line(self, subject_id: str, i: int, now_ms: int, rng: random.Random) -> str:
        # every tenth request fails
        status = STATUS_CODES[i % len(STATUS_CODES)] if i % 10 == 0 else "200"
        return self._gateway_json(
            subject_id,
            API_PATHS[i % len(API_PATHS)],
            HTTP_METHODS[i % len(HTTP_METHODS)],
            status,
            now_ms,
            rng,
        )

    def _gateway_json(
        self,
        subject_id: str,
        path: str,
        method: str,
        status: str,
        now_ms: int,
        rng: random.Random,
    ) -> str:
        return (
            f'{{"requestId":"req-{now_ms}","path":"{path}","httpMethod":"{method}",'
            f'"statusCode":"{status}","responseLatency":{50 + rng.randrange(200)},'
            f'"userId":"{subject_id}","userAgent":"Mozilla/5.0","timestamp":{now_ms}}}'
        )

    def _lambda_line(self, subject_id: str, i: int, now_ms: int, rng: random.Random) -> str:
        function = LAMBDA_FUNCTIONS[i % len(LAMBDA_FUNCTIONS)]
        action = LAMBDA_ACTIONS[i % len(LAMBDA_ACTIONS)]
        header = f"START RequestId: {now_ms}\n{_iso(now_ms)}\t{now_ms}\t"
        if i % 15 == 0:
            return (
                f"{header}ERROR\tError executing {action} in {function}: "
                f"Resource not found or access denied\nFor userId: {subject_id}"
            )
        return (
            f"{header}INFO\tSuccessfully executed {action} in {function}\n"
            f"Processing time: {50 + rng.randrange(150)} ms\nFor userId: {subject_id}"
        )

    def _app_line(self, subject_id: str, i: int, now_ms: int, rng: random.Random) -> str:
        action = APP_ACTIONS[i % len(APP_ACTIONS)]
        ip = f"192.168.{1 + rng.randrange(254)}.{1 + rng.randrange(254)}"
        return (
            f"[{_iso(now_ms)}] [INFO] User action: {action} userId: {subject_id} "
            f"sessionId: sess-{now_ms} ip: {ip}"
        )

    def _error_line(self, subject_id: str, i: int, now_ms: int, rng: random.Random) -> str:
        exception = EXCEPTION_TYPES[i % len(EXCEPTION_TYPES)]
        component = COMPONENTS[i % len(COMPONENTS)]
        return (
            f"[{_iso(now_ms)}] [ERROR] {exception}: Error in {component} for userId: {subject_id}\n"
            f"Stack trace: com.sample.service.{component}.processRequest"
            f"({component}.java:{100 + rng.randrange(900)})"
        )

    # =========================
    # High-effort sessions
    # =========================

    def high_effort_logs(
        self,
        subject_id: str,
        now_ms: int,
        rng: random.Random,
    ) -> list[tuple[int, str]]:
        """
        Build a chronological high-effort session ending at now_ms.

        Higher levels add bouncing navigation (>= 3), click bursts (>= 2,
        larger from 4), channel hopping (>= 2) and a 5% per level error rate.
        """
        level = self.effort_level
        error_rate = 5 * level
        # (gap before the line in ms, builder taking the line's timestamp)
        steps: list[tuple[int, Callable[[int], str]]] = []

        navigation = BOUNCING_NAVIGATION if level >= 3 else LINEAR_NAVIGATION
        for i in range(self.count // 2):
            path = navigation[i % len(navigation)]
            status = ERROR_STATUS_CODES[i % len(ERROR_STATUS_CODES)] if i % 100 < error_rate else "200"
            steps.append(
                (STEP_MS, lambda t, p=path, s=status: self._gateway_json(subject_id, p, "GET", s, t, rng))
            )

        for i in range(self.count // 4):
            button = BUTTONS[i % len(BUTTONS)]
            repeats = 1
            if level >= 4 and i % 5 == 0:
                repeats = 3 + level
            elif level >= 2 and i % 10 == 0:
                repeats = 2 + level
            for j in range(repeats):
                steps.append(
                    (
                        RAPID_CLICK_MS if j else STEP_MS,
                        lambda t, b=button: (
                            f"[{_iso(t)}] [INFO] User action: button_click button: {b} "
                            f"userId: {subject_id} sessionId: sess-{t} timestamp: {t}"
                        ),
                    )
                )

        if level >= 2:
            for i in range(min(len(CHANNELS), level)):
                source, target = CHANNELS[i % len(CHANNELS)], CHANNELS[(i + 1) % len(CHANNELS)]
                steps.append(
                    (
                        STEP_MS,
                        lambda t, s=source, d=target: (
                            f"[{_iso(t)}] [INFO] Channel switch detected: from: {s} to: {d} "
                            f"userId: {subject_id} sessionId: sess-{t} timestamp: {t}"
                        ),
                    )
                )

        for i in range((self.count // 4) * error_rate // 100):
            steps.append((STEP_MS, lambda t, n=i: self._error_line(subject_id, n, t, rng)))

        timestamp = now_ms - sum(gap for gap, _ in steps)
        pairs = []
        for gap, build in steps:
            timestamp += gap
            pairs.append((timestamp, build(timestamp)))
        return pairs
