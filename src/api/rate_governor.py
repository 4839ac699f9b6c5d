"""Per-identity request admission control.

Each identity gets a fixed window of 60 seconds admitting at most
100 requests. State lives in process memory only; losing it on
restart gives every caller a fresh window.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from api.responses import ApiResponse, json_response
from core.constants import (
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_SWEEP_INTERVAL_SECONDS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from core.logging_config import get_logger
from core.types import Identity, RateLimitStatus

_LOGGER = get_logger(__name__)


@dataclass
class _WindowRecord:
    count: int
    reset_time: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Admission outcome for one request.

    Attributes:
        allowed: Whether the request may proceed.
        headers: Quota headers for the response.
        response: Rejection response when denied.
    """

    allowed: bool
    headers: dict[str, str] = field(default_factory=dict)
    response: ApiResponse | None = None


class RateGovernor:
    """Fixed-window request counter keyed by identity.

    Construct one per service, share it across request handlers,
    and call ``close`` at shutdown to stop the sweeper thread.
    """

    def __init__(
        self,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Create governor.

        Args:
            window_seconds: Window length in seconds.
            max_requests: Requests admitted per window.
            clock: Epoch-seconds time source.
        """
        self._window_seconds = window_seconds
        self._max_requests = max_requests
        self._clock = clock
        self._records: dict[str, _WindowRecord] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    @property
    def max_requests(self) -> int:
        """Return the per-window request ceiling."""
        return self._max_requests

    def tracked_identities(self) -> int:
        """Return how many identities currently hold a window."""
        with self._lock:
            return len(self._records)

    def check_rate_limit(self, identity_id: str) -> RateLimitStatus:
        """Count one request for an identity.

        Args:
            identity_id: Caller identity key.

        Returns:
            Admission state after counting the request.
        """
        now = self._clock()
        with self._lock:
            record = self._records.get(identity_id)
            if record is None or now > record.reset_time:
                record = _WindowRecord(count=1, reset_time=now + self._window_seconds)
                self._records[identity_id] = record
            else:
                record.count += 1
            count, reset_time = record.count, record.reset_time
        return RateLimitStatus(
            allowed=count <= self._max_requests,
            remaining=max(0, self._max_requests - count),
            reset_time=reset_time,
        )

    def apply_rate_limit(self, identity: Identity | None) -> RateLimitDecision:
        """Decide whether a request may enter the pipeline.

        Args:
            identity: Resolved caller, or None for anonymous requests,
                which are gated by authentication instead.

        Returns:
            Decision with quota headers and, when denied, a 429 response.
        """
        if identity is None or not identity.user_id:
            return RateLimitDecision(allowed=True)
        status = self.check_rate_limit(identity.user_id)
        headers = {
            "X-RateLimit-Limit": str(self._max_requests),
            "X-RateLimit-Remaining": str(status.remaining),
            "X-RateLimit-Reset": _iso_timestamp(status.reset_time),
        }
        if status.allowed:
            return RateLimitDecision(allowed=True, headers=headers)
        retry_after = max(1, math.ceil(status.reset_time - self._clock()))
        _LOGGER.warning("rate_limit_exceeded", user_id=identity.user_id, retry_after=retry_after)
        return RateLimitDecision(
            allowed=False,
            headers=headers,
            response=json_response(
                429,
                {"error": "Too many requests. Please try again later.", "retryAfter": retry_after},
                {**headers, "Retry-After": str(retry_after)},
            ),
        )

    def sweep(self) -> int:
        """Drop every record whose window has elapsed.

        Returns:
            Number of records removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, record in self._records.items() if now > record.reset_time]
            for key in expired:
                del self._records[key]
        if expired:
            _LOGGER.debug("rate_limit_sweep", removed=len(expired))
        return len(expired)

    def start_sweeper(self, interval_seconds: float = RATE_LIMIT_SWEEP_INTERVAL_SECONDS) -> None:
        """Run ``sweep`` periodically on a daemon thread."""
        if self._sweeper is not None:
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop,
            args=(interval_seconds,),
            name="rate-governor-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def close(self) -> None:
        """Stop the sweeper thread if it is running."""
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join()
            self._sweeper = None

    def _sweep_loop(self, interval_seconds: float) -> None:
        while not self._stop_event.wait(interval_seconds):
            self.sweep()


def _iso_timestamp(epoch_seconds: float) -> str:
    """Render epoch seconds as an ISO-8601 UTC timestamp."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
