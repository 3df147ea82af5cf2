"""
In-process counters for the gateway, served at ``/metrics``.

Counts are per process and reset on restart; nothing is aggregated across
workers. Request durations are kept in a fixed-size window of the most recent
requests.
"""

from __future__ import annotations

from collections import Counter, deque
from threading import Lock
from typing import Deque, Dict, Tuple

MAX_RECENT_DURATIONS = 100


class MetricsRecorder:
    def __init__(self, max_recent: int = MAX_RECENT_DURATIONS) -> None:
        self._lock = Lock()
        self._requests = 0
        self._recent: Deque[Tuple[str, float]] = deque(maxlen=max_recent)
        self._rpc_errors: Counter[int] = Counter()
        # Keyed by outcome ("success" / "error"), then tool name.
        self._tools: Dict[str, Counter[str]] = {"success": Counter(), "error": Counter()}

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._recent.append((request_id, duration_ms))

    def record_rpc_error(self, code: int) -> None:
        with self._lock:
            self._rpc_errors[code] += 1

    def record_tool(self, tool: str, *, success: bool) -> None:
        with self._lock:
            self._tools["success" if success else "error"][tool] += 1

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "rpc_errors": {str(code): count for code, count in self._rpc_errors.items()},
                "tool_success": dict(self._tools["success"]),
                "tool_error": dict(self._tools["error"]),
                "recent_request_durations_ms": dict(self._recent),
            }

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._recent.clear()
            self._rpc_errors.clear()
            for counts in self._tools.values():
                counts.clear()


default_metrics = MetricsRecorder()
