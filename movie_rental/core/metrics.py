from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock

BOOKED = "booked"


@dataclass
class EndpointMetric:
    total_requests: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    status_classes: Counter = field(default_factory=Counter)
    reasons: Counter = field(default_factory=Counter)


class RequestMetrics:
    """Contadores por endpoint: latência, classe de status e motivo de falha."""

    def __init__(self) -> None:
        self._metrics: dict[str, EndpointMetric] = {}
        self._lock = Lock()

    def observe(
        self,
        *,
        endpoint: str,
        method: str,
        status_code: int,
        duration_ms: float,
        reason: str | None = None,
    ) -> None:
        with self._lock:
            metric = self._metrics.setdefault(f"{method} {endpoint}", EndpointMetric())
            metric.total_requests += 1
            metric.total_duration_ms += duration_ms
            metric.max_duration_ms = max(metric.max_duration_ms, duration_ms)
            metric.status_classes[f"{status_code // 100}xx"] += 1
            if reason:
                metric.reasons[reason] += 1

    def snapshot(self) -> dict[str, dict]:
        with self._lock:
            return {
                key: {
                    "total_requests": metric.total_requests,
                    "avg_duration_ms": round(metric.total_duration_ms / metric.total_requests, 2),
                    "max_duration_ms": round(metric.max_duration_ms, 2),
                    "status": dict(metric.status_classes),
                    "reasons": dict(metric.reasons),
                }
                for key, metric in self._metrics.items()
            }

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


class BookingMetrics:
    """Resultado de cada tentativa de locação, por método de pagamento.

    O resultado é ``booked`` ou o ``ErrorReason`` da falha.
    """

    def __init__(self) -> None:
        self._outcomes: Counter = Counter()
        self._lock = Lock()

    def record(self, outcome: str, payment_method: str | None) -> None:
        with self._lock:
            self._outcomes[(outcome, payment_method or "unknown")] += 1

    def snapshot(self) -> dict[str, dict[str, int]]:
        with self._lock:
            result: dict[str, dict[str, int]] = {}
            for (outcome, payment_method), count in sorted(self._outcomes.items()):
                result.setdefault(outcome, {})[payment_method] = count
            return result

    def reset(self) -> None:
        with self._lock:
            self._outcomes.clear()


request_metrics = RequestMetrics()
booking_metrics = BookingMetrics()
