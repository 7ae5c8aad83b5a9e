"""In-memory request metrics for the Grok client.

Every dispatched request (success or failure) is recorded by the transport
with its model, operation, latency and error type. ``MetricsCollector``
aggregates the records on demand.

Memory management:
    - Records are kept in a class-level list capped at 10,000 entries
    - The oldest records are discarded first
"""

from __future__ import annotations

import logging
import statistics
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RequestMetrics:
    """Metrics for a single request.

    Attributes:
        model: Model name used for the request.
        operation: Operation type (e.g., "chat", "completion", "embedding").
        latency_ms: Request latency in milliseconds.
        success: Whether the request succeeded.
        error: Error kind and status if the request failed.
        timestamp: Request timestamp in UTC.
    """

    model: str
    operation: str
    latency_ms: float
    success: bool
    error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(slots=True)
class ServiceMetrics:
    """Aggregated metrics over a set of requests. Latencies in milliseconds."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    requests_by_model: dict[str, int] = field(default_factory=dict)
    requests_by_operation: dict[str, int] = field(default_factory=dict)
    average_latency_ms: float = 0.0
    p50_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    p99_latency_ms: float = 0.0
    errors_by_type: dict[str, int] = field(default_factory=dict)
    last_request_time: datetime | None = None
    first_request_time: datetime | None = None


class MetricsCollector:
    """Collects and aggregates request metrics.

    Class-level storage guarded by a lock, since one client may be shared
    by several threads.
    """

    _metrics: ClassVar[list[RequestMetrics]] = []
    _max_metrics: ClassVar[int] = 10_000
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def record_request(
        cls,
        model: str,
        operation: str,
        latency_ms: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        metric = RequestMetrics(
            model=model,
            operation=operation,
            latency_ms=latency_ms,
            success=success,
            error=error,
        )
        with cls._lock:
            cls._metrics.append(metric)
            if len(cls._metrics) > cls._max_metrics:
                cls._metrics = cls._metrics[-cls._max_metrics :]

        logger.debug("Recorded metric: %s on %s - %.2fms", operation, model, latency_ms)

    @classmethod
    def get_metrics(cls, window_minutes: int | None = None) -> ServiceMetrics:
        """Aggregate metrics, optionally restricted to the last ``window_minutes``."""
        with cls._lock:
            snapshot = list(cls._metrics)

        match window_minutes:
            case None:
                metrics = snapshot
            case minutes if minutes > 0:
                cutoff = datetime.now(UTC) - timedelta(minutes=minutes)
                metrics = [m for m in snapshot if m.timestamp >= cutoff]
            case _:
                metrics = []

        if not metrics:
            return ServiceMetrics()

        latencies = sorted(m.latency_ms for m in metrics)
        total = len(metrics)
        successful = sum(1 for m in metrics if m.success)

        match len(latencies):
            case n if n >= 2:
                quantiles = statistics.quantiles(latencies, n=100)
                p50, p95, p99 = quantiles[49], quantiles[94], quantiles[98]
            case _:
                p50 = p95 = p99 = latencies[0]

        return ServiceMetrics(
            total_requests=total,
            successful_requests=successful,
            failed_requests=total - successful,
            requests_by_model=dict(Counter(m.model for m in metrics)),
            requests_by_operation=dict(Counter(m.operation for m in metrics)),
            average_latency_ms=sum(latencies) / total,
            p50_latency_ms=p50,
            p95_latency_ms=p95,
            p99_latency_ms=p99,
            errors_by_type=dict(Counter(m.error for m in metrics if m.error)),
            last_request_time=max(m.timestamp for m in metrics),
            first_request_time=min(m.timestamp for m in metrics),
        )

    @classmethod
    def get_metrics_json(cls, window_minutes: int | None = None) -> dict[str, Any]:
        """Metrics as a JSON-serializable dict; latencies rounded to 2 places."""
        metrics = cls.get_metrics(window_minutes)
        return {
            "total_requests": metrics.total_requests,
            "successful_requests": metrics.successful_requests,
            "failed_requests": metrics.failed_requests,
            "requests_by_model": metrics.requests_by_model,
            "requests_by_operation": metrics.requests_by_operation,
            "average_latency_ms": round(metrics.average_latency_ms, 2),
            "p50_latency_ms": round(metrics.p50_latency_ms, 2),
            "p95_latency_ms": round(metrics.p95_latency_ms, 2),
            "p99_latency_ms": round(metrics.p99_latency_ms, 2),
            "errors_by_type": metrics.errors_by_type,
            "last_request_time": metrics.last_request_time.isoformat() if metrics.last_request_time else None,
            "first_request_time": metrics.first_request_time.isoformat() if metrics.first_request_time else None,
        }

    @classmethod
    def reset(cls) -> None:
        with cls._lock:
            cls._metrics = []


__all__ = ["MetricsCollector", "RequestMetrics", "ServiceMetrics"]
