"""Telemetry utilities (metrics and structured request logging)."""

from grok_client.telemetry.metrics import MetricsCollector, RequestMetrics, ServiceMetrics
from grok_client.telemetry.structured_logging import log_request_event

__all__ = [
    "MetricsCollector",
    "RequestMetrics",
    "ServiceMetrics",
    "log_request_event",
]
