"""HTTP transport for the Grok API.

This module performs the actual HTTP calls using the requests library. It
handles connection pooling, authentication headers, timeouts, the 429/5xx
retry policy, streaming reads, metrics collection and structured logging.

Key behaviors:
    - Uses requests.Session with HTTPAdapter for connection pooling
    - Bearer-token auth and JSON content negotiation on every request
    - ``(connect_timeout, timeout)`` applied to every request
    - 429 and 5xx responses are retried by tenacity; connection failures
      and other 4xx statuses surface immediately
    - Non-2xx responses become ApiError when the body carries an error
      object and TransportError otherwise
    - Streaming keeps the connection open and yields decoded lines as
      they arrive

Thread safety:
    - A Transport is shared by the endpoint facades of one client. The
      underlying session is safe for concurrent requests; for heavy
      multi-threaded use give each thread its own client.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterator, Mapping
from dataclasses import asdict
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from grok_client.core.config import GrokConfig
from grok_client.core.request_builder import build_headers
from grok_client.core.resilience import RetryConfig, call_with_retry
from grok_client.core.response_parser import RateLimitInfo, check_for_errors, decode_json, request_id_of
from grok_client.domain.exceptions import ApiError, GrokError, TransportError
from grok_client.telemetry.metrics import MetricsCollector
from grok_client.telemetry.structured_logging import log_request_event

logger = logging.getLogger(__name__)


class Transport:
    """Authenticated HTTP client bound to one ``GrokConfig``.

    Attributes:
        config: Client configuration (read-only).
        session: requests.Session with connection pooling configured.
        retry_config: Retry policy derived from the configuration.
    """

    __slots__ = ("config", "session", "retry_config")

    def __init__(self, config: GrokConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.retry_config = RetryConfig.from_config(config)
        self.session = session or requests.Session()
        if session is None:
            # Connection-level retries are disabled; the retry policy only
            # applies to 429/5xx responses.
            adapter = HTTPAdapter(pool_connections=10, pool_maxsize=10, max_retries=0)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def post(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        operation: str,
        model: str = "",
        stream: bool = False,
    ) -> requests.Response:
        """POST ``payload`` to ``path`` and return the successful response.

        Args:
            path: Endpoint path, e.g. ``"/v1/chat/completions"``.
            payload: JSON body.
            operation: Operation name for metrics and logs.
            model: Model name for metrics and logs.
            stream: Keep the connection open and defer reading the body.

        Returns:
            A 2xx ``requests.Response``. With ``stream=True`` the caller must
            consume or close it.

        Raises:
            ApiError: Non-2xx response with a decodable error body.
            TransportError: Connection failure, timeout, or non-2xx response
                without an error body.
        """
        request_id = str(uuid.uuid4())
        start_time = time.perf_counter()
        if self.config.debug:
            logger.debug("POST %s%s payload=%s", self.config.url, path, json.dumps(payload, default=str))

        try:
            response = call_with_retry(
                lambda: self._send(path, payload, stream),
                config=self.retry_config,
            )
        except GrokError as exc:
            self._log_error(operation, model, stream, request_id, start_time, exc)
            logger.exception("Request to %s failed with %s", path, exc.kind)
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        MetricsCollector.record_request(
            model=model,
            operation=operation,
            latency_ms=latency_ms,
            success=True,
        )
        log_request_event(
            {
                "event": "grok_request",
                "operation": operation,
                "status": "success",
                "model": model,
                "stream": stream,
                "request_id": request_id,
                "remote_request_id": request_id_of(response),
                "latency_ms": round(latency_ms, 3),
                "http_status": response.status_code,
            }
        )
        return response

    def post_json(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        operation: str,
        model: str = "",
    ) -> Any:
        """POST and return the decoded JSON body after error-key checks."""
        response = self.post(path, payload, operation=operation, model=model)
        data = decode_json(response)
        check_for_errors(data, code=response.status_code, request_id=request_id_of(response))
        return data

    def stream_lines(
        self,
        path: str,
        payload: Mapping[str, Any],
        *,
        operation: str,
        model: str = "",
    ) -> Iterator[str]:
        """POST with streaming enabled and iterate the body line by line.

        The request is sent (and retried) before this returns; reading
        happens lazily. Blank lines are skipped. The connection is closed
        when the iterator is exhausted or discarded.
        """
        response = self.post(path, payload, operation=operation, model=model, stream=True)
        return self._iter_lines(response, path)

    def _iter_lines(self, response: requests.Response, path: str) -> Iterator[str]:
        # Event streams are UTF-8 unless a charset says otherwise.
        if "charset" not in response.headers.get("content-type", "").lower():
            response.encoding = "utf-8"
        try:
            for line in response.iter_lines(
                chunk_size=self.config.stream_buffer_size,
                decode_unicode=True,
            ):
                if line:
                    yield line
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Stream from {path} interrupted: {exc}") from exc
        finally:
            response.close()

    def _send(self, path: str, payload: Mapping[str, Any], stream: bool) -> requests.Response:
        url = f"{self.config.url}{path}"
        try:
            response = self.session.post(
                url,
                json=payload,
                headers=build_headers(self.config.api_key, stream=stream),
                timeout=self.config.timeouts,
                stream=stream,
            )
        except requests.exceptions.Timeout as exc:
            raise TransportError(f"Request to {path} timed out: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Request to {path} failed: {exc}") from exc

        if not response.ok:
            self._raise_for_status(response, path)
        return response

    def _raise_for_status(self, response: requests.Response, path: str) -> None:
        status = response.status_code
        request_id = request_id_of(response)
        try:
            data = response.json()
        except ValueError:
            data = None
        finally:
            response.close()

        error: GrokError | None = None
        if isinstance(data, Mapping):
            error = ApiError.from_body(data, code=status, request_id=request_id)
        if error is None:
            error = TransportError(
                f"HTTP {status} from {path}: {response.reason or 'error'}",
                code=status,
                request_id=request_id,
            )
        if status == 429:
            error.add_context("rate_limit", asdict(RateLimitInfo.from_headers(response.headers)))
        logger.warning("HTTP %s from %s: %s", status, path, error.message)
        raise error

    def _log_error(
        self,
        operation: str,
        model: str,
        stream: bool,
        request_id: str,
        start_time: float,
        exc: GrokError,
    ) -> None:
        """Record metrics and a structured event for a failed request."""
        latency_ms = (time.perf_counter() - start_time) * 1000
        error_name = f"{exc.kind}:{exc.code}" if exc.code else str(exc.kind)

        MetricsCollector.record_request(
            model=model,
            operation=operation,
            latency_ms=latency_ms,
            success=False,
            error=error_name,
        )

        log_data: dict[str, Any] = {
            "event": "grok_request",
            "operation": operation,
            "status": "error",
            "model": model,
            "stream": stream,
            "request_id": request_id,
            "remote_request_id": exc.request_id,
            "latency_ms": round(latency_ms, 3),
            "error_type": str(exc.kind),
            "error_message": exc.message,
        }
        if exc.code is not None:
            log_data["http_status"] = exc.code

        log_request_event(log_data)


__all__ = ["Transport"]
