"""
Tests for the HTTP transport: headers, status mapping, retries and streaming.

Uses the real HTTP server fixture from conftest.py.
"""

import dataclasses
import socket

import pytest

from grok_client import ApiError, GrokConfig, TransportError
from grok_client.core.transport import Transport
from grok_client.telemetry.metrics import MetricsCollector

CHAT_PATH = "/v1/chat/completions"
CHAT_PAYLOAD = {"model": "grok-2-1212", "messages": [{"role": "user", "content": "hi"}]}


@pytest.fixture
def transport(grok_config):
    with Transport(grok_config) as t:
        yield t


def _unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestRequests:
    def test_sends_auth_and_json_headers(self, transport, grok_server):
        """Test that every request carries the bearer token and JSON headers."""
        response = transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat", model="grok-2-1212")

        assert response.status_code == 200
        headers = grok_server.state["calls"][0]["headers"]
        assert headers["Authorization"] == "Bearer xai-test-key"
        assert headers["Content-Type"] == "application/json"
        assert headers["User-Agent"].startswith("grok-client/")
        assert grok_server.state["calls"][0]["payload"] == CHAT_PAYLOAD

    def test_post_json_returns_decoded_body(self, transport):
        data = transport.post_json("/v1/tokenize", {"text": "one two three"}, operation="tokenize")
        assert data == {"token_count": 3}

    def test_post_json_raises_on_error_key_in_2xx(self, transport, grok_server):
        grok_server.state["response"] = {"error": "quota exhausted"}
        with pytest.raises(ApiError, match="quota exhausted") as exc_info:
            transport.post_json("/v1/tokenize", {"text": "x"}, operation="tokenize")
        assert exc_info.value.code == 200


class TestStatusMapping:
    def test_error_body_becomes_api_error(self, transport, grok_server):
        """Test that a 400 with an error object raises ApiError with status and request id."""
        grok_server.state["failures"] = [(400, {"error": {"message": "Bad temperature", "type": "invalid_request_error"}})]

        with pytest.raises(ApiError) as exc_info:
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")

        error = exc_info.value
        assert error.code == 400
        assert error.message == "Bad temperature"
        assert error.request_id == "req-1"
        assert error.context["type"] == "invalid_request_error"

    def test_non_json_error_becomes_transport_error(self, transport, grok_server):
        grok_server.state["failures"] = [(404, "nothing here")]
        with pytest.raises(TransportError) as exc_info:
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")
        assert exc_info.value.code == 404

    def test_client_errors_not_retried(self, transport, grok_server):
        """Test that a 400 is surfaced after a single attempt."""
        grok_server.state["failures"] = [(400, {"error": "bad"}), (400, {"error": "bad"})]
        with pytest.raises(ApiError):
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")
        assert len(grok_server.state["calls"]) == 1

    def test_connection_failure_is_transport_error(self):
        """Test that a refused connection raises TransportError without retrying."""
        config = GrokConfig(api_key="k", base_url=f"http://127.0.0.1:{_unused_port()}", retry_delay=0, timeout=2)
        with Transport(config) as transport, pytest.raises(TransportError, match="failed") as exc_info:
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")
        assert exc_info.value.code is None


class TestRetry:
    def test_rate_limit_then_success(self, transport, grok_server):
        """Test that a 429 followed by a 200 succeeds with exactly one retry."""
        grok_server.state["failures"] = [(429, {"error": {"message": "Rate limit exceeded"}})]

        response = transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")

        assert response.status_code == 200
        assert response.json()["choices"][0]["message"]["content"] == "Echo: hi"
        assert len(grok_server.state["calls"]) == 2

    def test_server_errors_retried_until_exhausted(self, transport, grok_server):
        """Test that 5xx responses use every attempt and the last error is raised."""
        grok_server.state["failures"] = [(500, "boom"), (502, "boom"), (503, {"error": "unavailable"})]

        with pytest.raises(ApiError) as exc_info:
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")

        assert exc_info.value.code == 503
        assert len(grok_server.state["calls"]) == 3

    def test_max_retries_bounds_attempts(self, grok_config, grok_server):
        grok_server.state["failures"] = [(500, "boom")] * 5
        config = dataclasses.replace(grok_config, max_retries=2)
        with Transport(config) as transport, pytest.raises(TransportError):
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")
        assert len(grok_server.state["calls"]) == 2

    def test_rate_limit_context(self, transport, grok_server):
        """Test that an exhausted 429 carries the rate-limit headers in its context."""
        grok_server.state["extra_headers"] = {"x-ratelimit-limit": "60", "x-ratelimit-remaining": "0"}
        grok_server.state["failures"] = [(429, {"error": "slow down"})] * 3

        with pytest.raises(ApiError) as exc_info:
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat")

        assert exc_info.value.context["rate_limit"] == {"limit": 60, "remaining": 0, "reset": 0}


class TestStreaming:
    def test_stream_lines_skips_blank_lines(self, transport, grok_server):
        lines = list(transport.stream_lines(CHAT_PATH, {**CHAT_PAYLOAD, "stream": True}, operation="chat_stream"))

        assert len(lines) == 3
        assert lines[-1] == "data: [DONE]"
        assert grok_server.state["calls"][0]["headers"]["Accept"] == "text/event-stream"

    def test_stream_errors_raise_before_iteration(self, transport, grok_server):
        grok_server.state["failures"] = [(401, {"error": "Invalid API key"})]
        with pytest.raises(ApiError, match="Invalid API key"):
            transport.stream_lines(CHAT_PATH, {**CHAT_PAYLOAD, "stream": True}, operation="chat_stream")


class TestTelemetry:
    def test_success_and_failure_recorded(self, transport, grok_server):
        transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat", model="grok-2-1212")
        grok_server.state["failures"] = [(400, {"error": "bad"})]
        with pytest.raises(ApiError):
            transport.post(CHAT_PATH, CHAT_PAYLOAD, operation="chat", model="grok-2-1212")

        metrics = MetricsCollector.get_metrics()
        assert metrics.total_requests == 2
        assert metrics.failed_requests == 1
        assert metrics.errors_by_type == {"api:400": 1}
        assert metrics.requests_by_model == {"grok-2-1212": 2}
