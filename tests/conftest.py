"""
Pytest configuration and fixtures for Grok client tests.
"""

import json
import logging
import socketserver
import sys
import threading
from http.server import BaseHTTPRequestHandler
from pathlib import Path
from types import SimpleNamespace

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from grok_client import GrokClient, GrokConfig
from grok_client.telemetry import structured_logging
from grok_client.telemetry.metrics import MetricsCollector

TEST_API_KEY = "xai-test-key"

DEFAULT_STREAM_LINES = [
    'data: {"id": "chunk-1", "model": "grok-2-1212", "created": 1700000000, '
    '"choices": [{"index": 0, "delta": {"role": "assistant", "content": "Hello"}, "finish_reason": null}]}',
    'data: {"id": "chunk-1", "model": "grok-2-1212", "created": 1700000000, '
    '"choices": [{"index": 0, "delta": {"content": " world"}, "finish_reason": "stop"}]}',
    "data: [DONE]",
]


class ThreadedTCPServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True


def _last_text(messages: list) -> str:
    if not messages:
        return ""
    content = messages[-1].get("content", "")
    if isinstance(content, list):
        return " ".join(p.get("text", "") for p in content if p.get("type") == "text")
    return content


class GrokRequestHandler(BaseHTTPRequestHandler):
    def _send(self, body: bytes, content_type: str, status: int = 200):
        state = self.server.server_state  # type: ignore[attr-defined]
        state["request_count"] += 1
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("x-request-id", f"req-{state['request_count']}")
        for name, value in state.get("extra_headers", {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def _json_response(self, data, status: int = 200):
        self._send(json.dumps(data).encode("utf-8"), "application/json", status)

    def _stream_response(self, lines: list[str]):
        state = self.server.server_state  # type: ignore[attr-defined]
        state["request_count"] += 1
        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        self.send_header("x-request-id", f"req-{state['request_count']}")
        self.end_headers()
        for line in lines:
            self.wfile.write(f"{line}\n\n".encode("utf-8"))
            self.wfile.flush()

    def _completion_body(self, payload: dict, choices: list) -> dict:
        return {
            "id": "cmpl-test",
            "object": "chat.completion",
            "created": 1700000000,
            "model": payload.get("model", "grok-2-1212"),
            "choices": choices,
            "usage": {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15},
            "system_fingerprint": "fp_test",
        }

    def do_POST(self):
        state = self.server.server_state  # type: ignore[attr-defined]
        length = int(self.headers.get("Content-Length", "0"))
        raw = self.rfile.read(length) if length else b"{}"
        try:
            payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError:
            payload = {}
        state["calls"].append({"path": self.path, "payload": payload, "headers": dict(self.headers)})

        failures = state["failures"]
        if failures:
            status, body = failures.pop(0)
            if isinstance(body, str):
                self._send(body.encode("utf-8"), "text/plain", status)
            else:
                self._json_response(body, status=status)
            return

        if "response" in state:
            self._json_response(state.pop("response"))
            return

        if payload.get("stream"):
            self._stream_response(state["stream_lines"])
            return

        if self.path == "/v1/chat/completions":
            replies = state["chat_replies"]
            content = replies.pop(0) if replies else f"Echo: {_last_text(payload.get('messages', []))}"
            choice = {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
            self._json_response(self._completion_body(payload, [choice]))
            return

        if self.path == "/v1/completions":
            prompt = payload.get("prompt", "")
            choices = [
                {"index": i, "text": f"Completion {i}: {prompt}", "finish_reason": "stop"}
                for i in range(payload.get("n", 1))
            ]
            self._json_response(self._completion_body(payload, choices))
            return

        if self.path == "/v1/embeddings":
            inputs = payload.get("input", [])
            inputs = [inputs] if isinstance(inputs, str) else inputs
            data = [
                {"object": "embedding", "index": i, "embedding": [float(i), float(len(text))]}
                for i, text in enumerate(inputs)
            ]
            self._json_response(
                {
                    "object": "list",
                    "model": payload.get("model"),
                    "data": list(reversed(data)),
                    "usage": {"prompt_tokens": len(inputs), "total_tokens": len(inputs)},
                }
            )
            return

        if self.path == "/v1/tokenize":
            self._json_response({"token_count": len(payload.get("text", "").split())})
            return

        self._json_response({"error": {"message": "not found", "type": "invalid_request_error"}}, status=404)

    def log_message(self, format, *args):
        # Suppress default HTTP server logging to keep test output clean.
        return


@pytest.fixture
def grok_server():
    """Start a lightweight HTTP server that mimics the Grok API endpoints.

    State keys:
        calls: every received request (path, payload, headers)
        failures: (status, body) pairs returned, in order, before normal handling
        chat_replies: assistant contents returned, in order, by the chat endpoint
        stream_lines: SSE lines sent for requests with ``stream: true``
        response: one raw JSON body returned for the next request
    """
    state = {
        "calls": [],
        "failures": [],
        "chat_replies": [],
        "stream_lines": list(DEFAULT_STREAM_LINES),
        "extra_headers": {},
        "request_count": 0,
    }

    server = ThreadedTCPServer(("127.0.0.1", 0), GrokRequestHandler)
    server.server_state = state  # type: ignore[attr-defined]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    base_url = f"http://127.0.0.1:{server.server_address[1]}"

    try:
        yield SimpleNamespace(base_url=base_url, state=state)
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def grok_config(grok_server):
    """Config pointing at the fake server, with instant retries."""
    return GrokConfig(api_key=TEST_API_KEY, base_url=grok_server.base_url, retry_delay=0, timeout=5)


@pytest.fixture
def client(grok_config):
    with GrokClient(grok_config) as grok_client:
        yield grok_client


@pytest.fixture(autouse=True)
def request_log_dir(tmp_path, monkeypatch):
    """Route the JSONL request log to a temporary directory per test."""
    log_dir = tmp_path / "logs"
    monkeypatch.setenv("GROK_LOG_DIR", str(log_dir))
    structured_logging._get_logs_dir.cache_clear()
    structured_logging.get_request_logger.cache_clear()

    yield log_dir

    request_logger = logging.getLogger(structured_logging.REQUEST_LOGGER_NAME)
    for handler in list(request_logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        handler.close()
        request_logger.removeHandler(handler)
    structured_logging._get_logs_dir.cache_clear()
    structured_logging.get_request_logger.cache_clear()


@pytest.fixture(autouse=True)
def reset_metrics():
    MetricsCollector.reset()
    yield
    MetricsCollector.reset()
