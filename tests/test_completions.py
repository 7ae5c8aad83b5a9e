"""
Behavioral tests for the Completions facade.
"""

import pytest

from grok_client import Completion, Model, ParseError, ValidationError


class TestCreate:
    def test_create(self, client, grok_server):
        completion = client.completions().create("Once upon a time")

        assert isinstance(completion, Completion)
        assert completion.text == "Completion 0: Once upon a time"
        assert grok_server.state["calls"][0]["path"] == "/v1/completions"
        assert grok_server.state["calls"][0]["payload"]["prompt"] == "Once upon a time"

    def test_create_rejects_empty_prompt(self, client, grok_server):
        with pytest.raises(ValidationError):
            client.completions().create("")
        assert grok_server.state["calls"] == []


class TestCreateMultiple:
    @pytest.mark.parametrize("n", [1, 3, 10])
    def test_returns_n_completions(self, client, grok_server, n):
        """Test that one request yields exactly n single-choice completions."""
        completions = client.completions().create_multiple("Name a colour", n=n)

        assert len(completions) == n
        assert len(grok_server.state["calls"]) == 1
        assert grok_server.state["calls"][0]["payload"]["n"] == n
        assert [c.text for c in completions] == [f"Completion {i}: Name a colour" for i in range(n)]
        assert all(len(c.choices) == 1 for c in completions)
        assert {(c.id, c.usage.total_tokens) for c in completions} == {("cmpl-test", 15)}

    @pytest.mark.parametrize("n", [0, 11, -1])
    def test_out_of_range_n_sends_nothing(self, client, grok_server, n):
        with pytest.raises(ValidationError) as exc_info:
            client.completions().create_multiple("x", n=n)
        assert exc_info.value.has_error_for("n")
        assert grok_server.state["calls"] == []

    def test_short_choice_list_raises_parse_error(self, client, grok_server):
        """Test that fewer choices than requested is reported, not silently truncated."""
        grok_server.state["response"] = {
            "id": "cmpl-short",
            "model": "grok-2-1212",
            "choices": [{"index": 0, "text": "only one", "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3},
        }

        with pytest.raises(ParseError, match="Expected 3 choices, received 1") as exc_info:
            client.completions().create_multiple("x", n=3)
        assert exc_info.value.context == {"expected": 3, "received": 1}
        assert exc_info.value.request_id == "cmpl-short"


class TestStreaming:
    def test_stream_with_callback(self, client, grok_server):
        grok_server.state["stream_lines"] = [
            'data: {"choices": [{"index": 0, "text": "Once"}]}',
            'data: {"choices": [{"index": 0, "text": " more", "finish_reason": "length"}]}',
            "data: [DONE]",
        ]
        received = []

        text = client.completions().stream("Say", received.append)

        assert text == "Once more"
        assert [c.stream_content for c in received] == ["Once", " more"]
        assert received[-1].finish_reason == "length"

    def test_iter_stream_rejected_for_non_streaming_model(self, client, grok_server):
        completions = client.with_model(Model.GROK_VISION_BETA).completions()
        with pytest.raises(ValidationError):
            completions.iter_stream("Say")
        assert grok_server.state["calls"] == []


class TestTokenCount:
    def test_get_token_count(self, client, grok_server):
        assert client.completions().get_token_count("one two three four") == 4
        assert grok_server.state["calls"][0]["path"] == "/v1/tokenize"
        assert grok_server.state["calls"][0]["payload"] == {"text": "one two three four"}

    def test_missing_token_count(self, client, grok_server):
        grok_server.state["response"] = {"tokens": []}
        with pytest.raises(ParseError):
            client.completions().get_token_count("text")
