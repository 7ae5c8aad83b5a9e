"""
Behavioral tests for the Images facade.
"""

import pytest

from grok_client import ImageAnalysis, Model, ValidationError


class TestAnalyze:
    def test_analyze_uses_vision_model_fallback(self, client, grok_server):
        """Test that a text-only client model falls back to the default vision model."""
        grok_server.state["chat_replies"] = ["A cat sitting on a mat."]

        analysis = client.images().analyze("https://example.com/cat.png")

        assert isinstance(analysis, ImageAnalysis)
        assert analysis.analysis == "A cat sitting on a mat."
        assert analysis.contains("CAT")
        payload = grok_server.state["calls"][0]["payload"]
        assert payload["model"] == Model.default_vision().value
        assert payload["messages"][0]["content"][0] == {
            "type": "image_url",
            "image_url": {"url": "https://example.com/cat.png"},
        }
        assert payload["messages"][0]["content"][1]["text"] == "Analyze this image."

    def test_analyze_keeps_vision_capable_model(self, client, grok_server):
        client.with_model("grok-vision-beta").images().analyze("https://example.com/a.webp", "What colour?")

        payload = grok_server.state["calls"][0]["payload"]
        assert payload["model"] == "grok-vision-beta"
        assert payload["messages"][0]["content"][1]["text"] == "What colour?"

    @pytest.mark.parametrize("url", [None, "", "not-a-url", "https://example.com/image.bmp"])
    def test_invalid_urls_send_nothing(self, client, grok_server, url):
        with pytest.raises(ValidationError):
            client.images().analyze(url)
        assert grok_server.state["calls"] == []
