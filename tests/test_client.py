"""
Tests for GrokClient construction and facade wiring.
"""

import pytest

from grok_client import (
    Chat,
    Completions,
    ConfigurationError,
    Embeddings,
    GrokClient,
    GrokConfig,
    Images,
    Model,
    ValidationError,
    get_settings,
)


class TestConstruction:
    @pytest.mark.parametrize("api_key", ["", "   "])
    def test_empty_api_key_rejected(self, api_key):
        """Test that an empty key fails at construction."""
        with pytest.raises(ConfigurationError, match="API key"):
            GrokClient(api_key=api_key)

    def test_missing_api_key_rejected(self):
        with pytest.raises(ConfigurationError):
            GrokClient()

    def test_options_build_config(self):
        client = GrokClient(api_key="k", timeout=60, default_model="grok-2-vision")
        assert client.config.timeout == 60
        assert client.model is Model.GROK_2_VISION_1212
        client.close()

    def test_options_override_config(self):
        base = GrokConfig(api_key="k", max_retries=5)
        client = GrokClient(base, api_key="other", debug=True)
        assert client.config.api_key == "other"
        assert client.config.max_retries == 5
        assert client.config.debug is True
        assert base.api_key == "k"
        client.close()

    def test_unknown_option_rejected(self):
        with pytest.raises(ConfigurationError, match="Invalid client option"):
            GrokClient(api_key="k", tiemout=5)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GROK_API_KEY", "env-key")
        monkeypatch.setenv("GROK_DEFAULT_MODEL", "grok-2-beta")
        get_settings.cache_clear()
        try:
            with GrokClient.from_env() as client:
                assert client.config.api_key == "env-key"
                assert client.model is Model.GROK_BETA
        finally:
            get_settings.cache_clear()

    def test_from_env_invalid_value(self, monkeypatch):
        """Test that a bad GROK_* value surfaces as ConfigurationError."""
        monkeypatch.setenv("GROK_API_KEY", "env-key")
        monkeypatch.setenv("GROK_BASE_URL", "ftp://example.com")
        get_settings.cache_clear()
        try:
            with pytest.raises(ConfigurationError, match="base_url"):
                GrokClient.from_env()
        finally:
            get_settings.cache_clear()


class TestFacades:
    def test_facades_share_transport_and_model(self, client):
        assert isinstance(client.chat(), Chat)
        assert isinstance(client.completions(), Completions)
        assert isinstance(client.images(), Images)
        assert isinstance(client.embeddings(), Embeddings)
        assert client.chat().transport is client.transport
        assert client.completions().model is client.model

    def test_with_model(self, client, grok_server):
        """Test that with_model() shares config and transport but changes the model."""
        beta = client.with_model("grok-2-beta")

        assert beta.model is Model.GROK_BETA
        assert beta.config is client.config
        assert beta.transport is client.transport
        assert client.model is Model.GROK_2_1212

        beta.chat().send("Hi")
        assert grok_server.state["calls"][0]["payload"]["model"] == "grok-2-beta"

    def test_with_model_unknown(self, client):
        with pytest.raises(ValidationError):
            client.with_model("not-a-model")

    def test_begin_conversation(self, client, grok_server):
        chat = client.begin_conversation([{"role": "user", "content": "Earlier"}, {"role": "assistant", "content": "Ok"}])
        chat.send("Now")
        assert len(grok_server.state["calls"][0]["payload"]["messages"]) == 3

    def test_context_manager_closes_session(self, grok_config, monkeypatch):
        closed = []
        with GrokClient(grok_config) as client:
            monkeypatch.setattr(client.transport.session, "close", lambda: closed.append(True))
            assert repr(client).startswith("GrokClient(")
        assert closed == [True]
