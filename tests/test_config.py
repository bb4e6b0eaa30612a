"""Tests for configuration constants in validus.config."""

import importlib

import pytest


def _reload_config():
    """Force-reload validus.config so env-var changes take effect."""
    import validus.config

    return importlib.reload(validus.config)


@pytest.fixture(autouse=True)
def _restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    _reload_config()


# ---------------------------------------------------------------------------
# Default values
# ---------------------------------------------------------------------------


class TestConfigDefaults:
    """Verify that every config constant exists with the correct default."""

    @pytest.fixture(autouse=True)
    def _clear_env(self, monkeypatch):
        for name in (
            "VALIDUS_LOCALE",
            "VALIDUS_MAX_LISTEN_SECONDS",
            "VALIDUS_MAX_QUERY_LENGTH",
            "VALIDUS_MATCH_THRESHOLD",
            "VALIDUS_MATCH_DISTANCE",
            "VALIDUS_RESPONSES_FILE",
            "VALIDUS_SPEECH_RATE",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_locale_default(self):
        assert _reload_config().LOCALE == "en-US"

    def test_max_listen_seconds_default(self):
        assert _reload_config().MAX_LISTEN_SECONDS == 0.0

    def test_max_query_length_default(self):
        assert _reload_config().MAX_QUERY_LENGTH == 100

    def test_match_threshold_default(self):
        assert _reload_config().MATCH_THRESHOLD == 0.3

    def test_match_distance_default(self):
        assert _reload_config().MATCH_DISTANCE == 50

    def test_speech_rate_default(self):
        assert _reload_config().SPEECH_RATE == 0.0

    def test_responses_file_unset(self):
        assert _reload_config().get_responses_file() is None

    def test_static_responses(self):
        cfg = _reload_config()
        assert list(cfg.STATIC_RESPONSES) == [
            "hello",
            "how are you",
            "what is your name",
            "tell me a joke",
        ]
        assert cfg.STATIC_RESPONSES["hello"] == "Hi there! How can I assist you?"

    def test_fixed_replies(self):
        cfg = _reload_config()
        assert cfg.EMPTY_QUERY_REPLY == "I didn't hear anything. Can you repeat that?"
        assert cfg.NO_MATCH_REPLY == "Sorry, I didn't catch that."
        assert cfg.RECOGNITION_ERROR_REPLY == "Sorry, I couldn't understand that."


# ---------------------------------------------------------------------------
# Env var overrides
# ---------------------------------------------------------------------------


class TestConfigOverrides:
    def test_locale_override(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_LOCALE", "fr-FR")
        assert _reload_config().LOCALE == "fr-FR"

    def test_threshold_override(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MATCH_THRESHOLD", "0.1")
        assert _reload_config().MATCH_THRESHOLD == 0.1

    def test_distance_override(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MATCH_DISTANCE", "10")
        assert _reload_config().MATCH_DISTANCE == 10

    def test_max_query_length_override(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MAX_QUERY_LENGTH", "40")
        assert _reload_config().MAX_QUERY_LENGTH == 40

    def test_listen_seconds_override(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MAX_LISTEN_SECONDS", "7.5")
        assert _reload_config().MAX_LISTEN_SECONDS == 7.5

    def test_responses_file_override(self, monkeypatch, tmp_path):
        path = tmp_path / "replies.json"
        monkeypatch.setenv("VALIDUS_RESPONSES_FILE", str(path))
        assert _reload_config().get_responses_file() == path

    def test_blank_responses_file_ignored(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_RESPONSES_FILE", "   ")
        assert _reload_config().get_responses_file() is None


class TestInvalidValues:
    def test_invalid_float_falls_back(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MATCH_THRESHOLD", "strict")
        assert _reload_config().MATCH_THRESHOLD == 0.3

    def test_invalid_int_falls_back(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MATCH_DISTANCE", "far")
        assert _reload_config().MATCH_DISTANCE == 50

    def test_float_for_int_falls_back(self, monkeypatch):
        monkeypatch.setenv("VALIDUS_MAX_QUERY_LENGTH", "12.5")
        assert _reload_config().MAX_QUERY_LENGTH == 100
