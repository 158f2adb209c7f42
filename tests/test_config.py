"""Tests for configuration loading."""

import pytest
import yaml

from triagedesk.config import Config, load_config


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    for name in (
        "TRIAGEDESK_CONFIG", "GEMINI_API_KEY", "OLLAMA_HOST", "OLLAMA_API_KEY",
        "AI_PROVIDER", "MODEL_NAME", "TRIAGEDESK_DB", "GMAIL_CLIENT_ID",
        "GMAIL_CLIENT_SECRET", "GMAIL_REDIRECT_URI", "GMAIL_REFRESH_TOKEN",
        "TRIAGEDESK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_default_config():
    """Default config has sensible defaults."""
    config = Config()
    assert config.storage.sqlite_path == "triagedesk.db"
    assert config.ai.provider == "gemini"
    assert config.ai.model == "gemini-2.5-flash"
    assert config.ai.model_spec == "gemini:gemini-2.5-flash"
    assert config.pipeline.urgent_batch_limit == 5
    assert config.pipeline.analytics_backfill_days == 7
    assert config.gmail.is_configured is False


def test_load_missing_config_uses_defaults():
    """Loading with no config file returns defaults."""
    config = load_config()
    assert isinstance(config, Config)
    assert config.gmail.default_query == "subject:(support OR query OR request OR help) is:unread"


def test_load_config_from_yaml(tmp_path):
    """Loading from a YAML file merges with defaults."""
    data = {
        "ai": {"provider": "ollama", "model": "llama3", "request_timeout": 30},
        "pipeline": {"urgent_batch_limit": 3},
    }
    config_file = tmp_path / "custom.yaml"
    config_file.write_text(yaml.dump(data))

    config = load_config(str(config_file))

    assert config.ai.model_spec == "ollama:llama3"
    assert config.ai.request_timeout == 30.0
    assert config.pipeline.urgent_batch_limit == 3
    # Defaults still work
    assert config.storage.sqlite_path == "triagedesk.db"


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "key-123")
    monkeypatch.setenv("TRIAGEDESK_DB", "/tmp/other.db")
    monkeypatch.setenv("GMAIL_CLIENT_ID", "cid")
    monkeypatch.setenv("GMAIL_CLIENT_SECRET", "secret")

    config = load_config()

    assert config.ai.gemini_api_key == "key-123"
    assert config.storage.sqlite_path == "/tmp/other.db"
    assert config.gmail.is_configured is True
    assert config.ai.to_provider_dict()["gemini_api_key"] == "key-123"


def test_dotenv_does_not_override_existing(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text('MODEL_NAME="from-dotenv"\nAI_PROVIDER=ollama\n')
    monkeypatch.setenv("MODEL_NAME", "from-env")
    # registers AI_PROVIDER with monkeypatch so the .env value is undone afterwards
    monkeypatch.setenv("AI_PROVIDER", "placeholder")
    monkeypatch.delenv("AI_PROVIDER")

    config = load_config()

    assert config.ai.model == "from-env"
    assert config.ai.provider == "ollama"
