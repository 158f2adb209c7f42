"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class GmailConfig:
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:8000/api/auth/gmail/callback"
    refresh_token: str = ""
    token_file: str = "token.json"
    default_query: str = "subject:(support OR query OR request OR help) is:unread"
    max_results: int = 50

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class StorageConfig:
    backend: str = "sqlite"
    sqlite_path: str = "triagedesk.db"


@dataclass
class AIConfig:
    provider: str = "gemini"
    model: str = "gemini-2.5-flash"
    gemini_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434"
    ollama_api_key: str = ""
    max_body_chars: int = 4000
    request_timeout: float = 120.0

    @property
    def model_spec(self) -> str:
        return f"{self.provider}:{self.model}"

    def to_provider_dict(self) -> dict:
        """Return a dict suitable for passing to get_provider()."""
        return {
            "gemini_api_key": self.gemini_api_key,
            "ollama_base_url": self.ollama_base_url,
            "ollama_api_key": self.ollama_api_key,
            "request_timeout": self.request_timeout,
        }


@dataclass
class PipelineConfig:
    urgent_batch_limit: int = 5
    default_list_limit: int = 50
    analytics_backfill_days: int = 7
    seed_csv_path: str | None = None
    knowledge_base_file: str = "knowledge_base.yaml"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    gmail: GmailConfig = field(default_factory=GmailConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _dict_to_config(data: dict) -> Config:
    """Convert a raw dict to a Config dataclass, handling nested structures."""
    from dacite import Config as DaciteConfig, from_dict

    return from_dict(data_class=Config, data=data, config=DaciteConfig(cast=[float]))


def _config_candidates() -> list[Path]:
    """Config locations in precedence order: $TRIAGEDESK_CONFIG, ./config.yaml, XDG."""
    candidates = []
    if os.environ.get("TRIAGEDESK_CONFIG"):
        candidates.append(Path(os.environ["TRIAGEDESK_CONFIG"]))
    candidates.append(Path("config.yaml"))
    candidates.append(Path.home() / ".config" / "triagedesk" / "config.yaml")
    return candidates


def _find_config_file() -> Path | None:
    return next((p for p in _config_candidates() if p.exists()), None)


def _load_dotenv(env_path: Path = Path(".env")) -> None:
    """Export KEY=VALUE lines from .env without overriding variables already set."""
    if not env_path.exists():
        return
    for raw in env_path.read_text().splitlines():
        key, sep, value = raw.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        os.environ.setdefault(key.strip(), value.strip().strip("\"'"))


# env var -> (section, attribute)
_ENV_OVERRIDES = {
    "GEMINI_API_KEY": ("ai", "gemini_api_key"),
    "OLLAMA_HOST": ("ai", "ollama_base_url"),
    "OLLAMA_API_KEY": ("ai", "ollama_api_key"),
    "AI_PROVIDER": ("ai", "provider"),
    "MODEL_NAME": ("ai", "model"),
    "TRIAGEDESK_DB": ("storage", "sqlite_path"),
    "GMAIL_CLIENT_ID": ("gmail", "client_id"),
    "GMAIL_CLIENT_SECRET": ("gmail", "client_secret"),
    "GMAIL_REDIRECT_URI": ("gmail", "redirect_uri"),
    "GMAIL_REFRESH_TOKEN": ("gmail", "refresh_token"),
    "TRIAGEDESK_LOG_LEVEL": ("logging", "level"),
}


def _apply_env_overrides(config: Config) -> Config:
    """Override config values from environment variables listed in _ENV_OVERRIDES."""
    for env_name, (section, attr) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            setattr(getattr(config, section), attr, value)
    return config


def load_config(path: str | Path | None = None) -> Config:
    """Load configuration from YAML file, merging with defaults.

    Also loads .env file and applies environment variable overrides.
    """
    _load_dotenv()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = _find_config_file()

    if config_path is None:
        config = Config()
    else:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        config = _dict_to_config(raw)

    return _apply_env_overrides(config)
