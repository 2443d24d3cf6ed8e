"""Configuration management."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml

from pubmed_notifier.core import ConfigError

PROVIDERS = ("slack", "line")
DEDUP_POLICIES = ("seen_ids", "watermark")
TRANSLATION_ERROR_MODES = ("abort", "fallback")


@dataclass
class StorageConfig:
    """Workbook location and sheet names."""
    workbook_path: Path = Path("workbook.yaml")
    subscriptions_sheet: str = "RSS"
    webhooks_sheet: str = "webhooks"
    tokens_sheet: str = "tokens"


@dataclass
class FeedConfig:
    """Feed fetching settings."""
    timeout: float = 30.0
    user_agent: str = "pubmed-notifier"


@dataclass
class DedupConfig:
    """Dedup policy settings."""
    policy: str = "seen_ids"
    max_ids: Optional[int] = None
    advance_on_empty: bool = False


@dataclass
class SlackConfig:
    """Slack webhook settings."""
    group_size: int = 5
    max_blocks: int = 50
    timeout: float = 30.0


@dataclass
class LineConfig:
    """LINE Notify settings."""
    max_chars: int = 1000
    silent_after_first: bool = True
    timeout: float = 30.0


@dataclass
class TranslationConfig:
    """Title translation settings."""
    enabled: bool = True
    source_lang: str = "en"
    target_lang: str = "ja"
    on_error: str = "abort"
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 512
    max_retries: int = 5
    initial_retry_delay: float = 2.0
    request_delay: float = 0.5


@dataclass
class Settings:
    """Application settings."""

    # API Keys (from environment only)
    anthropic_api_key: str = ""

    provider: str = "slack"

    # Config sections
    storage: StorageConfig = field(default_factory=StorageConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    line: LineConfig = field(default_factory=LineConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)

    @property
    def credential_sheet(self) -> str:
        if self.provider == "line":
            return self.storage.tokens_sheet
        return self.storage.webhooks_sheet

    def validate(self) -> None:
        """Raise ConfigError on values the run cannot work with."""
        if self.provider not in PROVIDERS:
            raise ConfigError(f"provider must be one of {PROVIDERS}, got '{self.provider}'")
        if self.dedup.policy not in DEDUP_POLICIES:
            raise ConfigError(f"dedup.policy must be one of {DEDUP_POLICIES}, got '{self.dedup.policy}'")
        if self.translation.on_error not in TRANSLATION_ERROR_MODES:
            raise ConfigError(
                f"translation.on_error must be one of {TRANSLATION_ERROR_MODES}, "
                f"got '{self.translation.on_error}'"
            )
        if self.slack.group_size < 1 or self.line.max_chars < 1:
            raise ConfigError("slack.group_size and line.max_chars must be positive")


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return config


def _apply_section(target: object, values: dict, section: str) -> None:
    known = {f.name for f in fields(target)}
    for key, value in (values or {}).items():
        if key not in known:
            raise ConfigError(f"Unknown setting '{section}.{key}'")
        setattr(target, key, value)


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
    )

    if "provider" in config:
        settings.provider = config["provider"]

    for section in ("storage", "feed", "dedup", "slack", "line", "translation"):
        if section in config:
            _apply_section(getattr(settings, section), config[section], section)

    settings.storage.workbook_path = Path(
        os.getenv("PUBMED_NOTIFIER_WORKBOOK", str(settings.storage.workbook_path))
    )

    settings.validate()
    return settings
