"""Configuration schema using Pydantic."""

import json
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

MENTION_SEPARATOR = "\u2005"  # "magic code" 8197 that closes an @mention


class TransportConfig(BaseModel):
    """Remote chat gateway configuration."""

    base_url: str = "http://127.0.0.1:8788/api"
    token: str = ""
    timeout: float = 30.0


class MentionConfig(BaseModel):
    """Mention detection configuration."""

    separator: str = MENTION_SEPARATOR
    ambiguity: Literal["all", "none", "first"] = "all"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class Config(BaseModel):
    """Root configuration."""

    transport: TransportConfig = Field(default_factory=TransportConfig)
    mentions: MentionConfig = Field(default_factory=MentionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_path() -> Path:
    """Get the config file path."""
    return Path.home() / ".chatpuppet" / "config.json"


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file, falling back to defaults."""
    config_path = path or get_config_path()

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return Config(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable config {}: {}", config_path, e)

    return Config()


def save_config(config: Config, path: Path | None = None) -> None:
    """Save configuration to file."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(config.model_dump_json(indent=2))
