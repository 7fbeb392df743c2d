"""Configuration management for LifeSync."""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from .core.schema import DEFAULT_CATEGORY
from .persistence import STORAGE_KEY

logger = logging.getLogger(__name__)

LIFESYNC_HOME = Path(os.environ.get("LIFESYNC_HOME", Path.home() / "lifesync"))
CONFIG_FILE = LIFESYNC_HOME / "config" / "lifesync.conf"
DATA_DIR = LIFESYNC_HOME / "data"


@dataclass
class Config:
    """LifeSync configuration."""

    data_dir: str = ""
    storage_key: str = STORAGE_KEY
    default_category: str = DEFAULT_CATEGORY

    def resolved_data_dir(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR


def _unquote(value: str) -> str:
    """Strip matching quotes, or an inline comment from an unquoted value."""
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from lifesync.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "data_dir":
                config.data_dir = value
            case "storage_key":
                if re.fullmatch(r"[A-Za-z0-9_-][A-Za-z0-9_.-]*", value):
                    config.storage_key = value
                else:
                    logger.warning(f"Ignoring invalid STORAGE_KEY: {value!r}")
            case "default_category":
                config.default_category = value or DEFAULT_CATEGORY

    return config
