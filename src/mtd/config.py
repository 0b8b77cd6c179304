"""
MTD configuration -- where the server lives and how to reach it.

Stored as YAML at ``<home>/config.yaml`` (``$MTD_HOME`` or ``~/.mtd``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger("mtd.config")

CONFIG_FILE = "config.yaml"
DEFAULT_LIST_FILE = "tdlist.json"
DEFAULT_PORT = 55995


class Config(BaseModel):
    """Settings shared by the client and the server."""

    address: str = "127.0.0.1"
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    encryption_password: str = ""
    timeout: float = Field(default=30.0, gt=0)
    save_location: Optional[Path] = None

    @property
    def socket_addr(self) -> tuple[str, int]:
        return (self.address, self.port)

    @property
    def password(self) -> bytes:
        return self.encryption_password.encode("utf-8")


def load_config(home: Path) -> Config:
    """Load configuration from disk.

    Falls back to defaults when the file is missing or unreadable.

    Args:
        home: MTD home directory.

    Returns:
        The loaded (or default) Config.
    """
    config_file = Path(home).expanduser() / CONFIG_FILE
    if config_file.exists():
        try:
            data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            return Config(**data)
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            logger.warning("Failed to load config %s: %s", config_file, exc)
    return Config()


def save_config(home: Path, config: Config) -> Path:
    """Persist configuration to ``<home>/config.yaml``.

    Returns:
        Path of the written file.
    """
    home = Path(home).expanduser()
    home.mkdir(parents=True, exist_ok=True)
    config_file = home / CONFIG_FILE
    data = config.model_dump(mode="json")
    config_file.write_text(yaml.dump(data, default_flow_style=False), encoding="utf-8")
    logger.info("Wrote config to %s", config_file)
    return config_file
