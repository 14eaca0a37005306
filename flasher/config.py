"""Flasher configuration and access token lookup."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path


logger = logging.getLogger("device-os-flasher.config")

PARTICLE_DIR = Path.home() / ".particle"
PARTICLE_CLI_CONFIG_FILE = PARTICLE_DIR / "particle.config.json"
DEFAULT_API_URL = "https://api.particle.io"
TOKEN_ENV_VAR = "PARTICLE_ACCESS_TOKEN"


@dataclass
class FlasherConfig:
    """Configuration for one flasher run."""

    name: str = "device-os-flasher"
    home_dir: Path | None = None
    api_url: str = DEFAULT_API_URL
    access_token: str = field(default="", repr=False)
    request_timeout: float = 30.0
    dfu_util: str = "dfu-util"

    def __post_init__(self) -> None:
        if self.home_dir is None:
            self.home_dir = PARTICLE_DIR / self.name
        user_config = read_user_config(self.home_dir / "config.json")
        if self.api_url == DEFAULT_API_URL and user_config.get("api_url"):
            self.api_url = str(user_config["api_url"])
        if self.dfu_util == "dfu-util" and user_config.get("dfu_util"):
            self.dfu_util = str(user_config["dfu_util"])
        if not self.access_token:
            self.access_token = load_access_token()


def read_user_config(path: Path) -> dict:
    """Read a JSON config file. Returns {} if missing or invalid."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except Exception as e:
        logger.warning("Failed to read config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: not a JSON object", path)
        return {}
    return data


def load_access_token(cli_config: Path = PARTICLE_CLI_CONFIG_FILE) -> str:
    """Find a cloud access token.

    Checks $PARTICLE_ACCESS_TOKEN first, then the particle CLI's config file.
    Returns "" if neither has one.
    """
    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if token:
        return token
    return str(read_user_config(cli_config).get("access_token") or "")
