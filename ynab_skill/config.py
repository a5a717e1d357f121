"""Settings: load the YNAB token from env or config.json."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent

DEFAULT_BASE_URL = "https://api.ynab.com/v1"
DEFAULT_TIMEOUT = 60.0
TOKEN_ENV = "YNAB_API_TOKEN"
CONFIG_ENV = "YNAB_CONFIG"
BASE_URL_ENV = "YNAB_BASE_URL"


@dataclass(frozen=True)
class Settings:
    """Process-wide, read-only configuration handed to the request pipeline."""

    token: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    @property
    def has_token(self) -> bool:
        return bool(self.token)


def _read_config_token(path: Path) -> str:
    if not path.exists():
        return ""
    try:
        cfg = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return ""
    if not isinstance(cfg, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", path)
        return ""
    token = cfg.get("token")
    return token if isinstance(token, str) else ""


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build Settings once at startup.

    The environment variable wins over ``config.json``. A missing token is not
    an error here: the upstream API answers 401 and that surfaces through the
    normal failure path.
    """
    env = os.environ if environ is None else environ

    token = env.get(TOKEN_ENV, "")
    if not token:
        if config_path is None:
            config_path = env.get(CONFIG_ENV) or ROOT / "config.json"
        token = _read_config_token(Path(config_path))

    base_url = (env.get(BASE_URL_ENV) or DEFAULT_BASE_URL).rstrip("/")
    return Settings(token=token, base_url=base_url)
