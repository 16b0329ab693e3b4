from __future__ import annotations

"""Bot configuration and logging setup.

Purpose: Load settings from `settings/config.json` when it exists. Every key is
optional; missing keys fall back to the reference server and identity.
Configure root logging with a concise format.

"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict


logger = logging.getLogger("bedrockbot.config")

DEFAULT_HOST = "play.donutsmp.net"
DEFAULT_PORT = 19132
DEFAULT_USERNAME = "BotHelper"
DEFAULT_BRIDGE_URL = "ws://127.0.0.1:8765"


@dataclass(frozen=True)
class Settings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    # False means Xbox Live authentication
    offline: bool = False
    bridge_url: str = DEFAULT_BRIDGE_URL
    log_level: str = "INFO"


def _as_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    try:
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    except Exception:
        return default


def load_settings(path: Path | str = Path("settings/config.json")) -> Settings:
    """Load settings from a JSON file, falling back to defaults when it is absent.

    A file that exists but is not a JSON object raises RuntimeError.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        logger.debug("%s not found, using defaults", cfg_path)
        return Settings()
    try:
        data: Dict[str, Any] = json.loads(cfg_path.read_text(encoding="utf-8"))
    except Exception as e:
        raise RuntimeError(f"failed to parse {cfg_path}: {e}")
    if not isinstance(data, dict):
        raise RuntimeError(f"{cfg_path} must contain a JSON object")

    defaults = Settings()

    def gv(key: str, default):
        value = data.get(key)
        return default if value is None else value

    try:
        return Settings(
            host=str(gv("host", defaults.host)),
            port=int(gv("port", defaults.port)),
            username=str(gv("username", defaults.username)),
            offline=_as_bool(data.get("offline"), defaults.offline),
            bridge_url=str(gv("bridge_url", defaults.bridge_url)),
            log_level=str(gv("log_level", defaults.log_level)).upper(),
        )
    except (TypeError, ValueError) as e:
        raise RuntimeError(f"invalid value in {cfg_path}: {e}")


def configure_logging(log_level: str) -> None:
    """Configure root logger with a concise, structured-ish format."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
