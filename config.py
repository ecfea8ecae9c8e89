import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("RELAY_CONFIG", "server.config.json")
DEFAULT_PORT = 80
DEFAULT_HOST = "0.0.0.0"


@dataclass(frozen=True)
class Config:
    listen_port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST


def _resolve_port(value) -> int:
    if value is None:
        return DEFAULT_PORT
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError:
            pass
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value < 65536:
        logger.warning("Invalid wsPort %r in configuration file, using default %d", value, DEFAULT_PORT)
        return DEFAULT_PORT
    return value


def load_config(path=None) -> Config:
    """Read the JSON settings file. Anything missing or invalid falls back to defaults."""
    path = Path(path or CONFIG_PATH)
    if not path.exists():
        return Config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.error("Invalid JSON format in configuration file")
        return Config()

    if not isinstance(raw, dict):
        logger.error("Invalid JSON format in configuration file")
        return Config()

    host = raw.get("host")
    return Config(
        listen_port=_resolve_port(raw.get("wsPort")),
        host=host if isinstance(host, str) and host else DEFAULT_HOST,
    )
