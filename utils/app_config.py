"""Pre-DB bootstrap configuration. No imports from the rest of the app besides constants.

Stores user preferences that must be known before opening the DB or reaching
the API (db_folder, api_url, server address). Config lives in
~/.gastos/config.json; GASTOS_CONFIG_DIR points it elsewhere.
Environment variables GASTOS_API_URL and GASTOS_LOG_LEVEL override the file.
"""
import json
import logging
import os
from pathlib import Path

from utils.constants import (
    DEFAULT_PERSONA,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    PERSONAS,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"


def config_dir() -> Path:
    override = os.environ.get("GASTOS_CONFIG_DIR")
    return Path(override) if override else Path.home() / ".gastos"


def config_file() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def load_config() -> dict:
    """Returns {} on missing or corrupt file; never raises."""
    try:
        with open(config_file(), "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", config_file(), exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict) -> None:
    """Creates the config directory if needed; atomic write via .tmp + os.replace()."""
    target = config_file()
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except OSError as exc:
        logger.error("Could not save config %s: %s", target, exc)
        tmp.unlink(missing_ok=True)


def _set(key: str, value) -> None:
    config = load_config()
    if value is None:
        config.pop(key, None)
    else:
        config[key] = value
    save_config(config)


def get_db_folder() -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config().get("db_folder")


def set_db_folder(path: str | None) -> None:
    _set("db_folder", path)


def get_api_url() -> str | None:
    """Remote API base URL, or None to run the embedded server."""
    return os.environ.get("GASTOS_API_URL") or load_config().get("api_url") or None


def set_api_url(url: str | None) -> None:
    _set("api_url", url or None)


def get_server_address() -> tuple[str, int]:
    config = load_config()
    host = config.get("server_host") or DEFAULT_SERVER_HOST
    try:
        port = int(config.get("server_port", DEFAULT_SERVER_PORT))
    except (TypeError, ValueError):
        port = DEFAULT_SERVER_PORT
    return host, port


def get_request_timeout() -> float:
    try:
        return float(load_config().get("request_timeout", DEFAULT_REQUEST_TIMEOUT))
    except (TypeError, ValueError):
        return DEFAULT_REQUEST_TIMEOUT


def get_default_persona() -> str:
    persona = load_config().get("default_persona")
    return persona if persona in PERSONAS else DEFAULT_PERSONA


def set_default_persona(persona: str) -> None:
    if persona in PERSONAS:
        _set("default_persona", persona)


def get_log_level() -> str:
    return (os.environ.get("GASTOS_LOG_LEVEL") or load_config().get("log_level") or "INFO").upper()


def get_appearance_mode() -> str:
    mode = load_config().get("appearance_mode", "system")
    return mode if mode in ("system", "light", "dark") else "system"


def set_appearance_mode(mode: str) -> None:
    _set("appearance_mode", mode)
