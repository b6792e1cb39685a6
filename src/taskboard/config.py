"""Load optional board configuration from `.taskboard/config.yaml`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .constants import (
    CONFIG_FILE,
    DEFAULT_BASE_URL,
    DEFAULT_CLIENT_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    STATE_DIR_NAME,
)
from .io_utils import _load_data_with_error

VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def load_board_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional board config file.

    Args:
        project_dir: Directory that holds the `.taskboard/` state directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    project_dir = project_dir.resolve()
    path = project_dir / STATE_DIR_NAME / CONFIG_FILE
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def get_server_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the server settings, filling in defaults.

    Args:
        config: Board configuration dictionary.

    Returns:
        A mapping with `host`, `port` and `cors` keys.
    """
    raw = _get_nested(config, "server")
    raw = raw if isinstance(raw, dict) else {}
    host = raw.get("host")
    port = raw.get("port")
    cors = raw.get("cors")
    return {
        "host": host if isinstance(host, str) and host else DEFAULT_HOST,
        "port": port if isinstance(port, int) and not isinstance(port, bool) and port > 0 else DEFAULT_PORT,
        "cors": cors if isinstance(cors, bool) else True,
    }


def get_client_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the client settings, filling in defaults.

    Args:
        config: Board configuration dictionary.

    Returns:
        A mapping with `base_url` and `timeout` keys.
    """
    raw = _get_nested(config, "client")
    raw = raw if isinstance(raw, dict) else {}
    base_url = raw.get("base_url")
    timeout = raw.get("timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        timeout = DEFAULT_CLIENT_TIMEOUT
    return {
        "base_url": base_url.rstrip("/") if isinstance(base_url, str) and base_url else DEFAULT_BASE_URL,
        "timeout": float(timeout),
    }


def get_log_level_config(config: dict[str, Any]) -> str:
    raw = config.get("log_level")
    if isinstance(raw, str) and raw.upper() in VALID_LOG_LEVELS:
        return raw.upper()
    return DEFAULT_LOG_LEVEL
