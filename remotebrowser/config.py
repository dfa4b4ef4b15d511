"""Persistent JSON configuration for the remote browser.

Settings live in ``config.json`` under the platform config directory.
Loading is defensive: a missing or malformed file, or a value of the wrong
type, falls back to the built-in default for that setting.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path

from platformdirs import user_config_dir

from .engine.search import SEARCH_DEBOUNCE_SECONDS, SEARCH_MAX_RESULTS
from .engine.upload import BLOCKED_EXTENSIONS, MAX_FILE_SIZE, MAX_FILES, MAX_TOTAL_SIZE
from .highlight import DEFAULT_STYLE
from .remote.gateway import DEFAULT_TIMEOUT, DEFAULT_TOKEN_HEADER

logger = logging.getLogger(__name__)

APP_NAME = "remotebrowser"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

ENV_BASE_URL = "REMOTEBROWSER_BASE_URL"
ENV_LOG_LEVEL = "REMOTEBROWSER_LOG_LEVEL"
DEFAULT_BASE_URL = "http://localhost:3000"


@dataclass(frozen=True)
class BrowserConfig:
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = DEFAULT_TIMEOUT
    session_header: str = DEFAULT_TOKEN_HEADER
    max_upload_files: int = MAX_FILES
    max_file_size: int = MAX_FILE_SIZE
    max_total_size: int = MAX_TOTAL_SIZE
    blocked_extensions: tuple[str, ...] = tuple(sorted(BLOCKED_EXTENSIONS))
    search_debounce: float = SEARCH_DEBOUNCE_SECONDS
    search_max_results: int = SEARCH_MAX_RESULTS
    highlight_style: str = DEFAULT_STYLE
    log_level: str = "WARNING"

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["blocked_extensions"] = list(self.blocked_extensions)
        return data


def load_config_data(path: Path | None = None) -> dict[str, object]:
    """Return the raw JSON object, or an empty dict when it cannot be used."""
    config_path = path or CONFIG_PATH
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", config_path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config_data(data: dict[str, object], path: Path | None = None) -> bool:
    """Write ``data`` as pretty-printed JSON; returns whether it was written."""
    config_path = path or CONFIG_PATH
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", config_path, exc)
        return False
    return True


def _number(value: object, default: float, *, allow_zero: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return float(value)


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return default
    return value


def _nonempty_str(value: object, default: str) -> str:
    if not isinstance(value, str) or not value.strip():
        return default
    return value.strip()


def _extensions(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if not isinstance(value, list):
        return default
    cleaned = {item.strip().lstrip(".").lower() for item in value if isinstance(item, str) and item.strip()}
    return tuple(sorted(cleaned))


def config_from_data(data: dict[str, object]) -> BrowserConfig:
    """Build a config from a decoded JSON object, value by value."""
    default = BrowserConfig()
    return BrowserConfig(
        base_url=_nonempty_str(data.get("base_url"), default.base_url).rstrip("/"),
        request_timeout=_number(data.get("request_timeout"), default.request_timeout, allow_zero=False),
        session_header=_nonempty_str(data.get("session_header"), default.session_header),
        max_upload_files=_positive_int(data.get("max_upload_files"), default.max_upload_files),
        max_file_size=_positive_int(data.get("max_file_size"), default.max_file_size),
        max_total_size=_positive_int(data.get("max_total_size"), default.max_total_size),
        blocked_extensions=_extensions(data.get("blocked_extensions"), default.blocked_extensions),
        search_debounce=_number(data.get("search_debounce"), default.search_debounce),
        search_max_results=_positive_int(data.get("search_max_results"), default.search_max_results),
        highlight_style=_nonempty_str(data.get("highlight_style"), default.highlight_style),
        log_level=_nonempty_str(data.get("log_level"), default.log_level).upper(),
    )


def apply_environment(config: BrowserConfig, environ: dict[str, str] | None = None) -> BrowserConfig:
    env = os.environ if environ is None else environ
    changes: dict[str, object] = {}
    base_url = env.get(ENV_BASE_URL, "").strip()
    if base_url:
        changes["base_url"] = base_url.rstrip("/")
    log_level = env.get(ENV_LOG_LEVEL, "").strip()
    if log_level:
        changes["log_level"] = log_level.upper()
    return replace(config, **changes) if changes else config


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> BrowserConfig:
    """Load the persisted config with environment overrides applied on top."""
    return apply_environment(config_from_data(load_config_data(path)), environ)


def save_config(config: BrowserConfig, path: Path | None = None) -> bool:
    return save_config_data(config.to_dict(), path)


__all__ = [
    "APP_NAME",
    "BrowserConfig",
    "CONFIG_PATH",
    "ENV_BASE_URL",
    "ENV_LOG_LEVEL",
    "apply_environment",
    "config_from_data",
    "load_config",
    "load_config_data",
    "save_config",
    "save_config_data",
]
