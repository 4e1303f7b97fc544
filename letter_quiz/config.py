from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

CONFIG_FILE = "config.json"
CONFIG_ENV = "LETTER_QUIZ_CONFIG"

DEFAULT_API_BASE_URL = "https://api.telegram.org"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    pass


def safe_load_json(path: str, default_value: Any) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning("⚠️ %s not found. Using defaults.", path)
    except (OSError, ValueError) as e:
        logger.warning("⚠️ Could not load %s: %s", path, e)
    return default_value


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    telegram_token: str = ""
    words_path: str = "words.txt"
    api_base_url: str = DEFAULT_API_BASE_URL
    poll_timeout: int = 30
    request_timeout: int = 40
    poll_retry_delay: float = 3.0
    response_queue_max: int = 20
    debug: bool = False
    clean_logs: bool = True
    rate_limit_seconds: float = 1.0

    def require_token(self) -> str:
        if not self.telegram_token:
            raise ConfigError("Missing Telegram token. Set API_KEY or telegram_token in config.json.")
        return self.telegram_token


def settings_from_mapping(config: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from parsed ``config.json`` data and environment overrides."""
    env = os.environ if env is None else env
    defaults = Settings()

    token = env.get("API_KEY") or env.get("TELEGRAM_TOKEN") or config.get("telegram_token") or ""
    words_path = env.get("WORDS_PATH") or config.get("words_path") or defaults.words_path
    debug_raw = env.get("LETTER_QUIZ_DEBUG")
    debug = _as_bool(debug_raw) if debug_raw is not None else _as_bool(config.get("debug", defaults.debug))

    queue_max = _as_int(config.get("response_queue_max"), defaults.response_queue_max)
    queue_max = max(5, min(queue_max, 100))

    return Settings(
        telegram_token=str(token).strip(),
        words_path=str(words_path),
        api_base_url=str(config.get("api_base_url") or defaults.api_base_url).rstrip("/"),
        poll_timeout=max(0, _as_int(config.get("poll_timeout"), defaults.poll_timeout)),
        request_timeout=max(1, _as_int(config.get("request_timeout"), defaults.request_timeout)),
        poll_retry_delay=max(0.0, _as_float(config.get("poll_retry_delay"), defaults.poll_retry_delay)),
        response_queue_max=queue_max,
        debug=debug,
        clean_logs=_as_bool(config.get("clean_logs", defaults.clean_logs)),
        rate_limit_seconds=max(0.0, _as_float(config.get("rate_limit_seconds"), defaults.rate_limit_seconds)),
    )


def load_settings(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    path = path or env.get(CONFIG_ENV) or CONFIG_FILE
    config: Dict[str, Any] = safe_load_json(path, {})
    if not isinstance(config, dict):
        config = {}
    return settings_from_mapping(config, env)


__all__ = ["Settings", "ConfigError", "load_settings", "settings_from_mapping", "safe_load_json"]
