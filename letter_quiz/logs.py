"""Console logging helpers.

``clean_log`` prints short emoji-prefixed status lines and rate limits
repeats of the same message so a chatty user cannot flood the console.
Everything goes through the standard ``logging`` tree under the
``letter_quiz`` logger, so handlers configured elsewhere still apply.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from typing import DefaultDict

LOGGER_NAME = "letter_quiz"

DEBUG_ENABLED = False
CLEAN_LOGS = True

_rate_limit_seconds = 1.0
_last_message_time: DefaultDict[str, float] = defaultdict(float)
_message_counts: DefaultDict[str, int] = defaultdict(int)
_rate_lock = threading.Lock()

logger = logging.getLogger(LOGGER_NAME)


class _NoiseFilter(logging.Filter):
    NOISY = (
        "Starting new HTTPS connection",
        "Retrying (Retry(",
        "Connection pool is full",
        "Resetting dropped connection",
    )

    def filter(self, rec: logging.LogRecord) -> bool:
        noisy = any(s in rec.getMessage() for s in self.NOISY)
        return DEBUG_ENABLED or not noisy


def configure_logging(*, debug: bool = False, clean_logs: bool = True, rate_limit_seconds: float = 1.0) -> None:
    global DEBUG_ENABLED, CLEAN_LOGS, _rate_limit_seconds
    DEBUG_ENABLED = bool(debug)
    CLEAN_LOGS = bool(clean_logs)
    _rate_limit_seconds = max(0.0, float(rate_limit_seconds))

    logging.basicConfig(
        level=logging.DEBUG if DEBUG_ENABLED else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Logger filters skip records propagated from child loggers, so filter at the handlers.
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, _NoiseFilter) for f in handler.filters):
            handler.addFilter(_NoiseFilter())


def dprint(*args) -> None:
    if DEBUG_ENABLED:
        logger.debug(" ".join(str(arg) for arg in args))


def clean_log(message, emoji: str = "📝", show_always: bool = False, rate_limit: bool = True) -> None:
    """Emoji-prefixed log line with per-message rate limiting."""
    message = str(message)
    if rate_limit and not DEBUG_ENABLED:
        message_key = f"{emoji}_{message[:50]}"
        now = time.time()
        with _rate_lock:
            if now - _last_message_time[message_key] < _rate_limit_seconds:
                _message_counts[message_key] += 1
                return
            suppressed = _message_counts.pop(message_key, 0)
            _last_message_time[message_key] = now
        if suppressed > 1:
            message += f" (suppressed {suppressed} similar messages)"

    level = logging.WARNING if emoji in {"⚠️", "❌", "🚨"} else logging.INFO
    if show_always or CLEAN_LOGS or DEBUG_ENABLED:
        logger.log(level, f"{emoji} {message}")
    else:
        logger.log(level, f"[Info] {message}")


def reset_rate_limits() -> None:
    with _rate_lock:
        _last_message_time.clear()
        _message_counts.clear()


__all__ = ["clean_log", "configure_logging", "dprint", "reset_rate_limits", "logger"]
