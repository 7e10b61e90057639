"""
Structured Logging - structlog on top of the stdlib logging tree.

Console output by default (JSON on request), optional rotating file output,
and a processor that masks credentials before anything is rendered.
"""

from __future__ import annotations

import logging
import re
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

import structlog


# ---------------------------------------------------------------------------
# Sensitive Data Filter
# ---------------------------------------------------------------------------

_SENSITIVE_KEYS = ("api_key", "signature", "private", "secret", "token", "password")

# Header dumps carry the key/signature as values, not as keyword names.
_HEADER_RE = re.compile(r"(x-(?:api-key|signature)['\"]?\s*[:=]\s*['\"]?)([A-Za-z0-9+/=_-]{8,})")


def _is_sensitive(key: str) -> bool:
    k = str(key).lower().replace("-", "_")
    return any(s in k for s in _SENSITIVE_KEYS)


def _mask(value: str) -> str:
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "****"


def _scrub_value(v: Any) -> Any:
    if isinstance(v, str):
        return _HEADER_RE.sub(lambda m: m.group(1) + _mask(m.group(2)), v)
    if isinstance(v, dict):
        return {k: _mask(str(val)) if _is_sensitive(k) else _scrub_value(val) for k, val in v.items()}
    if isinstance(v, (list, tuple)):
        t = [_scrub_value(x) for x in v]
        return tuple(t) if isinstance(v, tuple) else t
    return v


def _mask_sensitive(_, __, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask sensitive data in log output (API keys, signatures, private keys)."""
    for key in list(event_dict.keys()):
        if _is_sensitive(key):
            event_dict[key] = _mask(str(event_dict[key]))
        else:
            event_dict[key] = _scrub_value(event_dict[key])
    return event_dict


# ---------------------------------------------------------------------------
# Performance Timer
# ---------------------------------------------------------------------------

class PerformanceTimer:
    """Context manager for measuring and logging operation duration."""

    def __init__(self, logger: Any, operation: str, **kwargs):
        self.logger = logger
        self.operation = operation
        self.kwargs = kwargs
        self.start_time: float = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Failures belong to the caller; only completed operations are timed.
        if exc_type is None:
            elapsed = (time.perf_counter() - self.start_time) * 1000  # ms
            self.logger.debug(
                f"{self.operation} completed",
                duration_ms=round(elapsed, 2),
                **self.kwargs
            )
        return False


# ---------------------------------------------------------------------------
# Logger Setup
# ---------------------------------------------------------------------------

def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    json_output: bool = False,
) -> None:
    """
    Configure the structured logging system.

    Sets up:
    - Console output with colors (or JSON)
    - Optional rotating file output under ``log_dir``
    - Credential masking on every event
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / "robincrypto.log", encoding="utf-8",
            maxBytes=10 * 1024 * 1024, backupCount=3,
        )
        file_handler.setLevel(level)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Close and remove existing handlers to avoid duplicates and FD leaks
    for h in root_logger.handlers[:]:
        h.close()
        root_logger.removeHandler(h)
    for h in handlers:
        root_logger.addHandler(h)

    # httpx logs full request lines at INFO; keep warnings/errors only.
    for noisy in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _mask_sensitive,
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty(), pad_event=40)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    for handler in root_logger.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = "robincrypto") -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance with the given name."""
    return structlog.get_logger(name)


def log_performance(logger: Any, operation: str, **kwargs) -> PerformanceTimer:
    """Create a performance timing context manager."""
    return PerformanceTimer(logger, operation, **kwargs)
