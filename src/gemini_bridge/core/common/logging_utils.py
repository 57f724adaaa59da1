"""
Logging utilities for gemini-bridge.

This module provides:
- Redaction of API keys and bearer tokens in log records
- Test/production environment tagging
- Root logger configuration from `LoggingConfig`
"""

from __future__ import annotations

import contextlib
import logging
import os
import re
import sys
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from gemini_bridge.core.config.app_config import LoggingConfig


def _is_running_under_pytest() -> bool:
    return "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST") is not None


def _get_environment_tag() -> str:
    """Get the environment tag for logging.

    Returns:
        'test' if running under pytest, 'prod' otherwise
    """
    return "test" if _is_running_under_pytest() else "prod"


class EnvironmentTaggingFilter(logging.Filter):
    """Logging filter that adds environment tags to log records."""

    def __init__(self) -> None:
        super().__init__()
        self._env_tag = _get_environment_tag()

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.env_tag = self._env_tag
        return True


class EnvironmentTaggingFormatter(logging.Formatter):
    """Logging formatter that includes environment tags."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: Literal["%", "{", "$"] = "%",
    ) -> None:
        if fmt is None:
            fmt = "%(asctime)s [%(levelname)-8s] [%(env_tag)s] %(name)s:%(lineno)d %(message)s"
        super().__init__(fmt, datefmt, style=style)


# Google API keys: "AIza" followed by 35 url-safe characters
GOOGLE_API_KEY_PATTERN = re.compile(r"AIza[0-9A-Za-z_\-]{35}")
# API key carried as a URL query parameter
QUERY_KEY_PATTERN = re.compile(r"([?&]key=)[^&\s]+")
BEARER_TOKEN_PATTERN = re.compile(r"Bearer\s+([a-zA-Z0-9._~+/-]+=*)")


def redact(value: str, mask: str = "***") -> str:
    """Redact a sensitive value, keeping two characters at each end.

    Args:
        value: The value to redact
        mask: The mask to use

    Returns:
        The redacted value
    """
    if not value:
        return value

    if len(value) > 6:
        return f"{value[0:2]}{mask}{value[-2:]}"
    return mask


class ApiKeyRedactionFilter(logging.Filter):
    """Logging filter that redacts known API keys from log records.

    Sanitizes `record.msg` and `record.args` (strings or containers of
    strings), replacing explicit secrets and common token shapes with a mask.
    """

    def __init__(
        self, api_keys: list[str] | set[str] | None = None, mask: str = "***"
    ) -> None:
        super().__init__()
        self.mask = mask
        keys = {k for k in (api_keys or []) if k}
        self.patterns: list[re.Pattern] = []
        if keys:
            # Longest first so overlapping keys are fully masked
            escaped = sorted((re.escape(k) for k in keys), key=len, reverse=True)
            self.patterns.append(re.compile("|".join(escaped)))

        self.patterns.append(GOOGLE_API_KEY_PATTERN)
        self.patterns.append(QUERY_KEY_PATTERN)
        self.patterns.append(BEARER_TOKEN_PATTERN)

    def _sanitize(self, obj: object) -> object:
        if isinstance(obj, str):
            s = obj
            for pat in self.patterns:
                if pat is BEARER_TOKEN_PATTERN:
                    s = pat.sub(f"Bearer {self.mask}", s)
                elif pat is QUERY_KEY_PATTERN:
                    s = pat.sub(rf"\g<1>{self.mask}", s)
                else:
                    s = pat.sub(self.mask, s)
            return s
        if isinstance(obj, dict):
            return {k: self._sanitize(v) for k, v in obj.items()}
        if isinstance(obj, list | tuple):
            sanitized = [self._sanitize(v) for v in obj]
            return type(obj)(sanitized)
        return obj

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            if isinstance(record.msg, str):
                record.msg = self._sanitize(record.msg)  # type: ignore[assignment]

            if record.args:
                if isinstance(record.args, dict):
                    record.args = self._sanitize(record.args)  # type: ignore[assignment]
                elif isinstance(record.args, tuple):
                    record.args = tuple(self._sanitize(a) for a in record.args)

            for attr in ("message", "exc_text", "stack_info"):
                val = getattr(record, attr, None)
                if isinstance(val, str):
                    setattr(record, attr, self._sanitize(val))
        except Exception:
            # Never let logging filtering raise
            return True
        return True


def configure_logging(
    level: int = logging.INFO,
    log_format: str | None = None,
    log_file: str | None = None,
    api_keys: list[str] | None = None,
) -> None:
    """Configure the root logger with environment tagging and key redaction.

    Existing handlers installed by a previous call are replaced, so calling
    this more than once is safe.

    Args:
        level: Logging level
        log_format: Optional log format string
        log_file: Optional log file path
        api_keys: Secrets to mask in addition to the generic patterns
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_gemini_bridge_handler", False):
            root.removeHandler(handler)
            with contextlib.suppress(Exception):
                handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = EnvironmentTaggingFormatter(fmt=log_format)
    tagging = EnvironmentTaggingFilter()
    redaction = ApiKeyRedactionFilter(api_keys)
    for handler in handlers:
        handler._gemini_bridge_handler = True  # type: ignore[attr-defined]
        handler.setFormatter(formatter)
        handler.addFilter(tagging)
        handler.addFilter(redaction)
        root.addHandler(handler)

    root.setLevel(level)


def configure_logging_from_config(
    config: LoggingConfig, api_keys: list[str] | None = None
) -> None:
    """Configure logging from a `LoggingConfig` section."""
    configure_logging(
        level=getattr(logging, config.level.value),
        log_file=config.log_file,
        api_keys=api_keys,
    )
