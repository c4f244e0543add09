"""
Environment-driven settings.

Everything is read at call time (never at import time) so tools can set their
environment before configuring logging.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from theatre.version import VERSION


DEFAULT_SERVICE_NAME = "system-operating-theatre"

_TRUTHY = {"1", "true", "t", "yes", "y", "on"}
_FALSY = {"0", "false", "f", "no", "n", "off"}
_ALLOWED_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _clean(v: object | None, *, max_len: int = 256) -> str:
    s = "" if v is None else str(v)
    s = s.replace("\n", " ").replace("\r", " ").strip()
    return s[:max_len]


def _env_any(env: Mapping[str, str], *names: str, default: str, max_len: int = 256) -> str:
    for name in names:
        s = _clean(env.get(name), max_len=max_len)
        if s:
            return s
    return default


def _parse_bool_env(name: str, default: bool = False, *, env: Optional[Mapping[str, str]] = None) -> bool:
    source = os.environ if env is None else env
    raw = _clean(source.get(name)).lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def normalize_level(level: str | int | None) -> str:
    if isinstance(level, int):
        return normalize_level(logging.getLevelName(level))
    s = _clean(level or "INFO", max_len=16).upper()
    if s == "WARN":
        return "WARNING"
    if s == "FATAL":
        return "CRITICAL"
    if s in _ALLOWED_LEVELS:
        return s
    return "INFO"


@dataclass(frozen=True)
class LoggingSettings:
    service: str = DEFAULT_SERVICE_NAME
    env: str = "unknown"
    version: str = VERSION
    sha: str = "unknown"
    level: str = "INFO"
    capture_warnings: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LoggingSettings":
        source = os.environ if env is None else env
        return cls(
            service=_env_any(source, "SERVICE_NAME", "SERVICE", "OTEL_SERVICE_NAME", default=DEFAULT_SERVICE_NAME, max_len=128),
            env=_env_any(source, "ENVIRONMENT", "ENV", "APP_ENV", default="unknown", max_len=64),
            version=_env_any(source, "THEATRE_VERSION", "APP_VERSION", default=VERSION, max_len=128),
            sha=_env_any(source, "GIT_SHA", "GITHUB_SHA", "COMMIT_SHA", default="unknown", max_len=64),
            level=normalize_level(source.get("LOG_LEVEL")),
            capture_warnings=_parse_bool_env("THEATRE_LOG_CAPTURE_WARNINGS", True, env=source),
        )
