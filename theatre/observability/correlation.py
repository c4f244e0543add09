"""
Correlation IDs for cross-tool distributed tracing.

Format: ``corr-`` followed by 16 lowercase hex chars (21 chars total), built
from 8 hex chars of wall-clock milliseconds and 8 hex chars of randomness.

Used for tracing operations across:
- system-emergency-room -> system-operating-theatre
- system-operating-theatre -> personal-sysadmin
- procedure execution chains

The value is process-wide: the first `initialize()` wins and every later call
returns the same value until `reset()`. Carrying the id across process
boundaries (env var, CLI argument) is up to the calling tool.
"""

from __future__ import annotations

import logging
import re
import threading
import time
import uuid
from typing import Any, Optional

from theatre.common.logging import log_event


CORRELATION_ID_PREFIX = "corr-"
CORRELATION_ID_PATTERN = re.compile(r"corr-[a-f0-9]{16}")

logger = logging.getLogger(__name__)


def _timestamp_hex() -> str:
    ms = int(time.time() * 1000)
    return format(ms & 0xFFFFFFFF, "08x")


def _random_hex() -> str:
    return uuid.uuid4().hex[:8]


class CorrelationIdAuthority:
    """
    Sole owner of the process-wide correlation id.

    States: unset (initial) and set(value). `initialize()` only transitions
    unset -> set; `reset()` always returns to unset. The check-and-set and the
    reset are guarded by one lock so concurrent initializers agree on a single
    winner.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    @staticmethod
    def generate() -> str:
        return f"{CORRELATION_ID_PREFIX}{_timestamp_hex()}{_random_hex()}"

    def initialize(self, provided: Optional[str] = None) -> str:
        """
        Adopt `provided` (or a freshly generated id) if nothing is set yet.

        Once set, the call is a no-op and the existing id is returned.
        A malformed `provided` value is still adopted; a warning is logged.
        """
        with self._lock:
            if self._value is not None:
                return self._value
            if provided is None:
                self._value = self.generate()
                origin = "generated"
            else:
                self._value = provided
                origin = "provided"
            value = self._value

        if origin == "provided" and not self.is_valid_format(value):
            log_event(
                logger,
                "correlation.provided_malformed",
                severity="WARNING",
                message="Adopted a correlation id that does not match corr-<16 hex>",
                correlation_id=value,
            )
        log_event(logger, "correlation.initialized", severity="DEBUG", correlation_id=value, origin=origin)
        return value

    def current(self) -> Optional[str]:
        with self._lock:
            return self._value

    def reset(self) -> None:
        with self._lock:
            previous = self._value
            self._value = None
        if previous is not None:
            log_event(logger, "correlation.reset", severity="DEBUG", correlation_id=previous)

    @staticmethod
    def is_valid_format(candidate: Any) -> bool:
        if not isinstance(candidate, str):
            return False
        return CORRELATION_ID_PATTERN.fullmatch(candidate) is not None


_DEFAULT_AUTHORITY = CorrelationIdAuthority()


def default_authority() -> CorrelationIdAuthority:
    return _DEFAULT_AUTHORITY


def generate_correlation_id() -> str:
    return _DEFAULT_AUTHORITY.generate()


def init_correlation_id(provided: Optional[str] = None) -> str:
    return _DEFAULT_AUTHORITY.initialize(provided)


def get_correlation_id() -> Optional[str]:
    return _DEFAULT_AUTHORITY.current()


def reset_correlation_id() -> None:
    """Clear the process-wide id (mainly for test isolation)."""
    _DEFAULT_AUTHORITY.reset()


def is_valid_correlation_id(candidate: Any) -> bool:
    return CorrelationIdAuthority.is_valid_format(candidate)
