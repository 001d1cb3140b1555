# refund_window/core/errors.py
from __future__ import annotations

from typing import Any, Optional


class RefundWindowError(Exception):
    """Base for per-record failures (normalize / validate)."""


class MalformedInputError(RefundWindowError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConfigurationLookupError(RefundWindowError, LookupError):
    def __init__(self, table: str, key: Any):
        super().__init__(f"{table} has no entry for {key!r}")
        self.table = table
        self.key = key


class ParseError(RefundWindowError, ValueError):
    def __init__(self, field: str, value: str, expected: str):
        super().__init__(f"{field}={value!r} does not match {expected!r}")
        self.field = field
        self.value = value
        self.expected = expected
