from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Expected failure modes of core mutations."""

    NOT_FOUND = "not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ALREADY_MAXED = "already_maxed"


class InvalidDecimalError(ValueError):
    """Raised when a value cannot be parsed as a finite decimal."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid decimal value: {value!r}")
        self.value = value
