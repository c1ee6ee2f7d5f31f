"""Error kinds raised by position accounting and fixed-point math."""

from __future__ import annotations

from enum import Enum

_ERROR_CODE_OFFSET = 6000


class ErrorKind(Enum):
    """Every failure the position program can report, with its message."""

    OVERFLOW = "Math overflow"
    UNDERFLOW = "Math underflow"
    DIVISION_BY_ZERO = "Division by zero"
    INVALID_LEVERAGE = "Invalid leverage"
    LEVERAGE_EXCEEDED = "Leverage exceeded for tier"
    INVALID_SIZE = "Invalid position size"
    INVALID_AMOUNT = "Invalid amount"
    SYMBOL_TOO_LONG = "Symbol too long"
    INSUFFICIENT_MARGIN_FOR_INCREASE = "Insufficient margin for increase"
    MAINTENANCE_BREACH = "Post-removal margin would breach maintenance"
    INVALID_STATE = "Invalid state"

    @property
    def message(self) -> str:
        return self.value

    @property
    def code(self) -> int:
        """Numeric code; kinds are numbered in declaration order from 6000."""
        return _ERROR_CODE_OFFSET + list(ErrorKind).index(self)


class PerpError(Exception):
    """Raised when a position operation is rejected."""

    def __init__(self, kind: ErrorKind) -> None:
        super().__init__(kind.message)
        self.kind = kind

    @property
    def code(self) -> int:
        return self.kind.code

    def __repr__(self) -> str:
        return f"PerpError({self.kind.name})"