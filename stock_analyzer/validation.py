"""
Ticker and request-parameter validation for the API layer.

The provider core trusts its inputs; everything a client sends is checked
here first.
"""
from __future__ import annotations

import enum
import re
from typing import Type, TypeVar

from .core.errors import InvalidInputError

E = TypeVar("E", bound=enum.Enum)

# Letters, digits, dots and hyphens; no leading/trailing separator (005930.KS, BRK.B).
_TICKER_RE = re.compile(r"^[A-Z0-9][A-Z0-9.-]*[A-Z0-9]$")


def normalize_ticker(ticker: str) -> str:
    return ticker.strip().upper()


def validate_ticker(ticker: str) -> bool:
    if not ticker or not 2 <= len(ticker) <= 10:
        return False
    return bool(_TICKER_RE.match(ticker))


def parse_ticker(raw: str) -> str:
    """Normalize and validate, or raise InvalidInputError."""
    if not raw or not raw.strip():
        raise InvalidInputError("Ticker parameter is required")
    ticker = normalize_ticker(raw)
    if not validate_ticker(ticker):
        raise InvalidInputError("Invalid ticker format")
    return ticker


def parse_choice(enum_cls: Type[E], raw: str, label: str) -> E:
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputError(f"Invalid {label}. Use: {allowed}") from None
