"""Numeric tool arguments: defaults, bounds and ToolInputError on junk."""

from __future__ import annotations

from typing import Any

from oddsbridge.errors import ToolInputError


def _missing(value: Any) -> bool:
    return value is None or value == ""


def int_arg(
    args: dict[str, Any], key: str, default: int, maximum: int | None = None, minimum: int = 1
) -> int:
    """Integer argument. Missing takes the default; the result is clamped to [minimum, maximum]."""
    raw = args.get(key)
    if _missing(raw):
        value = default
    else:
        try:
            value = int(float(raw))
        except (TypeError, ValueError, OverflowError):
            raise ToolInputError(f"{key} must be a number, got {raw!r}") from None
    value = max(value, minimum)
    return min(value, maximum) if maximum is not None else value


def float_arg(args: dict[str, Any], key: str, default: float, minimum: float | None = None) -> float:
    """Float argument. Missing takes the default; a minimum clamps from below."""
    raw = args.get(key)
    if _missing(raw):
        value = float(default)
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError, OverflowError):
            raise ToolInputError(f"{key} must be a number, got {raw!r}") from None
    return max(value, minimum) if minimum is not None else value
