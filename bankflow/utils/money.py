from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return not str(value).strip()


def to_decimal(amount: int | float | str | Decimal) -> Decimal:
    """Normalise a server-side amount to Decimal without touching precision."""
    if isinstance(amount, bool):
        raise ValueError(f"not an amount: {amount!r}")
    try:
        # str() first so floats keep their printed form (0.1 -> Decimal("0.1"))
        return Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"not an amount: {amount!r}") from e
