from __future__ import annotations

import uuid
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
ZERO = Decimal("0")
MM_PER_CM = Decimal("10")
MM_PER_M = Decimal("1000")
MM3_PER_M3 = Decimal("1000000000")
CM2_PER_M2 = Decimal("10000")
CM3_PER_M3 = Decimal("1000000")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely; None becomes zero."""
    if val is None:
        return ZERO
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def money(amount) -> Decimal:
    """Quantize an amount to cents."""
    return d(amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def ceil_int(amount) -> int:
    """Round a Decimal amount up to the next whole number and return it as int."""
    return int(d(amount).to_integral_value(rounding=ROUND_CEILING))


def new_id() -> str:
    return str(uuid.uuid4())
