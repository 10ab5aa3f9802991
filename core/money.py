from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert Numeric/float/None to Decimal safely."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def q2(value) -> Decimal:
    """Round to 2 decimals, half-up (money and percentages)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(part, base) -> Decimal:
    """part / base * 100, or 0 when base is not positive."""
    base = to_decimal(base)
    if base <= 0:
        return ZERO
    return q2(to_decimal(part) / base * HUNDRED)
