"""Fixed-point encoding of decimal values."""

from collections.abc import Iterable
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Context, Decimal, InvalidOperation, localcontext

from state_relayer.constants import UINT256_DIGITS
from state_relayer.errors import InvalidNumericInput

# Unbounded precision: multiplication and addition under this context are exact.
EXACT_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, traps=[InvalidOperation])

ZERO = Decimal(0)


def to_decimal(value) -> Decimal:
    """Parse a source value into an exact Decimal. `None` is zero."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InvalidNumericInput(value, "booleans are not amounts")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        # JSON numbers arrive as floats; use their shortest repr, not the binary expansion.
        d = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation as ex:
            raise InvalidNumericInput(value) from ex
    else:
        raise InvalidNumericInput(value, f"unsupported type {type(value).__name__}")
    if not d.is_finite():
        raise InvalidNumericInput(value, "not finite")
    return d


def to_fixed_point(value, decimals: int) -> int:
    """
    Encode `value` as an integer scaled by 10**decimals, rounding toward negative infinity.

    Flooring means the encoded amount never overstates the source amount.
    """
    if decimals < 0:
        raise InvalidNumericInput(decimals, "precision must be >= 0")
    d = to_decimal(value)
    if d.is_zero():
        return 0
    # Digits left of the point once scaled; checked before any big-int arithmetic.
    scaled_digits = d.adjusted() + decimals + 1
    if scaled_digits > UINT256_DIGITS:
        raise InvalidNumericInput(value, f"does not fit in uint256 at precision {decimals}")
    if scaled_digits <= 0:
        return -1 if d.is_signed() else 0
    sign, digits, exponent = d.as_tuple()
    coefficient = int("".join(map(str, digits))) if digits else 0
    if sign:
        coefficient = -coefficient
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10**shift
    # Python floor division rounds toward negative infinity.
    return coefficient // 10**-shift


def from_fixed_point(value: int, decimals: int) -> Decimal:
    """Decode a fixed-point integer back into a Decimal (for display)."""
    return Decimal(value).scaleb(-decimals, context=EXACT_CONTEXT)


def exact_mul(a: Decimal, b: Decimal) -> Decimal:
    with localcontext(EXACT_CONTEXT):
        return a * b


def exact_sum(values: Iterable[Decimal]) -> Decimal:
    total = ZERO
    with localcontext(EXACT_CONTEXT):
        for v in values:
            total += v
    return total


def as_int(value, *, default: int = 0) -> int:
    """Convert a count-like source value to int."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        try:
            if v.startswith("0x"):
                return int(v, 16)
            return int(v)
        except ValueError as ex:
            raise InvalidNumericInput(value, "not an integer") from ex
    d = to_decimal(value)
    if d != d.to_integral_value():
        raise InvalidNumericInput(value, "not an integer")
    return int(d)
