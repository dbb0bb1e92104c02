"""
Lenient field coercion.

Turns loosely-typed JSON values into strongly-typed fields. Every target
type has one ordered tuple of attempts; the first attempt that produces a
value wins, and a value no attempt accepts is a failure. Attempts never
raise.

Accepted representations:
1. Native numbers - ints, exact decimals and finite floats
2. Numeric text in a fixed, locale-independent format
3. Nothing else - booleans, objects, arrays and null always fail
"""

import json
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

T = TypeVar("T")

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Largest magnitude and precision an exact decimal field may carry
DECIMAL_MAX = Decimal("79228162514264337593543950335")
DECIMAL_MAX_DIGITS = 29
DECIMAL_MAX_SCALE = 28

_INTEGER_TEXT = re.compile(r"\s*[+-]?[0-9]+\s*", re.ASCII)
_DECIMAL_TEXT = re.compile(r"\s*([+-]?)([0-9][0-9,]*)?(?:\.([0-9]*))?\s*", re.ASCII)


@dataclass(frozen=True)
class Coerced(Generic[T]):
    """Outcome of a single coercion: a value or a failure reason."""
    value: Optional[T] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: T) -> "Coerced[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str) -> "Coerced[T]":
        return cls(reason=reason)


Attempt = Callable[[Any], Optional[T]]


def _is_native_int(raw: Any) -> bool:
    # bool is an int subclass but never a count
    return isinstance(raw, int) and not isinstance(raw, bool)


def _in_int32(value: int) -> Optional[int]:
    if INT32_MIN <= value <= INT32_MAX:
        return value
    return None


def _integral(value: Decimal) -> Optional[int]:
    # range first; int() of a huge exponent is expensive
    if not value.is_finite() or not INT32_MIN <= value <= INT32_MAX:
        return None
    if value != value.to_integral_value():
        return None
    return int(value)


def fits_decimal(value: Decimal) -> bool:
    """Whether a decimal is finite, in range and exactly representable.
    
    At most 29 significant digits and 28 fractional digits, ignoring
    trailing zeros, and no larger in magnitude than ``DECIMAL_MAX``.
    """
    if not value.is_finite() or value.copy_abs() > DECIMAL_MAX:
        return False
    _, digits, exponent = value.as_tuple()
    stripped = len(digits)
    while stripped and digits[stripped - 1] == 0:
        stripped -= 1
    if stripped == 0:
        return True
    return stripped <= DECIMAL_MAX_DIGITS and -(exponent + len(digits) - stripped) <= DECIMAL_MAX_SCALE


def _bounded(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None or not fits_decimal(value):
        return None
    return value


def _parse_decimal_text(raw: Any) -> Optional[Decimal]:
    """Parse text like ``" -1,250.5 "`` into an exact decimal."""
    if not isinstance(raw, str):
        return None
    match = _DECIMAL_TEXT.fullmatch(raw)
    if match is None:
        return None
    sign, whole, fraction = match.groups()
    if not whole and not fraction:
        return None
    digits = (whole or "0").replace(",", "")
    if fraction:
        digits = f"{digits}.{fraction}"
    try:
        return Decimal(f"{sign}{digits}")
    except InvalidOperation:
        return None


# Integer attempts

def _int_from_int(raw: Any) -> Optional[int]:
    if not _is_native_int(raw):
        return None
    return _in_int32(raw)


def _int_from_decimal(raw: Any) -> Optional[int]:
    if not isinstance(raw, Decimal):
        return None
    return _integral(raw)


def _int_from_float(raw: Any) -> Optional[int]:
    if not isinstance(raw, float) or not math.isfinite(raw) or not raw.is_integer():
        return None
    return _in_int32(int(raw))


def _int_from_integer_text(raw: Any) -> Optional[int]:
    if not isinstance(raw, str) or _INTEGER_TEXT.fullmatch(raw) is None:
        return None
    return _integral(Decimal(raw.strip()))


def _int_from_decimal_text(raw: Any) -> Optional[int]:
    value = _parse_decimal_text(raw)
    if value is None:
        return None
    return _integral(value)


INTEGER_ATTEMPTS: Sequence[Attempt] = (
    _int_from_int,
    _int_from_decimal,
    _int_from_float,
    _int_from_integer_text,
    _int_from_decimal_text,
)


# Decimal attempts

def _decimal_from_int(raw: Any) -> Optional[Decimal]:
    if not _is_native_int(raw):
        return None
    return _bounded(Decimal(raw))


def _decimal_from_decimal(raw: Any) -> Optional[Decimal]:
    if not isinstance(raw, Decimal):
        return None
    return _bounded(raw)


def _decimal_from_float(raw: Any) -> Optional[Decimal]:
    if not isinstance(raw, float) or not math.isfinite(raw):
        return None
    return _bounded(Decimal(repr(raw)))


def _decimal_from_text(raw: Any) -> Optional[Decimal]:
    return _bounded(_parse_decimal_text(raw))


DECIMAL_ATTEMPTS: Sequence[Attempt] = (
    _decimal_from_int,
    _decimal_from_decimal,
    _decimal_from_float,
    _decimal_from_text,
)


def _coerce(raw: Any, attempts: Sequence[Attempt], reason: str) -> Coerced:
    for attempt in attempts:
        value = attempt(raw)
        if value is not None:
            return Coerced.success(value)
    return Coerced.failure(reason)


def coerce_int(raw: Any) -> Coerced[int]:
    """Coerce a JSON value to a 32-bit signed integer.
    
    Fractional and out-of-range values fail; nothing is truncated
    or wrapped.
    """
    return _coerce(raw, INTEGER_ATTEMPTS, f"not an integer: {raw!r}")


def coerce_decimal(raw: Any) -> Coerced[Decimal]:
    """Coerce a JSON value to an exact decimal.
    
    Values that do not fit (see ``fits_decimal``) fail rather than
    being rounded.
    """
    return _coerce(raw, DECIMAL_ATTEMPTS, f"not a decimal: {raw!r}")


def as_text(raw: Any) -> str:
    """Render a non-null JSON value as text.
    
    Strings are returned verbatim, other scalars in their JSON spelling
    and containers as compact JSON.
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, Decimal)):
        return str(raw)
    return json.dumps(raw, separators=(",", ":"), default=str, ensure_ascii=False)


def coerce_customer_id(raw: Any) -> Coerced[str]:
    """Coerce a CustomerId value; null and blank identifiers fail."""
    if raw is None:
        return Coerced.failure("Missing CustomerId")
    text = as_text(raw)
    if not text.strip():
        return Coerced.failure("Empty CustomerId")
    return Coerced.success(text)
