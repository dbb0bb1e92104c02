"""
Unit tests for field coercion.

Tests accepted representations, rejection of other kinds, and range checks.
"""

from decimal import Decimal

import pytest

from usage_invoicing.core.coercion import (
    DECIMAL_MAX,
    INT32_MAX,
    INT32_MIN,
    Coerced,
    as_text,
    coerce_customer_id,
    coerce_decimal,
    coerce_int,
)


class TestCoerced:
    """Test the coercion result type."""
    
    def test_success_carries_value(self):
        result = Coerced.success(0)
        assert result.ok
        assert result.value == 0
    
    def test_failure_carries_reason(self):
        result = Coerced.failure("bad")
        assert not result.ok
        assert result.reason == "bad"
        assert result.value is None


class TestCoerceInt:
    """Test integer coercion."""
    
    def test_native_int(self):
        assert coerce_int(250).value == 250
    
    def test_integer_text(self):
        """Verify "250" coerces to 250."""
        assert coerce_int("250").value == 250
    
    def test_integer_text_with_sign_and_whitespace(self):
        assert coerce_int("  -42 ").value == -42
        assert coerce_int("+7").value == 7
    
    def test_integral_decimal_text(self):
        """Verify "12.0" coerces via decimal parse to 12."""
        assert coerce_int("12.0").value == 12
    
    def test_grouped_decimal_text(self):
        assert coerce_int("1,000").value == 1000
    
    def test_fractional_text_rejected(self):
        """Verify "12.5" is rejected rather than truncated."""
        assert not coerce_int("12.5").ok
    
    def test_non_numeric_text_rejected(self):
        assert not coerce_int("abc").ok
        assert not coerce_int("").ok
        assert not coerce_int("   ").ok
    
    def test_exponent_and_special_text_rejected(self):
        for text in ("1e3", "NaN", "Infinity", "0x10", "1_000"):
            assert not coerce_int(text).ok, text
    
    def test_integral_native_decimal(self):
        assert coerce_int(Decimal("12.0")).value == 12
    
    def test_fractional_native_decimal_rejected(self):
        assert not coerce_int(Decimal("12.5")).ok
    
    def test_native_float(self):
        assert coerce_int(3.0).value == 3
        assert not coerce_int(3.5).ok
        assert not coerce_int(float("nan")).ok
        assert not coerce_int(float("inf")).ok
    
    def test_range_boundaries(self):
        assert coerce_int(INT32_MAX).value == INT32_MAX
        assert coerce_int(INT32_MIN).value == INT32_MIN
    
    def test_overflow_rejected(self):
        """Verify overflow is a rejection, never wraparound."""
        assert not coerce_int(INT32_MAX + 1).ok
        assert not coerce_int(INT32_MIN - 1).ok
        assert not coerce_int("2147483648").ok
        assert not coerce_int("2147483648.0").ok
        assert not coerce_int(Decimal("1e10")).ok
    
    def test_huge_exponent_rejected(self):
        """Verify exponent-form magnitudes fail on the range check alone."""
        assert not coerce_int(Decimal("1E+200000000")).ok
        assert not coerce_int(Decimal("-1E+200000000")).ok
        assert not coerce_int(Decimal("1E+100000")).ok
    
    def test_long_integer_text_rejected(self):
        assert not coerce_int("1" + "0" * 5000).ok
    
    def test_other_kinds_rejected(self):
        for raw in (True, False, None, {}, [], {"n": 1}, [1]):
            assert not coerce_int(raw).ok, raw
    
    def test_negative_values_pass_through(self):
        assert coerce_int(-5).value == -5


class TestCoerceDecimal:
    """Test decimal coercion."""
    
    def test_native_int(self):
        result = coerce_decimal(10)
        assert result.value == Decimal("10")
        assert isinstance(result.value, Decimal)
    
    def test_native_decimal_kept_exact(self):
        assert coerce_decimal(Decimal("0.1")).value == Decimal("0.1")
    
    def test_native_float_uses_shortest_repr(self):
        assert coerce_decimal(0.1).value == Decimal("0.1")
    
    def test_decimal_text(self):
        assert coerce_decimal("7.25").value == Decimal("7.25")
        assert coerce_decimal(" -1,250.5 ").value == Decimal("-1250.5")
        assert coerce_decimal(".5").value == Decimal("0.5")
        assert coerce_decimal("3.").value == Decimal("3")
    
    def test_invalid_text_rejected(self):
        for text in ("abc", "", ".", "1.2.3", "1e3", "NaN", "-Infinity", "1 000"):
            assert not coerce_decimal(text).ok, text
    
    def test_out_of_range_rejected(self):
        for raw in (
            Decimal("1E+1000001"),
            Decimal("79228162514264337593543950336"),
            "-79228162514264337593543950336",
            10 ** 30,
            1e300,
        ):
            assert not coerce_decimal(raw).ok, raw
    
    def test_range_boundary_accepted(self):
        assert coerce_decimal(DECIMAL_MAX).value == DECIMAL_MAX
        assert coerce_decimal("-79228162514264337593543950335").value == -DECIMAL_MAX
    
    def test_excess_precision_rejected(self):
        """Verify values needing more than 28 digits fail instead of rounding."""
        assert not coerce_decimal("9" * 40 + ".123").ok
        assert not coerce_decimal("0." + "1" * 29).ok
        assert not coerce_decimal(Decimal("1E-29")).ok
    
    def test_trailing_zeros_do_not_count_as_precision(self):
        assert coerce_decimal(Decimal("1E-28")).ok
        assert coerce_decimal("1.5" + "0" * 40).value == Decimal("1.5")
    
    def test_non_finite_rejected(self):
        assert not coerce_decimal(Decimal("NaN")).ok
        assert not coerce_decimal(float("inf")).ok
    
    def test_other_kinds_rejected(self):
        for raw in (True, None, {}, []):
            assert not coerce_decimal(raw).ok, raw


class TestCustomerId:
    """Test CustomerId coercion."""
    
    def test_plain_id_accepted(self):
        assert coerce_customer_id("C1").value == "C1"
    
    def test_id_is_not_trimmed(self):
        assert coerce_customer_id(" C1 ").value == " C1 "
    
    def test_whitespace_id_rejected(self):
        result = coerce_customer_id("  ")
        assert not result.ok
        assert result.reason == "Empty CustomerId"
    
    def test_null_id_rejected(self):
        result = coerce_customer_id(None)
        assert result.reason == "Missing CustomerId"
    
    def test_numeric_id_rendered_as_text(self):
        assert coerce_customer_id(123).value == "123"
    
    def test_as_text_renders_json_kinds(self):
        assert as_text(True) == "true"
        assert as_text(Decimal("1.5")) == "1.5"
        assert as_text({"a": 1}) == '{"a":1}'
        assert as_text([1, 2]) == "[1,2]"
