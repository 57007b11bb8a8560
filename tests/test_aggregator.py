"""Tests for exact Decimal aggregation."""

from decimal import Decimal

import pytest

from snx_api.core.aggregator import (
    NULL_AS_NULL,
    NULL_AS_ZERO,
    Term,
    aggregate,
    normalize,
    parse_decimal,
)
from snx_api.core.exceptions import AggregationError
from snx_api.sources.ledger import from_fixed_point

UINT256_MAX = 2 ** 256 - 1


class TestAggregate:
    """Test aggregate."""

    def test_signed_sum(self):
        result = aggregate([
            Term("total", Decimal("100")),
            Term("escrowA", Decimal("30"), -1),
            Term("escrowB", Decimal("20"), -1),
        ])
        assert result.value == Decimal("50")
        assert str(result.value) == "50"

    def test_no_precision_loss_at_18_decimals(self):
        result = aggregate([
            Term("total", Decimal("100.000000000000000001")),
            Term("escrow", Decimal("0.000000000000000001"), -1),
        ])
        assert str(result.value) == "100"

    def test_uint256_magnitude_is_exact(self):
        result = aggregate([
            Term("total", from_fixed_point(UINT256_MAX)),
            Term("dust", from_fixed_point(1), -1),
        ])
        assert result.value == from_fixed_point(UINT256_MAX - 1)
        assert len(result.value.as_tuple().digits) == 78

    def test_floats_would_have_lost_the_answer(self):
        # 0.1 + 0.2 - 0.3 is not zero in binary floating point
        result = aggregate([
            Term("a", Decimal("0.1")),
            Term("b", Decimal("0.2")),
            Term("c", Decimal("0.3"), -1),
        ])
        assert result.value == 0

    def test_missing_term_fails_instead_of_treating_as_zero(self):
        with pytest.raises(AggregationError) as exc_info:
            aggregate([
                Term("total", Decimal("100")),
                Term("escrow", None, -1),
            ])
        assert exc_info.value.details["missing"] == ["escrow"]

    def test_empty_terms(self):
        with pytest.raises(AggregationError):
            aggregate([])

    def test_invalid_sign(self):
        with pytest.raises(ValueError):
            Term("total", Decimal("1"), 2)

    def test_provenance(self):
        result = aggregate([
            Term("totalSupply", Decimal("10"), source="0xabc"),
            Term("escrow", Decimal("1"), -1, source="0xdef"),
        ])
        assert result.provenance == {"totalSupply": "0xabc", "escrow": "0xdef"}


class TestNormalize:
    """Test normalize."""

    @pytest.mark.parametrize("raw,expected", [
        ("100.000", "100"),
        ("1E+2", "100"),
        ("0E-18", "0"),
        ("723907.949250420000000000", "723907.94925042"),
        ("0.000000000000000001", "1E-18"),
    ])
    def test_normalize(self, raw, expected):
        assert str(normalize(Decimal(raw))) == expected

    def test_small_values_keep_plain_notation(self):
        assert format(normalize(Decimal("0.000000000000000001")), "f") == "0.000000000000000001"


class TestParseDecimal:
    """Test warehouse value parsing under both NULL policies."""

    def test_numeric_inputs(self):
        assert parse_decimal(Decimal("1.5")) == Decimal("1.5")
        assert parse_decimal(3) == Decimal(3)
        assert parse_decimal("2.25") == Decimal("2.25")
        assert parse_decimal(0.1) == Decimal("0.1")

    def test_null_as_null(self):
        assert parse_decimal(None, NULL_AS_NULL) is None
        assert parse_decimal("n/a", NULL_AS_NULL) is None
        assert parse_decimal(float("nan"), NULL_AS_NULL) is None

    def test_null_as_zero(self):
        assert parse_decimal(None, NULL_AS_ZERO) == Decimal(0)
        assert parse_decimal("", NULL_AS_ZERO) == Decimal(0)

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            parse_decimal(1, "ignore")
