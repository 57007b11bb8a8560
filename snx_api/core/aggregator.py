"""Decimal arithmetic for metrics derived from several fetched terms.

Token amounts carry 18 decimal places and can reach uint256 magnitude, so
everything here runs in a local Decimal context with 78 significant
digits. Binary floats never enter the computation.
"""

from dataclasses import dataclass, field
from decimal import Context, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, List, Optional, Sequence

from snx_api.core.exceptions import AggregationError

PRECISION = 78

NULL_AS_ZERO = "zero"
NULL_AS_NULL = "null"


@dataclass(frozen=True)
class Term:
    """One signed input to an aggregate."""
    label: str
    value: Optional[Decimal]
    sign: int = 1
    source: Optional[str] = None

    def __post_init__(self):
        if self.sign not in (1, -1):
            raise ValueError(f"Term sign must be +1 or -1, got {self.sign}")


@dataclass
class AggregateResult:
    """Aggregated value with the terms that produced it."""
    value: Decimal
    terms: List[Term] = field(default_factory=list)

    @property
    def provenance(self) -> Dict[str, Optional[str]]:
        return {term.label: term.source for term in self.terms}


def aggregate(terms: Sequence[Term]) -> AggregateResult:
    """
    Sum signed terms exactly.

    Args:
        terms: Terms with sign +1 (added) or -1 (subtracted)

    Returns:
        AggregateResult holding the exact sum

    Raises:
        AggregationError: a term has no value, or there are no terms
    """
    if not terms:
        raise AggregationError("Cannot aggregate an empty term list")

    missing = [term.label for term in terms if term.value is None]
    if missing:
        raise AggregationError(
            f"Missing aggregation terms: {', '.join(missing)}",
            details={"missing": missing},
        )

    with localcontext(Context(prec=PRECISION)):
        total = Decimal(0)
        for term in terms:
            total += term.value if term.sign > 0 else -term.value

    return AggregateResult(value=normalize(total), terms=list(terms))


def normalize(value: Decimal) -> Decimal:
    """Strip trailing zeros without switching to exponent notation for integers."""

    if value == 0:
        return Decimal(0)
    with localcontext(Context(prec=PRECISION)):
        reduced = value.normalize()
        # normalize() turns 100 into 1E+2; quantize back to an integer exponent
        if reduced.as_tuple().exponent > 0:
            return reduced.quantize(Decimal(1))
    return reduced


def parse_decimal(value: Any, null_policy: str = NULL_AS_NULL) -> Optional[Decimal]:
    """
    Convert a warehouse column to Decimal.

    Args:
        value: Raw column value (Decimal, int, str, float or None)
        null_policy: NULL_AS_ZERO coalesces NULL and non-numeric values to 0,
            NULL_AS_NULL returns None for them

    Returns:
        Decimal value, or None under NULL_AS_NULL
    """
    if null_policy not in (NULL_AS_ZERO, NULL_AS_NULL):
        raise ValueError(f"Unknown null policy: {null_policy}")

    fallback = Decimal(0) if null_policy == NULL_AS_ZERO else None

    if value is None or isinstance(value, bool):
        return fallback

    try:
        # str() keeps the repr digits of floats instead of their binary expansion
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return fallback

    if not parsed.is_finite():
        return fallback
    return parsed
