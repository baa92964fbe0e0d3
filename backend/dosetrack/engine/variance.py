"""
Dose variance arithmetic.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

PERCENT_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class Variance:
    has_variance: bool
    amount: Optional[Decimal]
    percentage: Optional[Decimal]


def compute_variance(
    actual: Decimal,
    expected: Optional[Decimal],
    tolerance: Union[Decimal, float, str] = Decimal("0.01"),
) -> Variance:
    """
    Signed difference between an actual and an expected dose.

    ``has_variance`` uses a fixed tolerance so representation noise does not
    flag a dose. The percentage is omitted when nothing (or zero) was
    expected.
    """
    if expected is None:
        return Variance(has_variance=False, amount=None, percentage=None)

    if not isinstance(tolerance, Decimal):
        tolerance = Decimal(str(tolerance))

    amount = actual - expected
    percentage = None
    if expected != 0:
        percentage = (amount / expected * 100).quantize(PERCENT_PLACES)
    return Variance(
        has_variance=abs(amount) > tolerance,
        amount=amount,
        percentage=percentage,
    )
