from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number, digits: int = 0) -> Number:
    """Round with halves going up (12.5 -> 13, 4.25 -> 4.3, -2.5 -> -2).

    Scores, rates and averages are published with this rule; the builtin
    ``round`` sends halves to the even neighbour instead.
    """
    scale = Decimal(10) ** digits
    scaled = (Decimal(str(value)) * scale + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR)
    if digits <= 0:
        return int(scaled / scale)
    return float(scaled / scale)
