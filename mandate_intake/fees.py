"""Management fee computation for the optional amounts block of a submission."""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable

FEE_RATE = 0.10
MINIMUM_FEE = 100.0


@dataclass(frozen=True)
class Amounts:
    total_assets: float
    fee: float
    net_amount: float

    def to_dict(self) -> Dict[str, float]:
        """Wire form, camel-cased like the rest of the submission payload."""
        d = asdict(self)
        return {
            "totalAssets": d["total_assets"],
            "fee": d["fee"],
            "netAmount": d["net_amount"],
        }


def _as_number(value: Any) -> float:
    """Missing or non-numeric values count as zero."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def calculate_fee(values: Iterable[Any]) -> Amounts:
    """
    Sum the asset values and derive the fee and net amount.

    fee = max(total * 10%, 100); net = total - fee.
    """
    total = sum(_as_number(v) for v in values)
    fee = max(total * FEE_RATE, MINIMUM_FEE)
    return Amounts(total_assets=total, fee=fee, net_amount=total - fee)
