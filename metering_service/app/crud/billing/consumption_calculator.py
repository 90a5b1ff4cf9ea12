import math
from typing import Any, Optional

from pydantic import BaseModel

from ...enum.billing_enum import ConsumptionBasis


class ConsumptionResult(BaseModel):
    units: float
    amount: float
    basis: ConsumptionBasis
    rolled_back: bool = False


def safe_number(value: Any) -> float:
    """Coerce anything to a finite float, 0.0 when that is not possible."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def calculate_consumption(
    new_reading_value: Any,
    previous_reading_value: Any,
    rate_per_unit: Any,
    units_override: Any = None,
    analyzer_consumed_units: Any = None,
) -> ConsumptionResult:
    new_value = safe_number(new_reading_value)
    previous = safe_number(previous_reading_value)
    rate = safe_number(rate_per_unit)

    if units_override is not None:
        units = safe_number(units_override)
        basis = ConsumptionBasis.override
    elif analyzer_consumed_units is not None:
        units = safe_number(analyzer_consumed_units)
        basis = ConsumptionBasis.analyzer
    else:
        # no rollover handling: a lower reading bills nothing
        units = max(0.0, new_value - previous)
        basis = ConsumptionBasis.delta

    return ConsumptionResult(
        units=units,
        amount=units * rate,
        basis=basis,
        rolled_back=new_value < previous,
    )
