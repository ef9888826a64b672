# courier_core/modules/orders/pricing.py
"""
Delivery cost computation.

The cost is derived once, when the order is confirmed, and frozen on the
order row. It is a pure function of distance, weight bucket, fragility and
speed so it can be re-derived at any time for checks and quotes.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from courier_core.shared.schemas.enums import WeightBucket, DeliverySpeed

BASE_FARE = Decimal("5.00")
PER_KM_RATE = Decimal("1.20")
FRAGILE_SURCHARGE = Decimal("5.00")
FAST_SPEED_MULTIPLIER = Decimal("1.5")

# Matches the Numeric(10, 3) distance column
DISTANCE_PRECISION = Decimal("0.001")

WEIGHT_MULTIPLIERS = {
    WeightBucket.UNDER_5KG: Decimal("1.0"),
    WeightBucket.FROM_5_TO_20KG: Decimal("1.5"),
    WeightBucket.FROM_20_TO_50KG: Decimal("2.0"),
    WeightBucket.OVER_50KG: Decimal("3.0"),
}

FAST_SPEEDS = {DeliverySpeed.EXPRESS, DeliverySpeed.SAME_DAY}


def _to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 10.1 from turning into 10.0999999...
    return Decimal(str(value))


def quantize_distance(value: Union[Decimal, float, int, str]) -> Decimal:
    """Round a distance to the precision it is stored with"""
    return _to_decimal(value).quantize(DISTANCE_PRECISION, rounding=ROUND_HALF_UP)


def compute_cost(
    distance_km: Union[Decimal, float, int, str],
    weight: Union[WeightBucket, str],
    fragile: bool,
    speed: Union[DeliverySpeed, str],
) -> Decimal:
    """Return the delivery cost for the given route and package.

    >>> compute_cost(10, "< 5kg", False, "Standard")
    Decimal('17.000')
    """
    distance = quantize_distance(distance_km)
    if distance < 0:
        raise ValueError("distance_km cannot be negative")

    weight = WeightBucket(weight)
    speed = DeliverySpeed(speed)

    cost = (BASE_FARE + distance * PER_KM_RATE) * WEIGHT_MULTIPLIERS[weight]
    if fragile:
        cost += FRAGILE_SURCHARGE
    if speed in FAST_SPEEDS:
        cost *= FAST_SPEED_MULTIPLIER
    return cost.quantize(Decimal("0.001"))
