"""
Estimated GDP for a country snapshot.

    estimated_gdp = (population × random(1000–2000)) ÷ exchange_rate

The multiplier stands in for an economic factor neither feed provides, so
the result differs between refreshes. Callers may inject their own
multiplier source.
"""
import math
import random
from typing import Callable, Mapping, NamedTuple, Optional

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000


class GdpEstimate(NamedTuple):
    exchange_rate: Optional[float]
    estimated_gdp: Optional[float]


def random_multiplier() -> int:
    return random.randint(MULTIPLIER_MIN, MULTIPLIER_MAX)


def _usable_rate(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(rate) or rate <= 0:
        return None
    return rate


def estimate(
    population: int,
    currency_code: Optional[str],
    rates: Mapping[str, float],
    multiplier: Callable[[], float] = random_multiplier,
) -> GdpEstimate:
    """
    No currency at all    -> (None, 0.0)
    Unknown or bad rate   -> (None, None)
    Otherwise             -> (rate, population * multiplier / rate)
    """
    if not currency_code:
        return GdpEstimate(None, 0.0)

    rate = _usable_rate(rates.get(currency_code))
    if rate is None:
        return GdpEstimate(None, None)

    return GdpEstimate(rate, (population * multiplier()) / rate)
