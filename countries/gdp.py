"""
Estimated GDP of a country from its population and first currency.

The value is a noisy projection: ``population * multiplier / rate`` with a
multiplier drawn in ``[1000, 2000]`` for every call. Callers inject the draw,
so the estimate is exact under a fixed multiplier and bounded otherwise.
"""
import math
from collections import namedtuple

from .utils import make_multiplier


GdpEstimate = namedtuple("GdpEstimate", ["currency_code", "exchange_rate", "estimated_gdp"])


def first_currency_code(currencies):
    """Return the code of the first currency entry, or None."""
    first = currencies[0] if currencies else None
    if not isinstance(first, dict):
        return None
    code = first.get('code')
    return code if isinstance(code, str) and code else None


def usable_rate(value):
    """Return ``value`` as a float when it is a finite, non-zero rate."""
    if isinstance(value, bool):
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(rate) or rate == 0:
        return None
    return rate


def estimate(population, currencies, rates, multiplier=make_multiplier):
    if not isinstance(currencies, (list, tuple)) or not currencies:
        return GdpEstimate(None, None, 0)

    code = first_currency_code(currencies)
    if code is None or code not in rates:
        return GdpEstimate(code, None, None)

    rate = usable_rate(rates[code])
    if rate is None:
        return GdpEstimate(code, None, None)

    return GdpEstimate(code, rate, population * multiplier() / rate)
