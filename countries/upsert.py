"""
Write a validated catalog into the store in one transaction.

Rows are matched by name case-insensitively: a known name has every mutable
field overwritten and keeps its id, an unknown name gets a new row. Records
are written in catalog order and any failure rolls the whole batch back.
"""
import logging
from dataclasses import dataclass

from . import gdp
from .utils import make_multiplier

logger = logging.getLogger(__name__)


@dataclass
class UpsertCounts:
    created: int = 0
    updated: int = 0

    @property
    def processed(self):
        return self.created + self.updated


def coerce_population(value):
    """Population as a non-negative int; unparseable values become 0."""
    if isinstance(value, bool):
        return 0
    try:
        population = int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(population, 0)


def _text(value):
    return value if isinstance(value, str) and value else None


def build_row(record, rates, timestamp, multiplier=make_multiplier):
    population = coerce_population(record.get("population"))
    estimate = gdp.estimate(population, record.get("currencies"), rates, multiplier)
    return {
        "name": str(record["name"]),
        "capital": _text(record.get("capital")),
        "region": _text(record.get("region")),
        "population": population,
        "flag_url": _text(record.get("flag")),
        "currency_code": estimate.currency_code,
        "exchange_rate": estimate.exchange_rate,
        "estimated_gdp": estimate.estimated_gdp,
        "last_refreshed_at": timestamp,
    }


def apply_refresh(store, catalog, rates, timestamp, multiplier=make_multiplier):
    counts = UpsertCounts()
    with store.atomic():
        for record in catalog:
            _, created = store.save_row(build_row(record, rates, timestamp, multiplier))
            if created:
                counts.created += 1
            else:
                counts.updated += 1
    logger.info("Upserted %s countries (%s new, %s updated)",
                counts.processed, counts.created, counts.updated)
    return counts
