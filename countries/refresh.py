import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.apps import apps
from django.db import DatabaseError

from . import utils
from .errors import ArtifactRenderFailed
from .serializers import validate_catalog
from .summary import generate_summary_image
from .upsert import apply_refresh

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    last_refreshed_at: datetime
    created: int
    updated: int
    duration_seconds: float
    total_countries: Optional[int] = None
    image_path: Optional[str] = None

    @property
    def processed(self):
        return self.created + self.updated


class Refresher:
    """
    Runs the refresh: fetch both sources, validate, upsert, redraw the summary.

    One refresh at a time per process; a second caller waits on ``lock``.
    Source and validation failures happen before the store is touched, a
    persistence failure leaves it rolled back, and a summary failure is only
    logged.
    """

    def __init__(self, store, multiplier=utils.make_multiplier):
        self.store = store
        self.multiplier = multiplier
        self.lock = threading.Lock()

    def refresh(self, multiplier=None):
        with self.lock:
            start = time.monotonic()

            # Step 1: both sources, concurrently
            catalog, rates = utils.fetch_sources()

            # Step 2: reject the whole catalog on any missing required field
            validate_catalog(catalog)

            # Step 3: one transaction for every row
            now = utils.get_now()
            counts = apply_refresh(self.store, catalog, rates, now, multiplier or self.multiplier)

            # Step 4: summary image after commit
            total, image_path = self._write_summary(now)

            result = RefreshResult(
                last_refreshed_at=now,
                created=counts.created,
                updated=counts.updated,
                duration_seconds=round(time.monotonic() - start, 2),
                total_countries=total,
                image_path=image_path,
            )
        logger.info("Refresh finished in %ss: %s countries processed",
                    result.duration_seconds, result.processed)
        return result

    def _write_summary(self, timestamp):
        try:
            total = self.store.count()
            top5 = self.store.top_by_gdp(5)
            return total, generate_summary_image(total, top5, timestamp)
        except (ArtifactRenderFailed, DatabaseError):
            logger.exception("Summary image not updated for refresh at %s", timestamp.isoformat())
            return None, None


def get_refresher():
    return apps.get_app_config("countries").refresher
