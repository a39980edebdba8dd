import logging
from contextlib import contextmanager

from django.db import DatabaseError, transaction
from django.db.models import F, Max
from django.db.models.functions import Lower

from .errors import PersistenceFailed
from .models import Country

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = [
    "capital", "region", "population", "flag_url",
    "currency_code", "exchange_rate", "estimated_gdp",
    "last_refreshed_at",
]


class CountryStore:
    """
    Handle on the countries table.

    Built once per process and handed to whatever needs the table; ``using``
    selects the database alias.
    """

    def __init__(self, using="default"):
        self.using = using

    @property
    def countries(self):
        return Country.objects.using(self.using)

    @contextmanager
    def atomic(self):
        """
        Run the block in one transaction: commit on a clean exit, roll back
        on any exception. Database errors, and values the driver cannot
        bind (out-of-range integers), come out as PersistenceFailed.
        """
        try:
            with transaction.atomic(using=self.using):
                yield self
        except (DatabaseError, OverflowError, ValueError) as exc:
            logger.error("Transaction on %r rolled back", self.using, exc_info=True)
            raise PersistenceFailed(str(exc)) from exc

    def find_by_name(self, name):
        return self.countries.filter(name__iexact=name).first()

    def save_row(self, attrs):
        """Overwrite the row matching ``attrs['name']`` case-insensitively, or insert one."""
        existing = self.find_by_name(attrs["name"])
        if existing is None:
            return self.countries.create(**attrs), True
        for field in MUTABLE_FIELDS:
            setattr(existing, field, attrs[field])
        existing.save(using=self.using, update_fields=MUTABLE_FIELDS)
        return existing, False

    def delete(self, name):
        country = self.find_by_name(name)
        if country is None:
            return False
        country.delete()
        return True

    def count(self):
        return self.countries.count()

    def top_by_gdp(self, limit=5):
        return list(
            self.countries.filter(estimated_gdp__isnull=False)
            .order_by("-estimated_gdp")[:limit]
        )

    def last_refreshed_at(self):
        return self.countries.aggregate(latest=Max("last_refreshed_at"))["latest"]

    def filter(self, region=None, currency=None, sort=None):
        qs = self.countries.all()
        if region:
            qs = qs.filter(region__iexact=region)
        if currency:
            qs = qs.filter(currency_code__iexact=currency)

        if sort == "gdp_desc":
            qs = qs.order_by(F("estimated_gdp").desc(nulls_last=True), "id")
        elif sort == "gdp_asc":
            qs = qs.order_by(F("estimated_gdp").asc(nulls_last=True), "id")
        else:
            qs = qs.order_by(Lower("name"), "id")
        return qs
