from django.db import models
from django.db.models.functions import Lower


class Country(models.Model):
    # id: auto-generated, never reassigned by a refresh
    name = models.CharField(max_length=200)
    capital = models.CharField(max_length=200, null=True, blank=True)
    region = models.CharField(max_length=100, null=True, blank=True)
    population = models.BigIntegerField(default=0)
    # currency_code: first currency of the source record, null when it has none
    currency_code = models.CharField(max_length=10, null=True, blank=True)
    # exchange_rate: USD-relative; null when unknown, non-finite or zero
    exchange_rate = models.FloatField(null=True, blank=True)
    # estimated_gdp: recomputed on every refresh; 0 without currency, null without rate
    estimated_gdp = models.FloatField(null=True, blank=True)
    flag_url = models.URLField(max_length=500, null=True, blank=True)
    # last_refreshed_at: shared by every row written in the same refresh
    last_refreshed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(Lower('name'), name='country_name_ci_unique'),
        ]
        verbose_name_plural = 'countries'

    def __str__(self):
        return self.name
