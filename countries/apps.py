from django.apps import AppConfig
from django.conf import settings


class CountriesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'countries'

    def ready(self):
        from .refresh import Refresher
        from .store import CountryStore
        from .utils import multiplier_source

        self.store = CountryStore()
        self.refresher = Refresher(self.store, multiplier=multiplier_source(settings.GDP_MULTIPLIER_SEED))
