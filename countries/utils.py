import functools
import logging
import os
import random
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import requests
from django.conf import settings
from requests.exceptions import RequestException

from .errors import SourceUnavailable

logger = logging.getLogger(__name__)

COUNTRIES_SOURCE = 'Countries API'
EXCHANGE_SOURCE = 'Exchange Rates API'

MULTIPLIER_MIN = 1000
MULTIPLIER_MAX = 2000


def _get_json(source, url):
    try:
        resp = requests.get(url, timeout=settings.EXTERNAL_API_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except (RequestException, ValueError) as exc:
        logger.warning("%s request to %s failed: %s", source, url, exc)
        raise SourceUnavailable(source, url, str(exc)) from exc


def fetch_countries():
    url = settings.COUNTRIES_API_URL
    data = _get_json(COUNTRIES_SOURCE, url)
    if not isinstance(data, list):
        logger.warning("%s returned %s instead of a list", COUNTRIES_SOURCE, type(data).__name__)
        raise SourceUnavailable(COUNTRIES_SOURCE, url, "expected a list of countries")
    return data


def fetch_exchange_rates():
    url = settings.EXCHANGE_API_URL
    data = _get_json(EXCHANGE_SOURCE, url)
    # API returns 'rates' mapping
    rates = data.get('rates') if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        logger.warning("%s response has no rates mapping", EXCHANGE_SOURCE)
        raise SourceUnavailable(EXCHANGE_SOURCE, url, "malformed rates response")
    return rates


def fetch_sources():
    """
    Fetch the country catalog and the rate table concurrently.

    Both requests are always issued. The countries failure wins when both
    sources fail.
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix='source-fetch') as pool:
        countries_future = pool.submit(fetch_countries)
        rates_future = pool.submit(fetch_exchange_rates)
        try:
            countries = countries_future.result()
        finally:
            # keep the rates call alive until it settles, whatever happened above
            rates_error = rates_future.exception()
        if rates_error is not None:
            raise rates_error
        return countries, rates_future.result()


def make_multiplier(rng=random):
    return rng.randint(MULTIPLIER_MIN, MULTIPLIER_MAX)


def multiplier_source(seed=None):
    """Return a zero-argument multiplier draw, reproducible when ``seed`` is given."""
    if seed is None:
        return make_multiplier
    return functools.partial(make_multiplier, random.Random(seed))


def get_summary_image_path():
    """Return full path to the summary image, creating the cache directory."""
    path = settings.SUMMARY_CACHE_DIR
    os.makedirs(path, exist_ok=True)
    return os.path.join(path, settings.SUMMARY_IMAGE_NAME)


def get_now():
    """Return current UTC datetime (aware)."""
    return datetime.now(timezone.utc)
