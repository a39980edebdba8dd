"""
Django settings for country_cache project.

Every tunable is read from the environment with a development default, so the
same module serves local runs, tests and production.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-country-cache-dev-key')

DEBUG = os.environ.get('DJANGO_DEBUG', 'true').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',')

# "production" writes the summary image under /tmp, "development" next to the code
ENVIRONMENT = os.environ.get('COUNTRY_CACHE_ENV', 'development')


INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'countries',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'country_cache.urls'

WSGI_APPLICATION = 'country_cache.wsgi.application'

APPEND_SLASH = False


DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('COUNTRY_CACHE_DB_PATH', str(BASE_DIR / 'data.sqlite3')),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'UTC'

USE_I18N = False

USE_TZ = True


REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_PARSER_CLASSES': ['rest_framework.parsers.JSONParser'],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
}


# External sources
COUNTRIES_API_URL = os.environ.get(
    'COUNTRIES_API_URL',
    'https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies',
)
EXCHANGE_API_URL = os.environ.get('EXCHANGE_API_URL', 'https://open.er-api.com/v6/latest/USD')
EXTERNAL_API_TIMEOUT = float(os.environ.get('EXTERNAL_API_TIMEOUT', '15'))

# Summary image
SUMMARY_CACHE_DIR = os.environ.get(
    'COUNTRY_CACHE_DIR',
    '/tmp/cache' if ENVIRONMENT == 'production' else str(BASE_DIR / 'cache'),
)
SUMMARY_IMAGE_NAME = 'summary.png'

# Fixed seed for the GDP multiplier; unset means system randomness
GDP_MULTIPLIER_SEED = os.environ.get('GDP_MULTIPLIER_SEED')


LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s [%(name)s] %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'countries': {
            'handlers': ['console'],
            'level': os.environ.get('COUNTRY_CACHE_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
