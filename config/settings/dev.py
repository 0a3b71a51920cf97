from decouple import config as _config

from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK
from .base import *  # noqa

DEBUG = True

# In dev, allow the browsable API and relaxed CORS
CORS_ALLOW_ALL_ORIGINS = True

# Optional Redis cache for local parity (throttle counters live in the cache)

_REDIS_URL = _config("REDIS_URL", default="")
if _REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": _REDIS_URL,
        }
    }
    SESSION_ENGINE = "django.contrib.sessions.backends.cached_db"

# DRF throttling scopes for loans and catalog endpoints in development
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
_rates = {**BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {})}
_rates.update(
    {
        # Use minute-based units consistent with base; reads > writes
        "catalog": "240/min",
        "catalog_write": "120/min",
        "loans": "120/min",
        "loans_write": "60/min",
    }
)
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = _rates

# Verbose loan and catalog events on the console
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"console": {"class": "logging.StreamHandler"}},
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "logistics": {
            "handlers": ["console"],
            "level": _config("LOGISTICS_LOG_LEVEL", default="DEBUG"),
            "propagate": False,
        },
    },
}
