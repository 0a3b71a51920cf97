from .base import *  # noqa
from .base import BASE_DIR
from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK

# Test settings: force SQLite unless a Postgres run is requested explicitly
DEBUG = False

if DB_ENGINE.lower() != "postgres":  # noqa: F405
    # Use a local SQLite database for reliability and speed in tests
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test_db.sqlite3",
        }
    }

# Plain static storage so tests never need a collectstatic manifest
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}
MEDIA_ROOT = BASE_DIR / "test_media"

# Fast hashing for factory users
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

# Slightly relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    **BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
    "user": "10000/min",
    "anon": "10000/min",
    "profile": "10000/min",
    "catalog": "10000/min",
    "catalog_write": "10000/min",
    "loans": "10000/min",
    "loans_write": "10000/min",
    "users": "10000/min",
    "users_write": "10000/min",
}
