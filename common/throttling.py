"""Scoped throttle shared by the logistics APIs.

Reads the rate for a scope from Django settings at request time so tests
using ``override_settings`` or the ``settings`` fixture change rates
without reloading DRF's cached api_settings.
"""

from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class SettingsScopedRateThrottle(ScopedRateThrottle):
    def get_rate(self):
        rf = getattr(settings, "REST_FRAMEWORK", {})
        rates = rf.get("DEFAULT_THROTTLE_RATES", {})
        return rates.get(self.scope)
