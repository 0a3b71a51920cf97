"""Django app configuration for the inventory (stock ledger) app."""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """AppConfig for stock derivation; the app owns no tables."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
