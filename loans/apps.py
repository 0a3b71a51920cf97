"""Django app configuration for the loans app."""

from django.apps import AppConfig


class LoansConfig(AppConfig):
    """AppConfig for loan requests and their line items."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "loans"
