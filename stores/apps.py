"""Django app configuration for the Stores app."""

from django.apps import AppConfig


class StoresConfig(AppConfig):
    """AppConfig for tenant stores."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "stores"
