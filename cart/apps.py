"""Django app configuration for the Cart app."""

from django.apps import AppConfig


class CartConfig(AppConfig):
    """Store-scoped carts owned by a user or a guest token."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cart"
    verbose_name = "Carts"
