"""Shared enumerations and choices used across apps."""

from django.db import models


class StoreStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    SUSPENDED = "suspended", "Suspended"


class CartStatus(models.TextChoices):
    """Statuses for shopping carts.

    Only ``ACTIVE`` carts are editable; the rest are terminal or frozen.
    """

    ACTIVE = "active", "Active"
    CHECKOUT_PENDING = "checkout_pending", "Checkout pending"
    COMPLETED = "completed", "Completed"
    ABANDONED = "abandoned", "Abandoned"
    MERGED = "merged", "Merged"


class OrderStatus(models.TextChoices):
    """Lifecycle statuses for orders."""

    PENDING_PAYMENT = "pending_payment", "Pending payment"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"
