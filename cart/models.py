"""Cart app models.

A cart belongs to one store and is owned by either an authenticated user
or an anonymous guest token, never both. At most one cart per owner and
store may be ``active`` at a time; that rule lives in the database as
partial unique constraints so concurrent writers across processes are
serialised by the store itself.
"""

import uuid
from decimal import Decimal

from common.choices import CartStatus
from django.conf import settings
from django.db import models

from .exceptions import InvalidCartTransition


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Cart(TimeStampedModel):
    """Shopping cart bound to a store and to a user or a guest token."""

    STATUS_ACTIVE = CartStatus.ACTIVE
    STATUS_CHECKOUT_PENDING = CartStatus.CHECKOUT_PENDING
    STATUS_COMPLETED = CartStatus.COMPLETED
    STATUS_ABANDONED = CartStatus.ABANDONED
    STATUS_MERGED = CartStatus.MERGED
    STATUS_CHOICES = CartStatus.choices

    TRANSITIONS = {
        CartStatus.ACTIVE: frozenset({CartStatus.CHECKOUT_PENDING, CartStatus.MERGED, CartStatus.ABANDONED}),
        CartStatus.CHECKOUT_PENDING: frozenset({CartStatus.COMPLETED}),
        CartStatus.COMPLETED: frozenset(),
        CartStatus.ABANDONED: frozenset(),
        CartStatus.MERGED: frozenset(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey("stores.Store", related_name="carts", on_delete=models.CASCADE)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, null=True, blank=True, related_name="carts", on_delete=models.CASCADE
    )
    guest_id = models.CharField(max_length=64, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    class Meta:
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "user"],
                condition=models.Q(status=CartStatus.ACTIVE, user__isnull=False),
                name="unique_active_cart_per_store_user",
            ),
            models.UniqueConstraint(
                fields=["store", "guest_id"],
                condition=models.Q(status=CartStatus.ACTIVE, guest_id__isnull=False),
                name="unique_active_cart_per_store_guest",
            ),
            models.CheckConstraint(
                name="cart_not_both_user_and_guest",
                condition=models.Q(user__isnull=True) | models.Q(guest_id__isnull=True),
            ),
        ]
        indexes = [
            models.Index(fields=["store", "user", "status"], name="cart_store_user_status_idx"),
            models.Index(fields=["store", "guest_id", "status"], name="cart_store_guest_status_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        owner = f"user={self.user_id}" if self.user_id else "guest"
        return f"Cart#{self.id} ({owner}, {self.status})"

    def can_transition_to(self, status) -> bool:
        return status in self.TRANSITIONS[CartStatus(self.status)]

    def transition_to(self, status) -> None:
        """Move to ``status`` in memory; the caller saves.

        Raises InvalidCartTransition for anything outside the lifecycle.
        """

        if not self.can_transition_to(status):
            raise InvalidCartTransition(f"Cart {self.id}: {self.status} -> {status} is not allowed")
        self.status = status


class CartItem(TimeStampedModel):
    """One (product, variant) line with a point-in-time price and display snapshot."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, related_name="items", on_delete=models.CASCADE)
    product = models.ForeignKey("catalog.Product", related_name="cart_items", on_delete=models.CASCADE)
    variant = models.ForeignKey(
        "catalog.ProductVariant", null=True, blank=True, related_name="cart_items", on_delete=models.CASCADE
    )
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    # Snapshot for display without joining the catalog
    product_name = models.CharField(max_length=200)
    variant_sku = models.CharField(max_length=64, null=True, blank=True)
    variant_size = models.CharField(max_length=32, null=True, blank=True)
    variant_color = models.CharField(max_length=32, null=True, blank=True)
    image_url = models.URLField(max_length=500, null=True, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cart", "product"],
                condition=models.Q(variant__isnull=True),
                name="unique_product_per_cart_without_variant",
            ),
            models.UniqueConstraint(
                fields=["cart", "product", "variant"],
                condition=models.Q(variant__isnull=False),
                name="unique_variant_per_cart",
            ),
            models.CheckConstraint(
                name="cart_item_quantity_positive",
                condition=models.Q(quantity__gte=1),
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} cart={self.cart_id} product={self.product_id} qty={self.quantity}"

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * Decimal(int(self.quantity))
