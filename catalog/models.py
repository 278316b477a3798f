"""Catalog app models.

Defines the store-scoped catalog the cart reads from: products, their
optional variants (size/color/SKU with a price delta and stock), and
product imagery.
"""

import uuid
from decimal import Decimal

from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Product(TimeStampedModel):
    """Core product entity owned by a store."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey("stores.Store", related_name="products", on_delete=models.PROTECT)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(name="product_base_price_non_negative", condition=models.Q(base_price__gte=0)),
        ]
        indexes = [
            models.Index(fields=["store", "name"], name="product_store_name_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class ProductVariant(TimeStampedModel):
    """Purchasable variant of a product (e.g., size/color)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, related_name="variants", on_delete=models.CASCADE)
    sku = models.CharField(max_length=64, null=True, blank=True)
    size = models.CharField(max_length=32, null=True, blank=True)
    color = models.CharField(max_length=32, null=True, blank=True)
    price_delta = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    stock = models.IntegerField(default=0)

    class Meta:
        ordering = ["sku"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "sku"],
                condition=models.Q(sku__isnull=False),
                name="unique_variant_sku_per_product",
            ),
            models.CheckConstraint(name="variant_stock_non_negative", condition=models.Q(stock__gte=0)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.product.name} [{self.sku or self.id}]"


class ProductImage(TimeStampedModel):
    """Product imagery (URL-based). The first by sort order is the main image."""

    product = models.ForeignKey(Product, related_name="images", on_delete=models.CASCADE)
    url = models.URLField(max_length=500)
    sort_order = models.IntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "id"]
        indexes = [
            models.Index(fields=["product", "sort_order"], name="productimage_sort_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return self.url
