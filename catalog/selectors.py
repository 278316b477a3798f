"""Catalog lookups consumed by the cart.

Selectors are read-only and return lightweight frozen snapshots rather
than model instances, so callers cannot accidentally mutate catalog rows.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from django.core.exceptions import ValidationError

from .models import Product, ProductImage, ProductVariant


@dataclass(frozen=True)
class ProductForCart:
    id: object
    store_id: object
    name: str
    active: bool
    base_price: Decimal
    has_variants: bool
    main_image_url: Optional[str]


@dataclass(frozen=True)
class VariantForCart:
    id: object
    product_id: object
    price_delta: Decimal
    stock: int
    sku: Optional[str]
    size: Optional[str]
    color: Optional[str]


def get_product_for_cart(*, store_id, product_id) -> Optional[ProductForCart]:
    """Return the product as the cart sees it, or None if it is not in ``store_id``.

    Inactive products are returned with ``active=False``; deciding what to do
    with them is the caller's business.
    """

    try:
        product = Product.objects.get(id=product_id, store_id=store_id)
    except (Product.DoesNotExist, ValidationError, ValueError):
        return None

    main_image_url = (
        ProductImage.objects.filter(product_id=product.id).order_by("sort_order", "id").values_list("url", flat=True)
    ).first()

    return ProductForCart(
        id=product.id,
        store_id=product.store_id,
        name=product.name,
        active=product.is_active,
        base_price=product.base_price,
        has_variants=ProductVariant.objects.filter(product_id=product.id).exists(),
        main_image_url=main_image_url,
    )


def get_variant(*, product_id, variant_id) -> Optional[VariantForCart]:
    """Return the variant if it belongs to ``product_id``, otherwise None."""

    try:
        variant = ProductVariant.objects.get(id=variant_id, product_id=product_id)
    except (ProductVariant.DoesNotExist, ValidationError, ValueError):
        return None
    return VariantForCart(
        id=variant.id,
        product_id=variant.product_id,
        price_delta=variant.price_delta,
        stock=int(variant.stock),
        sku=variant.sku,
        size=variant.size,
        color=variant.color,
    )
