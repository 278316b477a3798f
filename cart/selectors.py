"""Selectors for read-only cart queries."""

from typing import Optional

from django.db.models import Prefetch

from .actors import Actor, owner_lookup
from .models import Cart, CartItem


def active_carts(*, store_id, actor: Actor):
    """Queryset of the actor's active carts in a store (at most one row)."""

    return Cart.objects.filter(store_id=store_id, status=Cart.STATUS_ACTIVE, **owner_lookup(actor))


def find_active_cart(*, store_id, actor: Actor, lock: bool = False) -> Optional[Cart]:
    """Return the actor's active cart without creating one.

    ``lock`` takes a row lock and must be used inside a transaction.
    """

    qs = active_carts(store_id=store_id, actor=actor)
    if lock:
        qs = qs.select_for_update()
    return qs.first()


def get_cart_with_items(cart_id) -> Cart:
    """Reload a cart with its lines prefetched in display order."""

    return Cart.objects.select_related("store").prefetch_related(
        Prefetch("items", queryset=CartItem.objects.order_by("created_at", "id"))
    ).get(pk=cart_id)


def find_line(*, cart_id, product_id, variant_id=None, lock: bool = False) -> Optional[CartItem]:
    """Return the line keyed by (cart, product, variant), if present."""

    qs = CartItem.objects.filter(cart_id=cart_id, product_id=product_id, variant_id=variant_id)
    if lock:
        qs = qs.select_for_update()
    return qs.first()
