"""Cart services: race-safe cart resolution, line mutations and guest merge.

Every public mutation runs in one database transaction. Creation paths
never check-then-insert; they insert inside a savepoint and treat a unique
constraint violation as "someone else won", then re-read the winner.
"""

import logging
from typing import Callable, Optional, Tuple, TypeVar

from catalog.selectors import ProductForCart, VariantForCart, get_product_for_cart, get_variant
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from .actors import Actor, GuestActor, UserActor, log_context, owner_fields
from .exceptions import (
    CartError,
    ConcurrencyConflict,
    InsufficientStock,
    ItemNotFound,
    OutOfStock,
    ProductNotFound,
    VariantInvalid,
    VariantNotApplicable,
    VariantRequired,
)
from .models import Cart, CartItem
from .selectors import find_active_cart, find_line, get_cart_with_items

logger = logging.getLogger("shop.cart")

T = TypeVar("T")

SNAPSHOT_FIELDS = ("unit_price", "product_name", "variant_sku", "variant_size", "variant_color", "image_url")


def create_or_reread(
    *, lookup: Callable[[], Optional[T]], build: Callable[[], T], label: str = "row"
) -> Tuple[T, bool]:
    """Return ``(row, created)`` for a row guarded by a unique constraint.

    ``build`` runs inside a savepoint. If it violates the constraint, the
    savepoint is rolled back and ``lookup`` runs once more; the competing
    writer has committed by then, so a miss means something else is wrong
    and ConcurrencyConflict is raised for the caller to retry.
    """

    existing = lookup()
    if existing is not None:
        return existing, False
    try:
        with transaction.atomic():
            return build(), True
    except IntegrityError:
        logger.warning("cart.create_conflict", extra={"event": "cart.create_conflict", "target": label})
    existing = lookup()
    if existing is None:
        raise ConcurrencyConflict()
    return existing, False


def _touch(cart: Cart) -> None:
    cart.save(update_fields=["updated_at"])


def _get_or_create_cart(*, store, actor: Actor, lock: bool) -> Cart:
    def lookup():
        return find_active_cart(store_id=store.id, actor=actor, lock=lock)

    def build():
        return Cart.objects.create(store=store, status=Cart.STATUS_ACTIVE, **owner_fields(actor))

    cart, created = create_or_reread(lookup=lookup, build=build, label="cart")
    if created:
        logger.info(
            "cart.created",
            extra={"event": "cart.created", "cart_id": str(cart.id), "store_id": str(store.id), **log_context(actor)},
        )
    return cart


def _resolve_active_cart(*, store, actor: Actor, lock: bool = True) -> Cart:
    # A signed-in user still holding a guest token gets the guest cart folded in first.
    if isinstance(actor, UserActor) and actor.guest_token:
        return _merge(store=store, user_id=actor.user_id, guest_token=actor.guest_token)
    return _get_or_create_cart(store=store, actor=actor, lock=lock)


def check_stock(variant: VariantForCart, requested: int) -> None:
    if variant.stock <= 0:
        raise OutOfStock(stock=variant.stock)
    if requested > variant.stock:
        raise InsufficientStock(stock=variant.stock, requested=requested)


def _snapshot(product: ProductForCart, variant: Optional[VariantForCart]) -> dict:
    unit_price = product.base_price + (variant.price_delta if variant is not None else 0)
    return {
        "unit_price": unit_price,
        "product_name": product.name,
        "variant_sku": variant.sku if variant is not None else None,
        "variant_size": variant.size if variant is not None else None,
        "variant_color": variant.color if variant is not None else None,
        "image_url": product.main_image_url,
    }


def _get_owned_item(*, cart: Cart, item_id) -> CartItem:
    try:
        return CartItem.objects.select_for_update().get(id=item_id, cart=cart)
    except (CartItem.DoesNotExist, ValidationError, ValueError):
        raise ItemNotFound(item_id=str(item_id))


@transaction.atomic
def get_active_cart(*, store, actor: Actor) -> Cart:
    """Return the actor's active cart in ``store`` with items loaded, creating it if missing."""

    cart = _resolve_active_cart(store=store, actor=actor, lock=False)
    return get_cart_with_items(cart.id)


@transaction.atomic
def add_item(*, store, actor: Actor, product_id, variant_id=None, quantity: int) -> Cart:
    """Add ``quantity`` of a product (and variant) to the actor's cart.

    Increments an existing line and refreshes its price and display snapshot
    to the current catalog values. Any failure leaves the cart untouched.
    """

    if quantity <= 0:
        raise CartError("Quantity must be positive")

    product = get_product_for_cart(store_id=store.id, product_id=product_id)
    if product is None or not product.active:
        raise ProductNotFound(product_id=str(product_id))

    variant = None
    if product.has_variants:
        if variant_id is None:
            raise VariantRequired()
        variant = get_variant(product_id=product.id, variant_id=variant_id)
        if variant is None:
            raise VariantInvalid()
        check_stock(variant, quantity)
    elif variant_id is not None:
        raise VariantNotApplicable()

    cart = _resolve_active_cart(store=store, actor=actor)
    snapshot = _snapshot(product, variant)
    key = {"cart_id": cart.id, "product_id": product.id, "variant_id": variant.id if variant else None}

    line, created = create_or_reread(
        lookup=lambda: find_line(lock=True, **key),
        build=lambda: CartItem.objects.create(quantity=quantity, **key, **snapshot),
        label="cart_item",
    )
    if not created:
        new_quantity = int(line.quantity) + int(quantity)
        if variant is not None:
            check_stock(variant, new_quantity)
        line.quantity = new_quantity
        for field, value in snapshot.items():
            setattr(line, field, value)
        line.save(update_fields=["quantity", *SNAPSHOT_FIELDS, "updated_at"])
    _touch(cart)

    event = "cart.item_added" if created else "cart.item_updated"
    logger.info(
        event,
        extra={
            "event": event,
            "cart_id": str(cart.id),
            "store_id": str(store.id),
            "item_id": str(line.id),
            "product_id": str(product.id),
            "variant_id": str(variant.id) if variant else None,
            "quantity": int(line.quantity),
            **log_context(actor),
        },
    )
    return get_cart_with_items(cart.id)


@transaction.atomic
def update_item(*, store, actor: Actor, item_id, quantity: int) -> Cart:
    """Set a line's quantity; zero removes the line.

    Stock is re-validated against the line's variant when one is set.
    """

    if quantity < 0:
        raise CartError("Quantity must not be negative")
    cart = _resolve_active_cart(store=store, actor=actor)
    item = _get_owned_item(cart=cart, item_id=item_id)

    if quantity == 0:
        item.delete()
        event = "cart.item_removed"
    else:
        if item.variant_id is not None:
            variant = get_variant(product_id=item.product_id, variant_id=item.variant_id)
            if variant is not None:
                check_stock(variant, quantity)
        item.quantity = quantity
        item.save(update_fields=["quantity", "updated_at"])
        event = "cart.item_updated"
    _touch(cart)

    logger.info(
        event,
        extra={
            "event": event,
            "cart_id": str(cart.id),
            "store_id": str(store.id),
            "item_id": str(item_id),
            "quantity": quantity,
            **log_context(actor),
        },
    )
    return get_cart_with_items(cart.id)


@transaction.atomic
def remove_item(*, store, actor: Actor, item_id) -> Cart:
    """Remove a line from the actor's cart. No stock check."""

    cart = _resolve_active_cart(store=store, actor=actor)
    item = _get_owned_item(cart=cart, item_id=item_id)
    item.delete()
    _touch(cart)
    logger.info(
        "cart.item_removed",
        extra={
            "event": "cart.item_removed",
            "cart_id": str(cart.id),
            "store_id": str(store.id),
            "item_id": str(item_id),
            **log_context(actor),
        },
    )
    return get_cart_with_items(cart.id)


# Guest -> user merge


def _claim(*, cart: Cart, user_id) -> bool:
    """Reassign a guest cart to ``user_id``. False if the user got an active cart meanwhile."""

    guest_id = cart.guest_id
    try:
        with transaction.atomic():
            cart.user_id = user_id
            cart.guest_id = None
            cart.save(update_fields=["user", "guest_id", "updated_at"])
    except IntegrityError:
        cart.user_id = None
        cart.guest_id = guest_id
        return False
    return True


def _fold(*, source: Cart, target: Cart) -> None:
    """Move or sum every line of ``source`` into ``target`` and retire ``source``."""

    target_lines = {
        (line.product_id, line.variant_id): line for line in CartItem.objects.select_for_update().filter(cart=target)
    }
    for line in CartItem.objects.select_for_update().filter(cart=source).order_by("created_at", "id"):
        key = (line.product_id, line.variant_id)
        match = target_lines.get(key)
        if match is not None:
            match.quantity = int(match.quantity) + int(line.quantity)
            match.save(update_fields=["quantity", "updated_at"])
            line.delete()
        else:
            # Reparent so the line keeps its id and created_at
            line.cart = target
            line.save(update_fields=["cart"])
            target_lines[key] = line

    source.transition_to(Cart.STATUS_MERGED)
    source.save(update_fields=["status", "updated_at"])
    _touch(target)


def _merge(*, store, user_id, guest_token: str) -> Cart:
    user_actor = UserActor(user_id=user_id)
    source = find_active_cart(store_id=store.id, actor=GuestActor(guest_id=guest_token), lock=True)
    if source is None:
        return _get_or_create_cart(store=store, actor=user_actor, lock=True)

    target = find_active_cart(store_id=store.id, actor=user_actor, lock=True)
    if target is None:
        if _claim(cart=source, user_id=user_id):
            logger.info(
                "cart.claimed",
                extra={"event": "cart.claimed", "cart_id": str(source.id), "store_id": str(store.id), "user_id": user_id},
            )
            return source
        target = find_active_cart(store_id=store.id, actor=user_actor, lock=True)
        if target is None:
            raise ConcurrencyConflict()

    _fold(source=source, target=target)
    logger.info(
        "cart.merged",
        extra={
            "event": "cart.merged",
            "src_cart_id": str(source.id),
            "dest_cart_id": str(target.id),
            "store_id": str(store.id),
            "user_id": user_id,
        },
    )
    return target


@transaction.atomic
def merge_guest_into_user(*, store, user_id, guest_token: str) -> Cart:
    """Fold the guest's active cart into the user's active cart.

    Claims the guest cart outright when the user has none. Safe to repeat:
    once merged, the guest cart is no longer active and this degenerates to
    returning the user's cart.
    """

    cart = _merge(store=store, user_id=user_id, guest_token=guest_token)
    return get_cart_with_items(cart.id)


# Status transitions requested by checkout and cleanup


@transaction.atomic
def transition_cart(*, cart: Cart, status) -> Cart:
    """Move ``cart`` to ``status`` following the lifecycle and persist it.

    The stored row is locked and checked, not the in-memory ``cart``, which
    may be stale. ``cart`` is refreshed with the new status on success.
    """

    row = Cart.objects.select_for_update().get(pk=cart.pk)
    previous = row.status
    row.transition_to(status)
    row.save(update_fields=["status", "updated_at"])
    cart.status = row.status
    cart.updated_at = row.updated_at
    logger.info(
        "cart.status_changed",
        extra={
            "event": "cart.status_changed",
            "cart_id": str(cart.id),
            "store_id": str(cart.store_id),
            "status_from": str(previous),
            "status_to": str(cart.status),
        },
    )
    return cart


def mark_checkout_pending(*, cart: Cart) -> Cart:
    return transition_cart(cart=cart, status=Cart.STATUS_CHECKOUT_PENDING)


def mark_completed(*, cart: Cart) -> Cart:
    return transition_cart(cart=cart, status=Cart.STATUS_COMPLETED)


def abandon_cart(*, cart: Cart) -> Cart:
    return transition_cart(cart=cart, status=Cart.STATUS_ABANDONED)
