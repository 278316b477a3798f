"""Checkout handoff: turn the actor's active cart into a pending order.

The cart is frozen (``checkout_pending``) while payment runs and completed
once payment is confirmed. Add-time stock checks are advisory, so stock is
checked again here under the cart lock.
"""

import logging
from decimal import Decimal

from cart.actors import Actor, UserActor, log_context
from cart.exceptions import CartError
from cart.models import Cart, CartItem
from cart.selectors import find_active_cart
from cart.services import check_stock, mark_checkout_pending, mark_completed, merge_guest_into_user
from catalog.selectors import get_variant
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .models import Order, OrderItem

logger = logging.getLogger("shop.orders")

SHIPPING_FIELDS = ("name", "phone", "address1", "address2", "city", "state", "postal_code")


class CheckoutError(CartError):
    code = "checkout_error"
    default_message = "Cart is empty or was not found."


def _revalidate_stock(items) -> None:
    for item in items:
        if item.variant_id is None:
            continue
        variant = get_variant(product_id=item.product_id, variant_id=item.variant_id)
        if variant is None:
            raise CheckoutError("A product in the cart is no longer available.", item_id=str(item.id))
        check_stock(variant, int(item.quantity))


@transaction.atomic
def start_checkout(*, store, actor: Actor, customer_email: str, shipping: dict) -> Order:
    """Snapshot the actor's active cart into a pending order and freeze the cart."""

    if isinstance(actor, UserActor) and actor.guest_token:
        merge_guest_into_user(store=store, user_id=actor.user_id, guest_token=actor.guest_token)

    cart = find_active_cart(store_id=store.id, actor=actor, lock=True)
    if cart is None:
        raise CheckoutError()
    items = list(CartItem.objects.select_for_update().filter(cart=cart).order_by("created_at", "id"))
    if not items:
        raise CheckoutError()

    _revalidate_stock(items)

    subtotal = sum((item.unit_price * int(item.quantity) for item in items), Decimal("0.00"))
    order = Order.objects.create(
        store=store,
        user_id=cart.user_id,
        guest_id=cart.guest_id,
        cart=cart,
        currency=getattr(settings, "CHECKOUT_CURRENCY", "MXN"),
        subtotal=subtotal,
        total=subtotal,
        customer_email=customer_email.strip(),
        **{f"shipping_{name}": shipping.get(name) for name in SHIPPING_FIELDS},
        shipping_country=(shipping.get("country") or "MX").upper(),
    )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.unit_price * int(item.quantity),
                product_name=item.product_name,
                variant_sku=item.variant_sku,
                variant_size=item.variant_size,
                variant_color=item.variant_color,
                image_url=item.image_url,
            )
            for item in items
        ]
    )
    mark_checkout_pending(cart=cart)

    logger.info(
        "order.checkout_started",
        extra={
            "event": "order.checkout_started",
            "order_id": str(order.id),
            "cart_id": str(cart.id),
            "store_id": str(store.id),
            "total": str(order.total),
            **log_context(actor),
        },
    )
    return order


@transaction.atomic
def confirm_payment(order: Order) -> Order:
    """Mark an order as paid and complete its cart.

    Safe to call repeatedly, as a payment webhook may be delivered more than once.
    """

    order = Order.objects.select_for_update().get(pk=order.pk)
    if order.status == Order.STATUS_PAID:
        return order
    if order.status == Order.STATUS_CANCELLED:
        raise CheckoutError("Cannot pay a cancelled order.")

    order.status = Order.STATUS_PAID
    order.paid_at = timezone.now()
    order.save(update_fields=["status", "paid_at", "updated_at"])

    if order.cart_id is not None:
        cart = Cart.objects.select_for_update().get(pk=order.cart_id)
        if cart.status == Cart.STATUS_CHECKOUT_PENDING:
            mark_completed(cart=cart)

    logger.info(
        "order.paid",
        extra={"event": "order.paid", "order_id": str(order.id), "store_id": str(order.store_id)},
    )
    return order
