"""Turn cart rows into the shape clients see.

Pure functions: no queries, no writes. Pass a cart whose items are already
loaded (see ``selectors.get_cart_with_items``), or None when the actor has
no cart yet.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class CartLineView:
    id: object
    product_id: object
    variant_id: Optional[object]
    name: str
    sku: Optional[str]
    size: Optional[str]
    color: Optional[str]
    image_url: Optional[str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class CartView:
    id: Optional[object]
    store: str
    guest_id: Optional[str] = None
    items_count: int = 0
    subtotal: Decimal = ZERO
    items: List[CartLineView] = field(default_factory=list)


def present_line(item) -> CartLineView:
    unit_price = item.unit_price or ZERO
    return CartLineView(
        id=item.id,
        product_id=item.product_id,
        variant_id=item.variant_id,
        name=item.product_name,
        sku=item.variant_sku,
        size=item.variant_size,
        color=item.variant_color,
        image_url=item.image_url,
        quantity=int(item.quantity),
        unit_price=unit_price,
        line_total=unit_price * int(item.quantity),
    )


def build_cart_view(cart, *, store_slug: str, guest_id: Optional[str] = None) -> CartView:
    """Summarise ``cart`` (or its absence) with line totals, item count and subtotal."""

    if cart is None:
        return CartView(id=None, store=store_slug, guest_id=guest_id)

    lines = sorted(cart.items.all(), key=lambda item: (item.created_at, str(item.id)))
    items = [present_line(item) for item in lines]
    return CartView(
        id=cart.id,
        store=store_slug,
        guest_id=guest_id,
        items_count=sum(line.quantity for line in items),
        subtotal=sum((line.line_total for line in items), ZERO),
        items=items,
    )
