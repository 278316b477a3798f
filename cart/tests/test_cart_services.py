from decimal import Decimal

import pytest
from cart.actors import GuestActor, UserActor
from cart.exceptions import (
    InsufficientStock,
    ItemNotFound,
    OutOfStock,
    ProductNotFound,
    VariantInvalid,
    VariantNotApplicable,
    VariantRequired,
)
from cart.models import Cart, CartItem
from cart.presenters import build_cart_view
from cart.services import add_item, get_active_cart, remove_item, update_item
from cart.tests.factories import UserFactory
from catalog.tests.factories import ProductFactory, ProductImageFactory, ProductVariantFactory
from stores.tests.factories import StoreFactory


def _guest(token="guest-token-1"):
    return GuestActor(guest_id=token)


@pytest.mark.django_db
def test_get_active_cart_creates_once_and_reuses():
    store = StoreFactory()
    actor = _guest()

    first = get_active_cart(store=store, actor=actor)
    second = get_active_cart(store=store, actor=actor)

    assert first.id == second.id
    assert first.status == Cart.STATUS_ACTIVE
    assert first.guest_id == "guest-token-1"
    assert first.user_id is None
    assert Cart.objects.filter(store=store, guest_id="guest-token-1").count() == 1


@pytest.mark.django_db
def test_carts_are_scoped_per_store_and_actor():
    store_a = StoreFactory()
    store_b = StoreFactory()
    user = UserFactory()

    user_a = get_active_cart(store=store_a, actor=UserActor(user_id=user.id))
    user_b = get_active_cart(store=store_b, actor=UserActor(user_id=user.id))
    guest_a = get_active_cart(store=store_a, actor=_guest())

    assert len({user_a.id, user_b.id, guest_a.id}) == 3
    assert user_a.user_id == user.id and user_a.guest_id is None


@pytest.mark.django_db
def test_add_same_product_twice_sums_into_single_line():
    store = StoreFactory()
    product = ProductFactory(store=store, base_price=Decimal("100.00"))
    actor = _guest()

    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=2)
    view = build_cart_view(cart, store_slug=store.slug)
    assert view.items_count == 2
    assert view.subtotal == Decimal("200.00")

    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=3)
    view = build_cart_view(cart, store_slug=store.slug)
    assert len(view.items) == 1
    assert view.items[0].quantity == 5
    assert view.items_count == 5
    assert view.subtotal == Decimal("500.00")


@pytest.mark.django_db
def test_add_variant_snapshots_price_and_display_fields():
    store = StoreFactory()
    product = ProductFactory(store=store, base_price=Decimal("100.00"), name="Linen Shirt")
    ProductImageFactory(product=product, url="https://cdn.example.com/b.jpg", sort_order=1)
    ProductImageFactory(product=product, url="https://cdn.example.com/a.jpg", sort_order=0)
    variant = ProductVariantFactory(
        product=product, sku="LS-M-BLU", size="M", color="Blue", price_delta=Decimal("15.50"), stock=5
    )

    cart = add_item(store=store, actor=_guest(), product_id=product.id, variant_id=variant.id, quantity=1)
    line = cart.items.get()

    assert line.unit_price == Decimal("115.50")
    assert line.product_name == "Linen Shirt"
    assert (line.variant_sku, line.variant_size, line.variant_color) == ("LS-M-BLU", "M", "Blue")
    assert line.image_url == "https://cdn.example.com/a.jpg"


@pytest.mark.django_db
def test_adding_existing_line_refreshes_price_snapshot():
    store = StoreFactory()
    product = ProductFactory(store=store, base_price=Decimal("100.00"))
    actor = _guest()
    add_item(store=store, actor=actor, product_id=product.id, quantity=1)

    product.base_price = Decimal("120.00")
    product.name = "Renamed"
    product.save()

    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=1)
    line = cart.items.get()
    assert line.quantity == 2
    assert line.unit_price == Decimal("120.00")
    assert line.product_name == "Renamed"


@pytest.mark.django_db
def test_add_touches_cart_updated_at():
    store = StoreFactory()
    product = ProductFactory(store=store)
    actor = _guest()
    cart = get_active_cart(store=store, actor=actor)
    before = cart.updated_at

    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=1)
    assert cart.updated_at >= before


@pytest.mark.django_db
def test_variant_less_product_rejects_variant_id():
    store = StoreFactory()
    product = ProductFactory(store=store)
    unrelated_variant = ProductVariantFactory()

    with pytest.raises(VariantNotApplicable):
        add_item(store=store, actor=_guest(), product_id=product.id, variant_id=unrelated_variant.id, quantity=1)
    assert not CartItem.objects.exists()


@pytest.mark.django_db
def test_product_with_variants_requires_variant():
    store = StoreFactory()
    product = ProductFactory(store=store)
    ProductVariantFactory(product=product)

    with pytest.raises(VariantRequired):
        add_item(store=store, actor=_guest(), product_id=product.id, quantity=1)


@pytest.mark.django_db
def test_variant_of_another_product_is_invalid():
    store = StoreFactory()
    product = ProductFactory(store=store)
    ProductVariantFactory(product=product)
    other_variant = ProductVariantFactory(product=ProductFactory(store=store))

    with pytest.raises(VariantInvalid):
        add_item(store=store, actor=_guest(), product_id=product.id, variant_id=other_variant.id, quantity=1)


@pytest.mark.django_db
def test_product_not_found_cases():
    store = StoreFactory()
    inactive = ProductFactory(store=store, is_active=False)
    foreign = ProductFactory()

    with pytest.raises(ProductNotFound):
        add_item(store=store, actor=_guest(), product_id=inactive.id, quantity=1)
    with pytest.raises(ProductNotFound):
        add_item(store=store, actor=_guest(), product_id=foreign.id, quantity=1)
    with pytest.raises(ProductNotFound):
        add_item(store=store, actor=_guest(), product_id="not-a-uuid", quantity=1)


@pytest.mark.django_db
def test_out_of_stock_variant():
    store = StoreFactory()
    variant = ProductVariantFactory(product=ProductFactory(store=store), stock=0)

    with pytest.raises(OutOfStock):
        add_item(store=store, actor=_guest(), product_id=variant.product_id, variant_id=variant.id, quantity=1)


@pytest.mark.django_db
def test_insufficient_stock_leaves_no_trace():
    store = StoreFactory()
    variant = ProductVariantFactory(product=ProductFactory(store=store), stock=1)

    with pytest.raises(InsufficientStock) as excinfo:
        add_item(store=store, actor=_guest(), product_id=variant.product_id, variant_id=variant.id, quantity=2)

    assert excinfo.value.context == {"stock": 1, "requested": 2}
    assert not Cart.objects.exists()
    assert not CartItem.objects.exists()


@pytest.mark.django_db
def test_insufficient_stock_counts_quantity_already_in_cart():
    store = StoreFactory()
    variant = ProductVariantFactory(product=ProductFactory(store=store), stock=3)
    actor = _guest()
    add_item(store=store, actor=actor, product_id=variant.product_id, variant_id=variant.id, quantity=2)

    with pytest.raises(InsufficientStock):
        add_item(store=store, actor=actor, product_id=variant.product_id, variant_id=variant.id, quantity=2)

    assert CartItem.objects.get().quantity == 2


@pytest.mark.django_db
def test_update_sets_quantity_and_zero_removes():
    store = StoreFactory()
    product = ProductFactory(store=store, base_price=Decimal("10.00"))
    actor = _guest()
    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=1)
    item_id = cart.items.get().id

    cart = update_item(store=store, actor=actor, item_id=item_id, quantity=4)
    assert build_cart_view(cart, store_slug=store.slug).subtotal == Decimal("40.00")

    cart = update_item(store=store, actor=actor, item_id=item_id, quantity=0)
    view = build_cart_view(cart, store_slug=store.slug)
    assert item_id not in [line.id for line in view.items]
    assert view.items_count == 0
    assert view.subtotal == Decimal("0.00")

    with pytest.raises(ItemNotFound):
        update_item(store=store, actor=actor, item_id=item_id, quantity=1)
    with pytest.raises(ItemNotFound):
        remove_item(store=store, actor=actor, item_id=item_id)


@pytest.mark.django_db
def test_update_revalidates_stock_of_line_variant():
    store = StoreFactory()
    variant = ProductVariantFactory(product=ProductFactory(store=store), stock=3)
    actor = _guest()
    cart = add_item(store=store, actor=actor, product_id=variant.product_id, variant_id=variant.id, quantity=1)
    item_id = cart.items.get().id

    with pytest.raises(InsufficientStock):
        update_item(store=store, actor=actor, item_id=item_id, quantity=4)
    assert CartItem.objects.get(id=item_id).quantity == 1

    variant.stock = 0
    variant.save()
    with pytest.raises(OutOfStock):
        update_item(store=store, actor=actor, item_id=item_id, quantity=1)


@pytest.mark.django_db
def test_remove_item_needs_no_stock():
    store = StoreFactory()
    variant = ProductVariantFactory(product=ProductFactory(store=store), stock=2)
    actor = _guest()
    cart = add_item(store=store, actor=actor, product_id=variant.product_id, variant_id=variant.id, quantity=2)
    item_id = cart.items.get().id
    variant.stock = 0
    variant.save()

    cart = remove_item(store=store, actor=actor, item_id=item_id)
    assert list(cart.items.all()) == []


@pytest.mark.django_db
def test_items_of_another_actor_are_not_found():
    store = StoreFactory()
    product = ProductFactory(store=store)
    owner = _guest("owner-token")
    intruder = _guest("intruder-token")
    cart = add_item(store=store, actor=owner, product_id=product.id, quantity=1)
    item_id = cart.items.get().id

    with pytest.raises(ItemNotFound):
        update_item(store=store, actor=intruder, item_id=item_id, quantity=5)
    with pytest.raises(ItemNotFound):
        remove_item(store=store, actor=intruder, item_id=item_id)
    with pytest.raises(ItemNotFound):
        remove_item(store=StoreFactory(), actor=owner, item_id=item_id)

    assert CartItem.objects.get(id=item_id).quantity == 1


@pytest.mark.django_db
def test_items_of_non_active_cart_are_not_found():
    store = StoreFactory()
    product = ProductFactory(store=store)
    actor = _guest()
    cart = add_item(store=store, actor=actor, product_id=product.id, quantity=1)
    item_id = cart.items.get().id
    Cart.objects.filter(id=cart.id).update(status=Cart.STATUS_CHECKOUT_PENDING)

    with pytest.raises(ItemNotFound):
        update_item(store=store, actor=actor, item_id=item_id, quantity=2)


@pytest.mark.django_db
def test_totals_hold_after_mixed_operations():
    store = StoreFactory()
    plain = ProductFactory(store=store, base_price=Decimal("19.99"))
    variant = ProductVariantFactory(
        product=ProductFactory(store=store, base_price=Decimal("50.00")), price_delta=Decimal("-5.00"), stock=20
    )
    third = ProductFactory(store=store, base_price=Decimal("3.00"))
    actor = _guest()

    add_item(store=store, actor=actor, product_id=plain.id, quantity=3)
    cart = add_item(store=store, actor=actor, product_id=variant.product_id, variant_id=variant.id, quantity=2)
    cart = add_item(store=store, actor=actor, product_id=third.id, quantity=7)
    third_line = cart.items.get(product=third)
    cart = update_item(store=store, actor=actor, item_id=cart.items.get(product=plain).id, quantity=1)
    cart = remove_item(store=store, actor=actor, item_id=third_line.id)

    view = build_cart_view(cart, store_slug=store.slug)
    assert view.items_count == sum(line.quantity for line in cart.items.all())
    assert view.subtotal == sum((line.unit_price * line.quantity for line in cart.items.all()), Decimal("0.00"))
    assert view.subtotal == Decimal("19.99") + Decimal("90.00")
