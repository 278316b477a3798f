import logging
import threading
from typing import List

import pytest
from cart import selectors
from cart.actors import GuestActor, UserActor
from cart.exceptions import ConcurrencyConflict
from cart.models import Cart, CartItem
from cart.services import add_item, create_or_reread, get_active_cart, merge_guest_into_user
from cart.tests.factories import CartFactory, CartItemFactory, UserCartFactory, UserFactory
from catalog.tests.factories import ProductFactory
from django.db import close_old_connections, connection
from stores.tests.factories import StoreFactory


def _stale_on_calls(real, stale_calls):
    """Wrap a selector so the given call numbers (1-based) miss, as if another writer had not committed yet."""

    calls = {"n": 0}

    def wrapper(**kwargs):
        calls["n"] += 1
        if calls["n"] in stale_calls:
            return None
        return real(**kwargs)

    return wrapper


@pytest.mark.django_db
def test_lost_cart_creation_race_rereads_winner(monkeypatch, caplog):
    store = StoreFactory()
    winner = CartFactory(store=store, guest_id="racing-guest")
    monkeypatch.setattr("cart.services.find_active_cart", _stale_on_calls(selectors.find_active_cart, {1}))

    with caplog.at_level(logging.WARNING, logger="shop.cart"):
        cart = get_active_cart(store=store, actor=GuestActor(guest_id="racing-guest"))

    assert cart.id == winner.id
    assert Cart.objects.filter(store=store, guest_id="racing-guest").count() == 1
    assert any(getattr(r, "event", None) == "cart.create_conflict" for r in caplog.records)


@pytest.mark.django_db
def test_unrecoverable_cart_race_raises_conflict(monkeypatch):
    store = StoreFactory()
    CartFactory(store=store, guest_id="racing-guest")
    monkeypatch.setattr("cart.services.find_active_cart", lambda **kwargs: None)

    with pytest.raises(ConcurrencyConflict):
        get_active_cart(store=store, actor=GuestActor(guest_id="racing-guest"))

    assert Cart.objects.filter(store=store, guest_id="racing-guest").count() == 1


@pytest.mark.django_db
def test_lost_line_creation_race_increments_winning_line(monkeypatch):
    store = StoreFactory()
    product = ProductFactory(store=store)
    cart = CartFactory(store=store, guest_id="racing-guest")
    CartItemFactory(cart=cart, product=product, quantity=2)
    monkeypatch.setattr("cart.services.find_line", _stale_on_calls(selectors.find_line, {1}))

    cart = add_item(store=store, actor=GuestActor(guest_id="racing-guest"), product_id=product.id, quantity=3)

    line = CartItem.objects.get(cart=cart, product=product)
    assert line.quantity == 5
    assert CartItem.objects.filter(cart=cart).count() == 1


@pytest.mark.django_db
def test_unrecoverable_line_race_raises_conflict_and_rolls_back(monkeypatch):
    store = StoreFactory()
    product = ProductFactory(store=store)
    cart = CartFactory(store=store, guest_id="racing-guest")
    CartItemFactory(cart=cart, product=product, quantity=2)
    monkeypatch.setattr("cart.services.find_line", lambda **kwargs: None)

    with pytest.raises(ConcurrencyConflict):
        add_item(store=store, actor=GuestActor(guest_id="racing-guest"), product_id=product.id, quantity=3)

    assert CartItem.objects.get(cart=cart, product=product).quantity == 2


@pytest.mark.django_db
def test_claim_losing_to_new_user_cart_falls_back_to_merge(monkeypatch):
    store = StoreFactory()
    product = ProductFactory(store=store)
    guest_cart = CartFactory(store=store, guest_id="guest-token")
    CartItemFactory(cart=guest_cart, product=product, quantity=1)
    user_cart = UserCartFactory(store=store)
    CartItemFactory(cart=user_cart, product=product, quantity=2)
    # Call 1 locks the guest cart; call 2 misses the user's cart that "just" appeared.
    monkeypatch.setattr("cart.services.find_active_cart", _stale_on_calls(selectors.find_active_cart, {2}))

    cart = merge_guest_into_user(store=store, user_id=user_cart.user_id, guest_token="guest-token")

    assert cart.id == user_cart.id
    assert cart.items.get().quantity == 3
    guest_cart.refresh_from_db()
    assert guest_cart.status == Cart.STATUS_MERGED
    assert guest_cart.user_id is None


@pytest.mark.django_db
def test_create_or_reread_returns_existing_without_building():
    store = StoreFactory()
    existing = CartFactory(store=store)

    def build():
        raise AssertionError("build must not run when lookup finds a row")

    row, created = create_or_reread(lookup=lambda: existing, build=build)
    assert row is existing
    assert created is False


def _get_cart_worker(barrier: threading.Barrier, store, actor, cart_ids: List, errors: List[Exception]):
    close_old_connections()
    barrier.wait()
    try:
        cart_ids.append(get_active_cart(store=store, actor=actor).id)
    except Exception as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        connection.close()


def _add_worker(
    barrier: threading.Barrier, store, actor, product_id, qty: int, successes: List[int], errors: List[Exception]
):
    close_old_connections()
    barrier.wait()
    try:
        add_item(store=store, actor=actor, product_id=product_id, quantity=qty)
        successes.append(qty)
    except Exception as exc:  # pragma: no cover
        errors.append(exc)
    finally:
        connection.close()


@pytest.mark.django_db(transaction=True)
@pytest.mark.parametrize("make_actor", [lambda user: UserActor(user_id=user.id), lambda user: GuestActor("same-guest")])
def test_threaded_get_or_create_converges_on_one_cart(make_actor):
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    store = StoreFactory()
    actor = make_actor(UserFactory())

    workers = 4
    barrier = threading.Barrier(workers)
    cart_ids: List = []
    errors: List[Exception] = []
    threads = [
        threading.Thread(target=_get_cart_worker, args=(barrier, store, actor, cart_ids, errors))
        for _ in range(workers)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(set(cart_ids)) == 1
    assert Cart.objects.filter(store=store, status=Cart.STATUS_ACTIVE).count() == 1


@pytest.mark.django_db(transaction=True)
def test_threaded_adds_of_same_product_sum_quantities():
    if connection.vendor == "sqlite":
        pytest.skip("SQLite lacks real concurrent transactions; skipping threaded test.")
    store = StoreFactory()
    product = ProductFactory(store=store)
    actor = GuestActor(guest_id="same-guest")

    quantities = [1, 2, 3, 4]
    barrier = threading.Barrier(len(quantities))
    successes: List[int] = []
    errors: List[Exception] = []
    threads = [
        threading.Thread(target=_add_worker, args=(barrier, store, actor, product.id, qty, successes, errors))
        for qty in quantities
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # Only ConcurrencyConflict is an acceptable failure; the client retries it.
    assert all(isinstance(exc, ConcurrencyConflict) for exc in errors)
    lines = list(CartItem.objects.filter(cart__store=store, product=product))
    assert len(lines) == 1
    assert lines[0].quantity == sum(successes)
    assert len(successes) + len(errors) == len(quantities)
