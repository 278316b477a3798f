import pytest
from cart.exceptions import InvalidCartTransition
from cart.models import Cart
from cart.services import abandon_cart, mark_checkout_pending, mark_completed
from cart.tests.factories import CartFactory

ALLOWED = {
    (Cart.STATUS_ACTIVE, Cart.STATUS_CHECKOUT_PENDING),
    (Cart.STATUS_ACTIVE, Cart.STATUS_MERGED),
    (Cart.STATUS_ACTIVE, Cart.STATUS_ABANDONED),
    (Cart.STATUS_CHECKOUT_PENDING, Cart.STATUS_COMPLETED),
}

ALL_STATUSES = [choice for choice, _ in Cart.STATUS_CHOICES]


@pytest.mark.parametrize("source", ALL_STATUSES)
@pytest.mark.parametrize("target", ALL_STATUSES)
def test_transition_table_is_closed(source, target):
    cart = Cart(status=source)
    if (source, target) in ALLOWED:
        cart.transition_to(target)
        assert cart.status == target
    else:
        with pytest.raises(InvalidCartTransition):
            cart.transition_to(target)
        assert cart.status == source


def test_invalid_transition_is_a_value_error():
    assert issubclass(InvalidCartTransition, ValueError)


@pytest.mark.django_db
def test_checkout_transitions_persist():
    cart = CartFactory()

    mark_checkout_pending(cart=cart)
    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_CHECKOUT_PENDING

    mark_completed(cart=cart)
    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_COMPLETED


@pytest.mark.django_db
def test_abandon_only_from_active():
    cart = CartFactory()
    abandon_cart(cart=cart)
    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_ABANDONED

    with pytest.raises(InvalidCartTransition):
        abandon_cart(cart=cart)


@pytest.mark.django_db
def test_completing_an_active_cart_is_rejected_and_not_saved():
    cart = CartFactory()
    with pytest.raises(InvalidCartTransition):
        mark_completed(cart=cart)
    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_ACTIVE


@pytest.mark.django_db
def test_transition_is_checked_against_the_stored_status():
    cart = CartFactory()
    stale = Cart.objects.get(pk=cart.pk)
    mark_checkout_pending(cart=cart)

    with pytest.raises(InvalidCartTransition):
        abandon_cart(cart=stale)

    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_CHECKOUT_PENDING


@pytest.mark.django_db
def test_transition_updates_the_passed_instance():
    cart = CartFactory()
    stale = Cart.objects.get(pk=cart.pk)
    Cart.objects.filter(pk=cart.pk).update(status=Cart.STATUS_CHECKOUT_PENDING)

    mark_completed(cart=stale)

    assert stale.status == Cart.STATUS_COMPLETED
    cart.refresh_from_db()
    assert cart.status == Cart.STATUS_COMPLETED
