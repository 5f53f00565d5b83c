from datetime import datetime, timedelta, timezone
import uuid

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.data.models.cart import CART_CANCELLED, CART_PENDING, CartModel
from storefront.data.models.customer import CustomerModel
from storefront.domain.errors import (
    CartNotFound,
    CartNotPending,
    CheckoutInProgress,
    CustomerNotFound,
    InvalidQuantity,
    LineNotFound,
    ProductNotFound,
    ResourceLocked,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import cart_key


@pytest.fixture
def carts(db, lock_service):
    return CartService(db, lock_service)


@pytest.fixture
def customer(db):
    c = CustomerModel(name="Ana", email="ana@example.com")
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


def test_add_merges_and_keeps_first_price(db, carts, make_product):
    product = make_product(price=1000)
    cart = carts.create_cart()

    first = carts.add_item(cart.id, product.id, 2)

    product.price = 1500
    db.commit()

    merged = carts.add_item(cart.id, product.id, 3)

    assert merged.id == first.id
    assert merged.quantity == 5
    assert merged.unit_price == 1000
    assert len(carts.repo.get_cart_items(cart.id)) == 1


def test_new_line_takes_current_price(db, carts, make_product):
    product = make_product(price=1000)
    cart = carts.create_cart()

    product.price = 1200
    db.commit()

    assert carts.add_item(cart.id, product.id, 1).unit_price == 1200


@pytest.mark.parametrize("quantity", [0, -1])
def test_add_rejects_non_positive_quantity(carts, make_product, quantity):
    product = make_product()
    cart = carts.create_cart()
    with pytest.raises(InvalidQuantity):
        carts.add_item(cart.id, product.id, quantity)


def test_add_to_unknown_cart_or_product(carts, make_product):
    product = make_product()
    with pytest.raises(CartNotFound):
        carts.add_item(uuid.uuid4(), product.id, 1)

    cart = carts.create_cart()
    with pytest.raises(ProductNotFound):
        carts.add_item(cart.id, 12345, 1)


def test_add_while_cart_is_locked(carts, make_product, redis_client):
    product = make_product()
    cart = carts.create_cart()
    redis_client.set(cart_key(cart.id), "someone-else")

    with pytest.raises(ResourceLocked):
        carts.add_item(cart.id, product.id, 1)
    assert carts.repo.get_cart_items(cart.id) == []


def test_update_quantity(carts, make_product):
    product = make_product()
    cart = carts.create_cart()
    line = carts.add_item(cart.id, product.id, 1)

    assert carts.update_item_quantity(cart.id, line.id, 4).quantity == 4

    with pytest.raises(InvalidQuantity):
        carts.update_item_quantity(cart.id, line.id, 0)
    with pytest.raises(LineNotFound):
        carts.update_item_quantity(cart.id, uuid.uuid4(), 2)


def test_remove_reports_count(carts, make_product):
    product = make_product()
    cart = carts.create_cart()
    line = carts.add_item(cart.id, product.id, 1)

    assert carts.remove_item(cart.id, line.id) == 1
    assert carts.remove_item(cart.id, line.id) == 0


def test_enriched_view(db, carts, make_product):
    keyboard = make_product(name="Keyboard", price=1000)
    mouse = make_product(name="Mouse", price=250)
    cart = carts.create_cart()
    carts.add_item(cart.id, keyboard.id, 2)
    carts.add_item(cart.id, mouse.id, 3)

    view = carts.get_enriched_cart(cart.id)

    assert view["status"] == CART_PENDING
    assert view["subtotal"] == 2750
    assert [(i["product"].name, i["subtotal"]) for i in view["items"]] == [
        ("Keyboard", 2000),
        ("Mouse", 750),
    ]



def test_enriched_view_of_unknown_cart(carts):
    with pytest.raises(CartNotFound):
        carts.get_enriched_cart(uuid.uuid4())


def test_customer_gets_their_pending_cart_back(carts, customer):
    first = carts.create_cart(customer.id)
    second = carts.create_cart(customer.id)
    assert first.id == second.id


def test_anonymous_carts_are_always_new(carts):
    assert carts.create_cart().id != carts.create_cart().id


def test_cart_for_unknown_customer(carts):
    with pytest.raises(CustomerNotFound):
        carts.create_cart(uuid.uuid4())


def test_cancelled_cart_is_frozen(carts, customer, make_product):
    product = make_product()
    cart = carts.create_cart(customer.id)
    carts.cancel_cart(cart.id)

    with pytest.raises(CartNotPending) as exc:
        carts.add_item(cart.id, product.id, 1)
    assert exc.value.detail["status"] == CART_CANCELLED

    # a cancelled cart no longer blocks a new one
    assert carts.create_cart(customer.id).id != cart.id


def test_cart_is_frozen_while_checkout_is_pending(db, carts, lock_service, notifications, make_product):
    product = make_product()
    cart = carts.create_cart()
    line = carts.add_item(cart.id, product.id, 1)

    CheckoutService(db, lock_service, notifications).checkout(cart.id, method="webpay")

    with pytest.raises(CheckoutInProgress):
        carts.add_item(cart.id, product.id, 1)
    with pytest.raises(CheckoutInProgress):
        carts.update_item_quantity(cart.id, line.id, 3)
    with pytest.raises(CheckoutInProgress):
        carts.remove_item(cart.id, line.id)


def test_cancel_abandoned_carts(db, carts, lock_service, notifications, make_product):
    product = make_product()
    two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)

    stale = carts.create_cart()
    fresh = carts.create_cart()
    in_checkout = carts.create_cart()
    carts.add_item(in_checkout.id, product.id, 1)
    CheckoutService(db, lock_service, notifications).checkout(in_checkout.id, method="webpay")

    stale.created_at = two_days_ago
    in_checkout.created_at = two_days_ago
    db.commit()

    assert carts.cancel_abandoned_carts(older_than=timedelta(days=1)) == 1

    assert carts.repo.get_cart(stale.id).status == CART_CANCELLED
    assert carts.repo.get_cart(fresh.id).status == CART_PENDING
    assert carts.repo.get_cart(in_checkout.id).status == CART_PENDING


def test_line_changes_wait_for_the_cart_lock(carts, make_product, redis_client):
    product = make_product()
    cart = carts.create_cart()
    line = carts.add_item(cart.id, product.id, 2)
    redis_client.set(cart_key(cart.id), "checkout-in-another-request")

    with pytest.raises(ResourceLocked):
        carts.update_item_quantity(cart.id, line.id, 7)
    with pytest.raises(ResourceLocked):
        carts.remove_item(cart.id, line.id)
    with pytest.raises(ResourceLocked):
        carts.cancel_cart(cart.id)

    redis_client.delete(cart_key(cart.id))
    view = carts.get_enriched_cart(cart.id)
    assert view["status"] == CART_PENDING
    assert [i["line"].quantity for i in view["items"]] == [2]


def test_cart_state_is_reread_under_the_lock(engine, carts, make_product):
    product = make_product()
    cart = carts.create_cart()
    line = carts.add_item(cart.id, product.id, 1)
    assert cart.status == CART_PENDING

    other = sessionmaker(bind=engine)()
    try:
        other.get(CartModel, cart.id).status = CART_CANCELLED
        other.commit()
    finally:
        other.close()

    with pytest.raises(CartNotPending):
        carts.update_item_quantity(cart.id, line.id, 3)
