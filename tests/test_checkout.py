from datetime import datetime, timedelta, timezone
import uuid

import pytest
from sqlalchemy.orm import sessionmaker

from storefront.data.models.cart import CART_CANCELLED, CART_PAID, CART_PENDING, CartModel
from storefront.data.models.payment import PAYMENT_APPROVED, PAYMENT_PENDING, PAYMENT_REJECTED
from storefront.data.models.product import ProductModel
from storefront.data.models.shipment import SHIPMENT_PREPARING
from storefront.domain.errors import (
    CartNotFound,
    CartNotPending,
    CheckoutInProgress,
    EmptyCart,
    PaymentNotFound,
    PaymentNotPending,
    PromotionExpired,
    PromotionNotApplicable,
    PromotionNotFound,
    ResourceLocked,
)
from storefront.domain.schemas import CouponCreate, DiscountCreate
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import cart_key
from storefront.services.promotion_service import PromotionService


@pytest.fixture
def carts(db, lock_service):
    return CartService(db, lock_service)


@pytest.fixture
def checkout(db, lock_service, notifications):
    return CheckoutService(db, lock_service, notifications)


@pytest.fixture
def filled_cart(carts, make_product):
    keyboard = make_product(name="Keyboard", price=1000)
    cart = carts.create_cart()
    carts.add_item(cart.id, keyboard.id, 2)
    return cart


def test_checkout_creates_pending_payment_and_shipment(checkout, filled_cart, notifications):
    result = checkout.checkout(
        filled_cart.id,
        method="webpay",
        shipment={"address": "Av. Siempre Viva 742", "courier": "chilexpress"},
    )

    payment = result["payment"]
    assert payment.status == PAYMENT_PENDING
    assert payment.total == 2000
    assert payment.discount == 0
    assert payment.method == "webpay"

    assert result["shipment"].status == SHIPMENT_PREPARING
    assert result["shipment"].address == "Av. Siempre Viva 742"

    # the cart is only paid once the payment is confirmed
    assert result["cart_status"] == CART_PENDING
    assert (result["subtotal"], result["discount_amount"]) == (2000, 0)

    assert notifications.sent == [
        ("send_checkout_notification_task", (str(filled_cart.id), str(payment.id), 2000))
    ]


def test_checkout_without_address_has_no_shipment(checkout, filled_cart):
    assert checkout.checkout(filled_cart.id, method="webpay")["shipment"] is None


def test_checkout_of_empty_cart(checkout, carts):
    cart = carts.create_cart()
    with pytest.raises(EmptyCart):
        checkout.checkout(cart.id, method="webpay")
    assert checkout.payments.get_pending_payment(cart.id) is None


def test_checkout_of_unknown_cart(checkout):
    with pytest.raises(CartNotFound):
        checkout.checkout(uuid.uuid4(), method="webpay")


def test_checkout_of_cancelled_cart(checkout, carts, filled_cart):
    carts.cancel_cart(filled_cart.id)
    with pytest.raises(CartNotPending) as exc:
        checkout.checkout(filled_cart.id, method="webpay")
    assert exc.value.detail["status"] == CART_CANCELLED


def test_second_checkout_is_rejected(checkout, filled_cart):
    first = checkout.checkout(filled_cart.id, method="webpay")
    with pytest.raises(CheckoutInProgress) as exc:
        checkout.checkout(filled_cart.id, method="webpay")
    assert exc.value.detail["payment_id"] == str(first["payment"].id)


def test_checkout_while_cart_is_locked(checkout, filled_cart, redis_client):
    redis_client.set(cart_key(filled_cart.id), "someone-else")
    with pytest.raises(ResourceLocked):
        checkout.checkout(filled_cart.id, method="webpay")


def test_total_uses_snapshot_prices(db, checkout, filled_cart):
    product = db.get(ProductModel, filled_cart.items[0].product_id)
    product.price = 9999
    db.commit()

    assert checkout.checkout(filled_cart.id, method="webpay")["payment"].total == 2000


def test_checkout_with_coupon_redeems_it(db, checkout, filled_cart):
    promotions = PromotionService(db)
    promotions.create_coupon(CouponCreate(code="TEN", kind="porcentaje", value=10, max_uses=5))

    result = checkout.checkout(filled_cart.id, method="webpay", promotion_code="ten")

    assert result["payment"].total == 1800
    assert result["payment"].discount == 200
    assert result["payment"].promotion_code == "TEN"
    assert promotions.list_coupons()[0].uses == 1


def test_invalid_promotion_writes_nothing(db, checkout, filled_cart):
    with pytest.raises(PromotionNotFound):
        checkout.checkout(filled_cart.id, method="webpay", promotion_code="NOPE")
    assert checkout.payments.get_pending_payment(filled_cart.id) is None


def test_expired_coupon_is_not_consumed(db, checkout, filled_cart):
    promotions = PromotionService(db)
    promotions.create_coupon(
        CouponCreate(
            code="GONE",
            kind="monto_fijo",
            value=100,
            valid_until=datetime.now(timezone.utc) - timedelta(hours=1),
        )
    )
    with pytest.raises(PromotionExpired):
        checkout.checkout(filled_cart.id, method="webpay", promotion_code="GONE")
    assert promotions.list_coupons()[0].uses == 0


def test_approved_payment_marks_cart_paid(checkout, carts, filled_cart):
    payment = checkout.checkout(filled_cart.id, method="webpay")["payment"]

    confirmed = checkout.confirm_payment(payment.id, approved=True, transaction_id="tx-1")

    assert confirmed.status == PAYMENT_APPROVED
    assert confirmed.transaction_id == "tx-1"
    assert carts.repo.get_cart(filled_cart.id).status == CART_PAID

    with pytest.raises(PaymentNotPending):
        checkout.confirm_payment(payment.id, approved=False)


def test_rejected_payment_leaves_cart_pending(checkout, carts, filled_cart):
    payment = checkout.checkout(filled_cart.id, method="webpay")["payment"]

    assert checkout.confirm_payment(payment.id, approved=False).status == PAYMENT_REJECTED
    assert carts.repo.get_cart(filled_cart.id).status == CART_PENDING

    # the customer may try again
    retry = checkout.checkout(filled_cart.id, method="transferencia")
    assert retry["payment"].id != payment.id


def test_confirm_unknown_payment(checkout):
    with pytest.raises(PaymentNotFound):
        checkout.confirm_payment(uuid.uuid4(), approved=True)


def test_discount_for_absent_product_is_not_consumed(db, checkout, filled_cart, make_product):
    mouse = make_product(name="Mouse", price=500)
    promotions = PromotionService(db)
    promotions.create_discount(DiscountCreate(product_id=mouse.id, percentage=20, code="MS20"))

    with pytest.raises(PromotionNotApplicable):
        checkout.checkout(filled_cart.id, method="webpay", promotion_code="MS20")

    assert promotions.list_discounts()[0].used is False
    assert checkout.payments.get_pending_payment(filled_cart.id) is None


def test_promotion_without_effect_is_not_consumed(db, checkout, filled_cart):
    promotions = PromotionService(db)
    promotions.create_coupon(CouponCreate(code="NOTHING", kind="monto_fijo", value=0, single_use=True))

    payment = checkout.checkout(filled_cart.id, method="webpay", promotion_code="NOTHING")["payment"]

    assert (payment.total, payment.discount, payment.promotion_code) == (2000, 0, None)
    assert promotions.list_coupons()[0].uses == 0


def test_lost_redemption_keeps_discount_but_drops_code(db, checkout, filled_cart, monkeypatch):
    PromotionService(db).create_coupon(CouponCreate(code="TEN", kind="porcentaje", value=10))
    monkeypatch.setattr(checkout.promotions, "redeem", lambda promotion: False)

    payment = checkout.checkout(filled_cart.id, method="webpay", promotion_code="TEN")["payment"]

    assert payment.total == 1800
    assert payment.promotion_code is None


def test_rejected_payment_gives_the_coupon_back(db, checkout, filled_cart):
    promotions = PromotionService(db)
    promotions.create_coupon(CouponCreate(code="ONCE", kind="porcentaje", value=10, single_use=True))

    payment = checkout.checkout(filled_cart.id, method="webpay", promotion_code="ONCE")["payment"]
    assert promotions.list_coupons()[0].uses == 1

    checkout.confirm_payment(payment.id, approved=False)
    assert promotions.list_coupons()[0].uses == 0

    retry = checkout.checkout(filled_cart.id, method="webpay", promotion_code="ONCE")["payment"]
    assert retry.discount == 200
    assert promotions.list_coupons()[0].uses == 1


def test_rejected_payment_restores_the_discount(db, checkout, filled_cart):
    promotions = PromotionService(db)
    product_id = filled_cart.items[0].product_id
    promotions.create_discount(DiscountCreate(product_id=product_id, percentage=25, code="KB25"))

    payment = checkout.checkout(filled_cart.id, method="webpay", promotion_code="KB25")["payment"]
    assert payment.discount == 500
    assert promotions.list_discounts()[0].used is True

    checkout.confirm_payment(payment.id, approved=False)
    assert promotions.list_discounts()[0].used is False


def test_approved_payment_keeps_the_coupon_consumed(db, checkout, filled_cart):
    promotions = PromotionService(db)
    promotions.create_coupon(CouponCreate(code="ONCE", kind="porcentaje", value=10, single_use=True))

    payment = checkout.checkout(filled_cart.id, method="webpay", promotion_code="ONCE")["payment"]
    checkout.confirm_payment(payment.id, approved=True)

    assert promotions.list_coupons()[0].uses == 1


def test_confirm_sees_a_payment_settled_by_another_callback(engine, checkout, filled_cart, lock_service, notifications):
    payment = checkout.checkout(filled_cart.id, method="webpay")["payment"]
    assert payment.status == PAYMENT_PENDING

    other = sessionmaker(bind=engine)()
    try:
        CheckoutService(other, lock_service, notifications).confirm_payment(payment.id, approved=True)
    finally:
        other.close()

    with pytest.raises(PaymentNotPending) as exc:
        checkout.confirm_payment(payment.id, approved=False)
    assert exc.value.detail["status"] == PAYMENT_APPROVED
    assert checkout.carts.get_cart(filled_cart.id).status == CART_PAID


def test_checkout_sees_a_cart_changed_by_another_request(engine, checkout, filled_cart):
    assert filled_cart.status == CART_PENDING

    other = sessionmaker(bind=engine)()
    try:
        other.get(CartModel, filled_cart.id).status = CART_CANCELLED
        other.commit()
    finally:
        other.close()

    with pytest.raises(CartNotPending):
        checkout.checkout(filled_cart.id, method="webpay")
