# storefront/services/checkout_service.py
import uuid
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CART_PAID, CART_PENDING
from storefront.data.models.payment import (
    PaymentModel,
    PAYMENT_APPROVED,
    PAYMENT_PENDING,
    PAYMENT_REJECTED,
)
from storefront.data.models.shipment import ShipmentModel, SHIPMENT_PREPARING
from storefront.domain.errors import (
    CartNotFound,
    CartNotPending,
    CheckoutInProgress,
    EmptyCart,
    PaymentNotFound,
    PaymentNotPending,
)
from storefront.domain.pricing import compute_cart_total
from storefront.repos.cart_repo import CartRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.services.lock_service import LockService, cart_key
from storefront.services.notification_service import NotificationService
from storefront.services.promotion_service import PromotionService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns a pending cart into a payment (and optionally a shipment).

    Checkout only records a *pending* payment. The cart becomes paid when the
    payment is confirmed through ``confirm_payment``, which is the gateway's
    event, not part of the checkout request.

    A promotion is consumed at checkout so two pending payments cannot share a
    single-use code. A rejected payment gives that use back.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.carts = CartRepo(db)
        self.payments = PaymentRepo(db)
        self.promotions = PromotionService(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def checkout(
        self,
        cart_id: UUID,
        method: str,
        shipment: Optional[Dict[str, Any]] = None,
        promotion_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        1. cart must exist, be pending, have no payment in flight and have lines
        2. total is recomputed from the line snapshots, never taken from the client
        3. payment (+ shipment) are written in one transaction
        4. the promotion is consumed only after that commit, and only when it
           actually lowered the total
        """
        cart = self.carts.get_cart(cart_id)
        if not cart:
            raise CartNotFound(cart_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(cart_id)], owner):
            # another request may have changed the cart before we got the lock
            self.carts.refresh(cart)
            if cart.status != CART_PENDING:
                raise CartNotPending(cart_id, cart.status)

            open_payment = self.payments.get_pending_payment(cart_id)
            if open_payment:
                raise CheckoutInProgress(cart_id, open_payment.id)

            items = self.carts.get_cart_items(cart_id)
            if not items:
                raise EmptyCart(cart_id)

            promotion = self.promotions.validate_code(promotion_code) if promotion_code else None
            totals = compute_cart_total(items, promotion)
            if promotion and totals.discount_amount == 0:
                logger.info(f"Promotion {promotion.promotion.code} has no effect on cart {cart_id}, not consumed")
                promotion = None

            try:
                payment = self.payments.add_payment(
                    PaymentModel(
                        cart_id=cart_id,
                        total=totals.total,
                        discount=totals.discount_amount,
                        promotion_code=promotion.promotion.code if promotion else None,
                        method=method,
                        status=PAYMENT_PENDING,
                    )
                )
                shipment_row = None
                if shipment and shipment.get("address"):
                    shipment_row = self.payments.add_shipment(
                        ShipmentModel(
                            cart_id=cart_id,
                            address=shipment["address"],
                            courier=shipment.get("courier"),
                            status=SHIPMENT_PREPARING,
                        )
                    )
                self.payments.commit()
            except SQLAlchemyError:
                self.payments.rollback()
                logger.error(f"Checkout of cart {cart_id} failed, nothing written")
                raise

            logger.info(
                f"Checkout cart {cart_id}: payment {payment.id} pending for {totals.total} "
                f"(subtotal {totals.subtotal}, discount {totals.discount_amount})"
            )

        if promotion and not self.promotions.redeem(promotion):
            # the discount stands, but there is no use to give back on rejection
            self.payments.clear_promotion(payment.id)
            self.payments.commit()

        self.notification_service.checkout_created(cart_id, payment.id, totals.total)

        self.payments.refresh(payment)
        if shipment_row is not None:
            self.payments.refresh(shipment_row)

        return {
            "cart_id": cart_id,
            "cart_status": self.carts.get_cart(cart_id).status,
            "subtotal": totals.subtotal,
            "discount_amount": totals.discount_amount,
            "payment": payment,
            "shipment": shipment_row,
        }

    def confirm_payment(
        self,
        payment_id: UUID,
        approved: bool,
        transaction_id: Optional[str] = None,
    ) -> PaymentModel:
        """Gateway outcome: approved marks the cart paid, rejected leaves it pending."""
        payment = self.payments.get_payment(payment_id)
        if not payment:
            raise PaymentNotFound(payment_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(payment.cart_id)], owner):
            status = PAYMENT_APPROVED if approved else PAYMENT_REJECTED
            if not self.payments.settle_payment(payment_id, status, transaction_id):
                self.payments.rollback()
                self.payments.refresh(payment)
                raise PaymentNotPending(payment_id, payment.status)

            if approved:
                self.carts.set_status(payment.cart_id, CART_PAID)
            self.payments.commit()
            self.payments.refresh(payment)

            if not approved and payment.promotion_code:
                self.promotions.release(payment.promotion_code)

        logger.info(f"Payment {payment_id} {payment.status} (transaction {transaction_id})")
        return payment
