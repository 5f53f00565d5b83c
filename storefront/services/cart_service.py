# storefront/services/cart_service.py
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel, CART_PENDING, CART_CANCELLED
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    CartNotFound,
    CartNotPending,
    CheckoutInProgress,
    CustomerNotFound,
    InvalidQuantity,
    LineNotFound,
    ProductNotFound,
)
from storefront.domain.pricing import subtotal_of
from storefront.repos.cart_repo import CartRepo
from storefront.repos.customer_repo import CustomerRepo
from storefront.repos.payment_repo import PaymentRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.lock_service import LockService, cart_key
from storefront.utils.logging import get_logger
from storefront.utils.settings import CART_TTL_SECONDS

logger = get_logger(__name__)


class CartService:
    """
    Line items of a cart.
    Commands (create, add, update, remove, cancel) change state,
    the enriched view only reads.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.customers = CustomerRepo(db)
        self.payments = PaymentRepo(db)
        self.lock_service = lock_service

    def _get_cart(self, cart_id: UUID) -> CartModel:
        cart = self.repo.get_cart(cart_id)
        if not cart:
            raise CartNotFound(cart_id)
        return cart

    def _ensure_mutable(self, cart: CartModel) -> None:
        # called under the cart lock; re-read what another request may have committed
        self.repo.refresh(cart)
        if cart.status != CART_PENDING:
            raise CartNotPending(cart.id, cart.status)
        payment = self.payments.get_pending_payment(cart.id)
        if payment:
            raise CheckoutInProgress(cart.id, payment.id)

    # query
    def get_enriched_cart(self, cart_id: UUID) -> Dict[str, Any]:
        """
        Every line joined with the current product row. A line whose product
        is gone comes back with product None instead of failing the read.
        """
        cart = self._get_cart(cart_id)
        items = self.repo.get_cart_items(cart_id)
        products = self.products.get_many(i.product_id for i in items)

        return {
            "id": cart.id,
            "customer_id": cart.customer_id,
            "status": cart.status,
            "created_at": cart.created_at,
            "items": [
                {
                    "line": i,
                    "product": products.get(i.product_id),
                    "subtotal": i.unit_price * i.quantity,
                }
                for i in items
            ],
            "subtotal": subtotal_of(items),
        }

    # commands
    def create_cart(self, customer_id: UUID | None = None) -> CartModel:
        """Anonymous carts are always new; a customer gets their pending cart back."""
        if customer_id is not None:
            if not self.customers.get_customer(customer_id):
                raise CustomerNotFound(customer_id)

            existing = self.repo.get_pending_cart_by_customer(customer_id)
            if existing:
                logger.info(f"Customer {customer_id} already has pending cart {existing.id}")
                return existing

        try:
            created = self.repo.create_cart(CartModel(customer_id=customer_id, status=CART_PENDING))
        except IntegrityError:
            # lost the race against a concurrent create, the unique index kept one
            self.repo.rollback()
            existing = self.repo.get_pending_cart_by_customer(customer_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Created cart {created.id} for customer {customer_id}")
        return created

    def add_item(self, cart_id: UUID, product_id: int, quantity: int) -> CartItemModel:
        """
        Add a product, merging into the existing line for the same product.

        The unit price is read from the catalog now and frozen on the line; a
        merge keeps the price of the first add.
        """
        if quantity <= 0:
            raise InvalidQuantity(quantity, product_id=product_id)

        cart = self._get_cart(cart_id)

        product = self.products.get(product_id)
        if not product:
            raise ProductNotFound(product_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(cart_id)], owner):
            self._ensure_mutable(cart)

            existing = self.repo.get_cart_item(cart_id, product_id)
            if existing:
                logger.info(
                    f"Product {product_id} already in cart {cart_id}, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                line = existing
            else:
                logger.info(f"Adding product {product_id} to cart {cart_id} at {product.price}")
                line = self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart_id,
                        product_id=product_id,
                        quantity=quantity,
                        unit_price=product.price,
                    )
                )

            self.repo.commit()
            self.repo.refresh(line)
            return line

    def update_item_quantity(self, cart_id: UUID, line_id: UUID, quantity: int) -> CartItemModel:
        if quantity <= 0:
            raise InvalidQuantity(quantity, line_id=str(line_id))

        cart = self._get_cart(cart_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(cart_id)], owner):
            self._ensure_mutable(cart)

            line = self.repo.get_line(cart_id, line_id)
            if not line:
                raise LineNotFound(cart_id, line_id)

            line.quantity = quantity
            self.repo.commit()
            self.repo.refresh(line)

        logger.info(f"Line {line_id} in cart {cart_id} set to quantity {quantity}")
        return line

    def remove_item(self, cart_id: UUID, line_id: UUID) -> int:
        """Returns how many lines were removed; a missing line is 0, not an error."""
        cart = self._get_cart(cart_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(cart_id)], owner):
            self._ensure_mutable(cart)
            removed = self.repo.delete_line(cart_id, line_id)
            self.repo.commit()

        if removed:
            logger.info(f"Removed line {line_id} from cart {cart_id}")
        else:
            logger.warning(f"Line {line_id} not in cart {cart_id}, nothing removed")
        return removed

    def cancel_cart(self, cart_id: UUID) -> CartModel:
        cart = self._get_cart(cart_id)

        owner = str(uuid.uuid4())
        with self.lock_service.hold([cart_key(cart_id)], owner):
            self._ensure_mutable(cart)
            cart.status = CART_CANCELLED
            self.repo.commit()
        logger.info(f"Cart {cart_id} cancelled")
        return cart

    def cancel_abandoned_carts(self, older_than: timedelta = timedelta(seconds=CART_TTL_SECONDS)) -> int:
        cutoff = datetime.now(timezone.utc) - older_than
        carts = self.repo.find_abandoned(cutoff)

        logger.info(f"Found {len(carts)} abandoned carts older than {cutoff.isoformat()}")

        for cart in carts:
            cart.status = CART_CANCELLED
        self.repo.commit()
        return len(carts)
