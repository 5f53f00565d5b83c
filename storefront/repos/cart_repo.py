# storefront/repos/cart_repo.py
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel, CART_PENDING
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.payment import PaymentModel, PAYMENT_PENDING


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # carts
    def get_cart(self, cart_id: UUID) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_pending_cart_by_customer(self, customer_id: UUID) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(
                CartModel.customer_id == customer_id,
                CartModel.status == CART_PENDING,
            )
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def set_status(self, cart_id: UUID, status: str) -> int:
        result = self.db.execute(
            update(CartModel).where(CartModel.id == cart_id).values(status=status)
        )
        return result.rowcount

    def find_abandoned(self, cutoff: datetime) -> List[CartModel]:
        # pending carts created before cutoff with no checkout in flight
        open_payment = (
            select(PaymentModel.id)
            .where(
                PaymentModel.cart_id == CartModel.id,
                PaymentModel.status == PAYMENT_PENDING,
            )
            .exists()
        )
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.status == CART_PENDING,
                    CartModel.created_at < cutoff,
                    ~open_payment,
                )
            ).scalars().all()
        )

    # lines
    def get_cart_items(self, cart_id: UUID) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.created_at, CartItemModel.id)
            ).scalars().all()
        )

    def get_cart_item(self, cart_id: UUID, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def get_line(self, cart_id: UUID, line_id: UUID) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == line_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_line(self, cart_id: UUID, line_id: UUID) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == line_id,
            )
        )
        return result.rowcount

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
