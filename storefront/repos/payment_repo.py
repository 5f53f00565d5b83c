# storefront/repos/payment_repo.py
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.payment import PaymentModel, PAYMENT_PENDING
from storefront.data.models.shipment import ShipmentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_payment(self, payment_id: UUID) -> PaymentModel | None:
        return self.db.get(PaymentModel, payment_id)

    def get_pending_payment(self, cart_id: UUID) -> PaymentModel | None:
        return self.db.execute(
            select(PaymentModel).where(
                PaymentModel.cart_id == cart_id,
                PaymentModel.status == PAYMENT_PENDING,
            )
        ).scalars().first()

    def get_shipment(self, cart_id: UUID) -> ShipmentModel | None:
        return self.db.execute(
            select(ShipmentModel).where(ShipmentModel.cart_id == cart_id)
        ).scalars().first()

    def add_payment(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def settle_payment(self, payment_id: UUID, status: str, transaction_id: str | None) -> int:
        # only a pending payment can be settled; 0 rows means another callback won
        result = self.db.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment_id, PaymentModel.status == PAYMENT_PENDING)
            .values(status=status, transaction_id=transaction_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def clear_promotion(self, payment_id: UUID) -> None:
        self.db.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment_id)
            .values(promotion_code=None)
            .execution_options(synchronize_session=False)
        )

    def add_shipment(self, shipment: ShipmentModel) -> ShipmentModel:
        self.db.add(shipment)
        self.db.flush()
        return shipment

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
