# storefront/services/sale_service.py
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.domain.errors import (
    EmptySale,
    InsufficientStock,
    InvalidPaymentMethod,
    InvalidQuantity,
    InvalidTotal,
    ProductNotFound,
)
from storefront.repos.product_repo import ProductRepo
from storefront.services.lock_service import LockService, product_key
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_METHODS = {"cash", "card", "transfer"}
# spanish names used by the point-of-sale frontend
PAYMENT_METHOD_ALIASES = {"efectivo": "cash", "tarjeta": "card", "transferencia": "transfer"}

SALE_COMPLETED = "completed"


@dataclass
class ReceiptLine:
    product_id: int
    name: str
    quantity: int
    unit_price: int
    subtotal: int


@dataclass
class SaleReceipt:
    id: str
    created_at: datetime
    total: int
    payment_method: str
    status: str = SALE_COMPLETED
    lines: List[ReceiptLine] = field(default_factory=list)


class SaleService:
    """
    Direct point-of-sale sales, outside the cart flow.

    All lines are checked against stock before any of them is written. The
    writes are conditional updates in one transaction, under product locks,
    so a sale either moves every stock counter or none.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = ProductRepo(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    @staticmethod
    def normalize_method(payment_method: str) -> str:
        method = (payment_method or "").strip().lower()
        method = PAYMENT_METHOD_ALIASES.get(method, method)
        if method not in PAYMENT_METHODS:
            raise InvalidPaymentMethod(payment_method, PAYMENT_METHODS)
        return method

    def _validate_stock(self, lines: List[dict]) -> Dict[int, object]:
        requested: "OrderedDict[int, int]" = OrderedDict()
        for line in lines:
            requested[line["product_id"]] = requested.get(line["product_id"], 0) + line["quantity"]

        products = {}
        for product_id, quantity in requested.items():
            product = self.repo.get(product_id)
            if not product:
                raise ProductNotFound(product_id)
            if quantity > product.stock:
                raise InsufficientStock(product_id, product.stock, quantity)
            products[product_id] = product
        return products

    def record_sale(self, lines: List[dict], total: int, payment_method: str) -> SaleReceipt:
        method = self.normalize_method(payment_method)

        if not lines:
            raise EmptySale()

        if total is None or total <= 0:
            raise InvalidTotal(total)

        for line in lines:
            if line["quantity"] <= 0:
                raise InvalidQuantity(line["quantity"], product_id=line["product_id"])

        owner = str(uuid.uuid4())
        keys = [product_key(line["product_id"]) for line in lines]

        with self.lock_service.hold(keys, owner):
            # pass 1: every line must be satisfiable before anything is written
            products = self._validate_stock(lines)

            # pass 2: conditional decrements, all inside one transaction
            try:
                for line in lines:
                    applied = self.repo.apply_sale(line["product_id"], line["quantity"])
                    if not applied:
                        self.repo.rollback()
                        current = self.repo.get(line["product_id"])
                        raise InsufficientStock(
                            line["product_id"],
                            current.stock if current else 0,
                            line["quantity"],
                        )
                self.repo.commit()
            except SQLAlchemyError:
                self.repo.rollback()
                logger.error("Sale rolled back, no stock was changed")
                raise

        receipt_lines = [
            ReceiptLine(
                product_id=line["product_id"],
                name=products[line["product_id"]].name,
                quantity=line["quantity"],
                unit_price=line["unit_price"],
                subtotal=line["unit_price"] * line["quantity"],
            )
            for line in lines
        ]

        computed = sum(rl.subtotal for rl in receipt_lines)
        if computed != total:
            logger.warning(f"Sale total {total} differs from line sum {computed}")

        receipt = SaleReceipt(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            total=total,
            payment_method=method,
            lines=receipt_lines,
        )

        logger.info(f"Sale {receipt.id} completed: {len(receipt_lines)} lines, total {total}, {method}")
        self.notification_service.sale_completed(receipt.id, total, method)
        return receipt
