# storefront/repos/promotion_repo.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session, aliased

from storefront.data.models.coupon import CouponModel
from storefront.data.models.discount import DiscountModel


def normalize_code(code: str) -> str:
    return code.strip().upper()


class PromotionRepo:
    def __init__(self, db: Session):
        self.db = db

    # lookups
    def find_coupon_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(func.upper(CouponModel.code) == normalize_code(code))
        ).scalar_one_or_none()

    def find_discount_by_code(self, code: str) -> DiscountModel | None:
        return self.db.execute(
            select(DiscountModel).where(func.upper(DiscountModel.code) == normalize_code(code))
        ).scalar_one_or_none()

    def code_taken(self, code: str) -> bool:
        return bool(self.find_coupon_by_code(code) or self.find_discount_by_code(code))

    # discounts
    def get_discount(self, discount_id: UUID) -> DiscountModel | None:
        return self.db.get(DiscountModel, discount_id)

    def get_unused_discount_for_product(self, product_id: int) -> DiscountModel | None:
        return self.db.execute(
            select(DiscountModel).where(
                DiscountModel.product_id == product_id,
                DiscountModel.used.is_(False),
            )
        ).scalars().first()

    def list_discounts(self, product_id: Optional[int] = None) -> List[DiscountModel]:
        stmt = select(DiscountModel).order_by(DiscountModel.created_at)
        if product_id is not None:
            stmt = stmt.where(DiscountModel.product_id == product_id)
        return list(self.db.execute(stmt).scalars().all())

    def create_discount(self, discount: DiscountModel) -> DiscountModel:
        self.db.add(discount)
        self.db.commit()
        self.db.refresh(discount)
        return discount

    def delete_discount(self, discount_id: UUID) -> int:
        result = self.db.execute(delete(DiscountModel).where(DiscountModel.id == discount_id))
        self.db.commit()
        return result.rowcount

    def mark_discount_used(self, discount_id: UUID) -> int:
        result = self.db.execute(
            update(DiscountModel)
            .where(DiscountModel.id == discount_id, DiscountModel.used.is_(False))
            .values(used=True)
        )
        return result.rowcount

    def restore_discount(self, discount_id: UUID) -> int:
        # back to unused, unless the product got a new unused discount meanwhile
        other = aliased(DiscountModel)
        newer = (
            select(other.id)
            .where(
                other.product_id == DiscountModel.product_id,
                other.used.is_(False),
                other.id != DiscountModel.id,
            )
            .correlate(DiscountModel)
            .exists()
        )
        result = self.db.execute(
            update(DiscountModel)
            .where(DiscountModel.id == discount_id, DiscountModel.used.is_(True), ~newer)
            .values(used=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # coupons
    def get_coupon(self, coupon_id: UUID) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def list_coupons(self, active_only: bool = False) -> List[CouponModel]:
        stmt = select(CouponModel).order_by(CouponModel.created_at)
        if active_only:
            stmt = stmt.where(CouponModel.active.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def create_coupon(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def set_coupon_active(self, coupon_id: UUID, active: bool) -> int:
        result = self.db.execute(
            update(CouponModel).where(CouponModel.id == coupon_id).values(active=active)
        )
        self.db.commit()
        return result.rowcount

    def increment_coupon_uses(self, coupon_id: UUID) -> int:
        # never let a concurrent redemption push usos past max_usos, or past 1 on a single-use coupon
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                or_(CouponModel.max_uses.is_(None), CouponModel.uses < CouponModel.max_uses),
                or_(CouponModel.single_use.is_(False), CouponModel.uses == 0),
            )
            .values(uses=CouponModel.uses + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def release_coupon_use(self, coupon_id: UUID) -> int:
        result = self.db.execute(
            update(CouponModel)
            .where(CouponModel.id == coupon_id, CouponModel.uses > 0)
            .values(uses=CouponModel.uses - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
