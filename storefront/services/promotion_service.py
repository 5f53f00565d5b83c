# storefront/services/promotion_service.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.coupon import COUPON_PERCENTAGE, CouponModel, CouponKinds
from storefront.data.models.discount import DiscountModel
from storefront.domain.errors import (
    ActiveDiscountExists,
    CartNotFound,
    CouponNotFound,
    DuplicateCode,
    InvalidPercentage,
    InvalidPromotionKind,
    ProductNotFound,
)
from storefront.domain.pricing import (
    CartTotal,
    Promotion,
    SOURCE_COUPON,
    ValidPromotion,
    compute_cart_total,
    validate_promotion,
)
from storefront.domain.schemas import CouponCreate, DiscountCreate
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.promotion_repo import PromotionRepo, normalize_code
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PromotionService:
    """
    Per-product discounts and cart-level coupons, looked up by code.

    Validation never consumes a promotion; ``redeem`` is the separate step
    the checkout runs once its own transaction has committed.
    """

    def __init__(self, db: Session):
        self.repo = PromotionRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)

    # query
    def find_by_code(self, code: str) -> Optional[Promotion]:
        coupon = self.repo.find_coupon_by_code(code)
        if coupon:
            return Promotion.from_coupon(coupon)
        discount = self.repo.find_discount_by_code(code)
        if discount:
            return Promotion.from_discount(discount)
        return None

    def validate_code(self, code: str, now: Optional[datetime] = None) -> ValidPromotion:
        return validate_promotion(self.find_by_code(code), now, code=code)

    def quote(self, cart_id: UUID, code: Optional[str] = None) -> CartTotal:
        if not self.carts.get_cart(cart_id):
            raise CartNotFound(cart_id)
        items = self.carts.get_cart_items(cart_id)
        promotion = self.validate_code(code) if code else None
        return compute_cart_total(items, promotion)

    # consumption
    def redeem(self, promotion: ValidPromotion) -> bool:
        promo = promotion.promotion
        if promo.source == SOURCE_COUPON:
            rowcount = self.repo.increment_coupon_uses(promo.id)
        else:
            rowcount = self.repo.mark_discount_used(promo.id)
        self.repo.commit()

        if rowcount == 0:
            # someone else consumed the last use between validation and now
            logger.warning(f"Promotion {promo.code} could not be redeemed, no uses left")
            return False

        logger.info(f"Promotion {promo.code} redeemed")
        return True

    def release(self, code: str) -> bool:
        """
        Give back the use a checkout took, when its payment is rejected.
        Returns False when there was nothing to give back.
        """
        promotion = self.find_by_code(code)
        if promotion is None:
            logger.warning(f"Promotion {code} no longer exists, nothing to release")
            return False

        if promotion.source == SOURCE_COUPON:
            rowcount = self.repo.release_coupon_use(promotion.id)
        else:
            rowcount = self.repo.restore_discount(promotion.id)
        self.repo.commit()

        if rowcount == 0:
            logger.warning(f"Promotion {promotion.code} could not be released")
            return False

        logger.info(f"Promotion {promotion.code} released")
        return True

    # discounts
    def create_discount(self, payload: DiscountCreate) -> DiscountModel:
        if not 1 <= payload.percentage <= 100:
            raise InvalidPercentage(payload.percentage)

        if not self.products.get(payload.product_id):
            raise ProductNotFound(payload.product_id)

        code = normalize_code(payload.code)
        if self.repo.code_taken(code):
            raise DuplicateCode(code)

        current = self.repo.get_unused_discount_for_product(payload.product_id)
        if current:
            raise ActiveDiscountExists(payload.product_id, current.code)

        try:
            created = self.repo.create_discount(
                DiscountModel(
                    product_id=payload.product_id,
                    percentage=payload.percentage,
                    code=code,
                    valid_from=payload.valid_from,
                    valid_until=payload.valid_until,
                    used=False,
                )
            )
        except IntegrityError:
            self.repo.rollback()
            current = self.repo.get_unused_discount_for_product(payload.product_id)
            if current:
                raise ActiveDiscountExists(payload.product_id, current.code)
            raise DuplicateCode(code)

        logger.info(f"Discount {code} ({payload.percentage}%) created for product {payload.product_id}")
        return created

    def list_discounts(self, product_id: Optional[int] = None) -> List[DiscountModel]:
        return self.repo.list_discounts(product_id)

    def delete_discount(self, discount_id: UUID) -> int:
        deleted = self.repo.delete_discount(discount_id)
        if not deleted:
            logger.warning(f"Delete of discount {discount_id} matched no rows")
        return deleted

    # coupons
    def create_coupon(self, payload: CouponCreate) -> CouponModel:
        if payload.kind not in CouponKinds:
            raise InvalidPromotionKind(payload.kind)
        if payload.kind == COUPON_PERCENTAGE and not 1 <= payload.value <= 100:
            raise InvalidPercentage(payload.value)

        code = normalize_code(payload.code)
        if self.repo.code_taken(code):
            raise DuplicateCode(code)

        try:
            created = self.repo.create_coupon(
                CouponModel(
                    code=code,
                    kind=payload.kind,
                    value=payload.value,
                    single_use=payload.single_use,
                    max_uses=payload.max_uses,
                    uses=0,
                    valid_from=payload.valid_from,
                    valid_until=payload.valid_until,
                    active=payload.active,
                )
            )
        except IntegrityError:
            self.repo.rollback()
            raise DuplicateCode(code)

        logger.info(f"Coupon {code} created ({payload.kind} {payload.value})")
        return created

    def get_coupon(self, coupon_id: UUID) -> CouponModel:
        coupon = self.repo.get_coupon(coupon_id)
        if not coupon:
            raise CouponNotFound(coupon_id)
        return coupon

    def list_coupons(self, active_only: bool = False) -> List[CouponModel]:
        return self.repo.list_coupons(active_only)

    def deactivate_coupon(self, coupon_id: UUID) -> CouponModel:
        coupon = self.get_coupon(coupon_id)
        self.repo.set_coupon_active(coupon.id, False)
        logger.info(f"Coupon {coupon.code} deactivated")
        return self.get_coupon(coupon_id)
