# storefront/api/routers/promotions.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import (
    CouponCreate,
    CouponOut,
    DiscountCreate,
    DiscountOut,
    PromotionOut,
    PromotionValidateIn,
)
from storefront.services.promotion_service import PromotionService

router = APIRouter(tags=["promotions"])


def get_service(db: Session):
    return PromotionService(db)


@router.post("/discounts", response_model=DiscountOut, status_code=201)
def create_discount(payload: DiscountCreate, db: Session = Depends(get_db)):
    return get_service(db).create_discount(payload)


@router.get("/discounts", response_model=List[DiscountOut])
def list_discounts(product_id: Optional[int] = None, db: Session = Depends(get_db)):
    return get_service(db).list_discounts(product_id)


@router.delete("/discounts/{discount_id}")
def delete_discount(discount_id: UUID, db: Session = Depends(get_db)):
    return {"deleted": get_service(db).delete_discount(discount_id)}


@router.post("/coupons", response_model=CouponOut, status_code=201)
def create_coupon(payload: CouponCreate, db: Session = Depends(get_db)):
    return get_service(db).create_coupon(payload)


@router.get("/coupons", response_model=List[CouponOut])
def list_coupons(active_only: bool = False, db: Session = Depends(get_db)):
    return get_service(db).list_coupons(active_only)


@router.get("/coupons/{coupon_id}", response_model=CouponOut)
def get_coupon(coupon_id: UUID, db: Session = Depends(get_db)):
    return get_service(db).get_coupon(coupon_id)


@router.post("/coupons/{coupon_id}/deactivate", response_model=CouponOut)
def deactivate_coupon(coupon_id: UUID, db: Session = Depends(get_db)):
    return get_service(db).deactivate_coupon(coupon_id)


@router.post("/promotions/validate", response_model=PromotionOut)
def validate_promotion(payload: PromotionValidateIn, db: Session = Depends(get_db)):
    """Speculative check, usage counters are left untouched."""
    valid = get_service(db).validate_code(payload.code)
    promo = valid.promotion
    return {
        "code": promo.code,
        "source": promo.source,
        "kind": promo.kind,
        "value": promo.value,
        "product_id": promo.product_id,
    }
