# storefront/api/routers/carts.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service, get_notification_service
from storefront.data.database import get_db
from storefront.domain.schemas import (
    CartLineOut,
    CartOut,
    CheckoutIn,
    CheckoutOut,
    CreateCartIn,
    ItemIn,
    QuantityIn,
    QuoteOut,
    RemovedOut,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.promotion_service import PromotionService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session, lock_service: LockService):
    return CartService(db=db, lock_service=lock_service)


@router.post("", response_model=CartOut, status_code=201)
def create_cart(
    payload: CreateCartIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    cart = svc.create_cart(payload.customer_id)
    return svc.get_enriched_cart(cart.id)


@router.get("/{cart_id}", response_model=CartOut)
def get_cart(
    cart_id: UUID,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).get_enriched_cart(cart_id)


@router.post("/{cart_id}/items", response_model=CartLineOut, status_code=201)
def add_item(
    cart_id: UUID,
    payload: ItemIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).add_item(cart_id, payload.product_id, payload.quantity)


@router.patch("/{cart_id}/items/{line_id}", response_model=CartLineOut)
def update_item(
    cart_id: UUID,
    line_id: UUID,
    payload: QuantityIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).update_item_quantity(cart_id, line_id, payload.quantity)


@router.delete("/{cart_id}/items/{line_id}", response_model=RemovedOut)
def remove_item(
    cart_id: UUID,
    line_id: UUID,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return {"removed": get_service(db, lock_service).remove_item(cart_id, line_id)}


@router.post("/{cart_id}/cancel", response_model=CartOut)
def cancel_cart(
    cart_id: UUID,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = get_service(db, lock_service)
    svc.cancel_cart(cart_id)
    return svc.get_enriched_cart(cart_id)


@router.get("/{cart_id}/quote", response_model=QuoteOut)
def quote_cart(cart_id: UUID, code: Optional[str] = None, db: Session = Depends(get_db)):
    """Totals preview; validates the code without consuming it."""
    totals = PromotionService(db).quote(cart_id, code)
    return {
        "subtotal": totals.subtotal,
        "discount_amount": totals.discount_amount,
        "total": totals.total,
        "promotion_code": code.strip().upper() if code else None,
    }


@router.post("/{cart_id}/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    cart_id: UUID,
    payload: CheckoutIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    svc = CheckoutService(db, lock_service=lock_service, notification_service=notification_service)
    return svc.checkout(
        cart_id,
        method=payload.method,
        shipment=payload.shipment.model_dump() if payload.shipment else None,
        promotion_code=payload.promotion_code,
    )
