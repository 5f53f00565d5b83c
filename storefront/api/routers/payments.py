from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service, get_notification_service
from storefront.data.database import get_db
from storefront.domain.schemas import PaymentConfirmIn, PaymentOut
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/{payment_id}/confirm", response_model=PaymentOut)
def confirm_payment(
    payment_id: UUID,
    payload: PaymentConfirmIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Payment gateway callback: approves (cart becomes paid) or rejects."""
    svc = CheckoutService(db, lock_service=lock_service, notification_service=notification_service)
    return svc.confirm_payment(payment_id, payload.approved, payload.transaction_id)
