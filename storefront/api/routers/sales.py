# storefront/api/routers/sales.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service, get_notification_service
from storefront.data.database import get_db
from storefront.domain.schemas import ReceiptOut, SaleIn
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.sale_service import SaleService

router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=ReceiptOut, status_code=201)
def record_sale(
    payload: SaleIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Point-of-sale sale. Either every line's stock is decremented or, on the
    first unsatisfiable line, none is (409 insufficient_stock).
    """
    svc = SaleService(db, lock_service=lock_service, notification_service=notification_service)
    return svc.record_sale(
        [line.model_dump() for line in payload.lines],
        total=payload.total,
        payment_method=payload.payment_method,
    )
