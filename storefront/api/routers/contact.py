from fastapi import APIRouter, Depends

from storefront.api.deps import get_notification_service
from storefront.domain.schemas import ContactIn, ContactOut
from storefront.services.contact_service import ContactService
from storefront.services.notification_service import NotificationService

router = APIRouter(tags=["contact"])


@router.post("/contact", response_model=ContactOut)
def submit_contact(
    payload: ContactIn,
    notification_service: NotificationService = Depends(get_notification_service),
):
    return ContactService(notification_service).submit(
        name=payload.name,
        email=payload.email,
        message=payload.message,
        phone=payload.phone,
        service=payload.service,
    )
