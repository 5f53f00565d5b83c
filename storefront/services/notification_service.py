# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Best-effort notifications, processed asynchronously by Celery.
    A failure to enqueue is logged and never fails the calling operation.
    """

    def _enqueue(self, task, *args):
        try:
            task.delay(*args)
            return True
        except Exception as e:
            logger.warning(f"Could not enqueue {task.name}: {e}")
            return False

    def checkout_created(self, cart_id, payment_id, total: int) -> bool:
        return self._enqueue(send_checkout_notification_task, str(cart_id), str(payment_id), total)

    def sale_completed(self, receipt_id: str, total: int, payment_method: str) -> bool:
        return self._enqueue(send_sale_notification_task, receipt_id, total, payment_method)

    def contact_received(self, contact: dict) -> bool:
        return self._enqueue(send_contact_notification_task, contact)


@celery_app.task(name="storefront.services.notification_service.send_checkout_notification_task")
def send_checkout_notification_task(cart_id: str, payment_id: str, total: int):
    logger.info(f"[NOTIFICATION] Cart {cart_id}: payment {payment_id} for {total} awaiting confirmation")
    return {"cart_id": cart_id, "payment_id": payment_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_sale_notification_task")
def send_sale_notification_task(receipt_id: str, total: int, payment_method: str):
    logger.info(f"[NOTIFICATION] Sale {receipt_id} completed: {total} by {payment_method}")
    return {"receipt_id": receipt_id, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.send_contact_notification_task")
def send_contact_notification_task(contact: dict):
    logger.info(
        f"[NOTIFICATION] Contact message from {contact.get('name')} <{contact.get('email')}>"
    )
    return {"email": contact.get("email"), "status": "sent"}
