# storefront/tasks/expire.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.expire.cancel_abandoned_carts_task")
def cancel_abandoned_carts_task():
    logger.info("Cancel abandoned carts task started")

    db = SessionLocal()
    try:
        cancelled = CartService(db, lock_service=LockService()).cancel_abandoned_carts()
        logger.info(f"Cancelled {cancelled} abandoned carts")
        return cancelled
    finally:
        db.close()
