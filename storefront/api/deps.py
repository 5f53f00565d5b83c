# storefront/api/deps.py
from functools import lru_cache

from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.storage_client import StorageClient


@lru_cache
def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


@lru_cache
def get_storage_client() -> StorageClient:
    return StorageClient()
