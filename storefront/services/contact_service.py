# storefront/services/contact_service.py
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

from storefront.domain.errors import InvalidContact
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger
from storefront.utils.settings import WHATSAPP_NUMBER

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactService:
    def __init__(self, notification_service: NotificationService | None = None):
        self.notification_service = notification_service or NotificationService()

    def submit(
        self,
        name: str,
        email: str,
        message: str,
        phone: Optional[str] = None,
        service: Optional[str] = None,
    ) -> Dict[str, Any]:
        missing = [k for k, v in (("name", name), ("email", email), ("message", message)) if not v]
        if missing:
            raise InvalidContact("Missing required fields", missing=missing)
        if not EMAIL_RE.match(email):
            raise InvalidContact("Invalid email", email=email)

        contact = {
            "name": name,
            "email": email,
            "phone": phone,
            "service": service,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.info(f"Contact message from {name} <{email}>")

        # the whatsapp link works even when the notification could not be queued
        self.notification_service.contact_received(contact)

        text = (
            "Nuevo contacto web:\n\n"
            f"Nombre: {name}\nEmail: {email}\nTeléfono: {phone or 'N/A'}\n"
            f"Servicio: {service or 'N/A'}\nMensaje: {message}"
        )
        return {
            "success": True,
            "message": "Message received",
            "whatsapp_url": f"https://wa.me/{WHATSAPP_NUMBER}?text={quote(text)}",
        }
