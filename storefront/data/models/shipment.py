from sqlalchemy import Column, ForeignKey, String, DateTime, Uuid
from datetime import datetime, timezone
import uuid

from storefront.data.database import Base

SHIPMENT_PREPARING = "preparando"


class ShipmentModel(Base):
    __tablename__ = "envios"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cart_id = Column("carrito_id", Uuid, ForeignKey("carritos.id", ondelete="CASCADE"), nullable=False, index=True)

    address = Column("direccion", String, nullable=False)
    status = Column("estado", String, nullable=False, default=SHIPMENT_PREPARING)  # preparando, enviado, entregado
    courier = Column(String, nullable=True)

    created_at = Column(
        "creado_en", DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
