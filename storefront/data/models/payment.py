from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Uuid
from datetime import datetime, timezone
import uuid

from storefront.data.database import Base

PAYMENT_PENDING = "pendiente"
PAYMENT_APPROVED = "aprobado"
PAYMENT_REJECTED = "rechazado"


class PaymentModel(Base):
    __tablename__ = "pagos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cart_id = Column("carrito_id", Uuid, ForeignKey("carritos.id", ondelete="CASCADE"), nullable=False, index=True)
    total = Column("monto_total", Integer, nullable=False)

    method = Column("metodo", String, nullable=False)
    status = Column("estado", String, nullable=False, default=PAYMENT_PENDING)

    transaction_id = Column("transaccion_id", String, nullable=True)
    discount = Column("descuento", Integer, nullable=False, default=0)
    promotion_code = Column("codigo_promocion", String, nullable=True)

    created_at = Column(
        "creado_en", DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
