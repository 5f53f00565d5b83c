from sqlalchemy import Column, Integer, String, DateTime, Boolean, Uuid, CheckConstraint
from sqlalchemy.sql import func
import uuid

from storefront.data.database import Base

COUPON_PERCENTAGE = "porcentaje"
COUPON_FIXED = "monto_fijo"
CouponKinds = (COUPON_PERCENTAGE, COUPON_FIXED)


class CouponModel(Base):
    __tablename__ = "cupones"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column("codigo", String, nullable=False, unique=True, index=True)

    kind = Column("tipo", String, nullable=False)
    value = Column("valor", Integer, nullable=False)

    single_use = Column("uso_unico", Boolean, nullable=False, default=False)
    max_uses = Column("max_usos", Integer, nullable=True)
    uses = Column("usos", Integer, nullable=False, default=0)

    valid_from = Column("valido_desde", DateTime(timezone=True), nullable=True)
    valid_until = Column("valido_hasta", DateTime(timezone=True), nullable=True)
    active = Column("activo", Boolean, nullable=False, default=True)

    created_at = Column("creado_en", DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("valor >= 0", name="ck_cupones_valor"),
        CheckConstraint("usos >= 0", name="ck_cupones_usos"),
    )
