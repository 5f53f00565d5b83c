from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Boolean, Index, Uuid, CheckConstraint, text
from sqlalchemy.sql import func
import uuid

from storefront.data.database import Base
from storefront.data.models.product import ProductId


class DiscountModel(Base):
    __tablename__ = "descuentos_productos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(
        "producto_id", ProductId, ForeignKey("Productos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    percentage = Column("porcentaje", Integer, nullable=False)

    code = Column("codigo", String, nullable=False, unique=True)
    valid_from = Column("valido_desde", DateTime(timezone=True), nullable=True)
    valid_until = Column("valido_hasta", DateTime(timezone=True), nullable=True)
    used = Column("usado", Boolean, nullable=False, default=False)

    created_at = Column("creado_en", DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("porcentaje > 0 AND porcentaje <= 100", name="ck_descuentos_porcentaje"),
        # one unused discount per product
        Index(
            "ux_descuentos_producto_activo",
            "producto_id",
            unique=True,
            postgresql_where=text("usado = false"),
            sqlite_where=text("usado = 0"),
        ),
    )
