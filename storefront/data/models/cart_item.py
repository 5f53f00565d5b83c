from sqlalchemy import Column, Integer, ForeignKey, DateTime, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from storefront.data.database import Base
from storefront.data.models.product import ProductId


class CartItemModel(Base):
    __tablename__ = "detalle_carrito"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cart_id = Column(
        "carrito_id", Uuid, ForeignKey("carritos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(
        "producto_id", ProductId, ForeignKey("Productos.id", ondelete="CASCADE"), nullable=False, index=True
    )

    quantity = Column("cantidad", Integer, nullable=False)
    unit_price = Column("precio_unitario", Integer, nullable=False)
    created_at = Column(
        "creado_en", DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (
        UniqueConstraint("carrito_id", "producto_id", name="u_carrito_producto"),
        CheckConstraint("cantidad > 0", name="ck_detalle_carrito_cantidad"),
    )
