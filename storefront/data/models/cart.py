# storefront/data/models/cart.py
from sqlalchemy import Column, ForeignKey, String, DateTime, Index, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from storefront.data.database import Base

CART_PENDING = "pendiente"
CART_PAID = "pagado"
CART_CANCELLED = "cancelado"


class CartModel(Base):
    __tablename__ = "carritos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    customer_id = Column(
        "cliente_id", Uuid, ForeignKey("clientes.id", ondelete="SET NULL"), nullable=True
    )

    status = Column("estado", String, nullable=False, default=CART_PENDING)
    created_at = Column("creado_en", DateTime(timezone=True), nullable=False, server_default=func.now())

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # one pending cart per customer
        Index(
            "ux_carritos_cliente_pendiente",
            "cliente_id",
            unique=True,
            postgresql_where=text("estado = 'pendiente'"),
            sqlite_where=text("estado = 'pendiente'"),
        ),
    )
