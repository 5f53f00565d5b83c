from sqlalchemy import Column, Integer, ForeignKey, String, Text, DateTime, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from storefront.data.database import Base
from storefront.data.models.product import ProductId


class PackModel(Base):
    __tablename__ = "packs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column("nombre", String, nullable=False)
    description = Column("descripcion", Text, nullable=True)
    price = Column("precio", Integer, nullable=False)
    created_at = Column("creado_en", DateTime(timezone=True), server_default=func.now())

    members = relationship(
        "PackProductModel",
        back_populates="pack",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (CheckConstraint("precio >= 0", name="ck_packs_precio"),)


class PackProductModel(Base):
    __tablename__ = "pack_productos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    pack_id = Column(Uuid, ForeignKey("packs.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(
        "producto_id", ProductId, ForeignKey("Productos.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quantity = Column("cantidad", Integer, nullable=False, default=1)

    pack = relationship("PackModel", back_populates="members")

    __table_args__ = (CheckConstraint("cantidad > 0", name="ck_pack_productos_cantidad"),)
