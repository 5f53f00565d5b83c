# storefront/data/models/product.py
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, JSON, CheckConstraint
from sqlalchemy.sql import func

from storefront.data.database import Base

# BIGINT ids on postgres, INTEGER on sqlite so autoincrement works
ProductId = BigInteger().with_variant(Integer, "sqlite")


class ProductModel(Base):
    __tablename__ = "Productos"

    id = Column(ProductId, primary_key=True, autoincrement=True)
    name = Column("NOMBRE", String, nullable=False)
    description = Column("DETALLE", Text, nullable=True)
    price = Column("PRECIO", Integer, nullable=False, default=0)
    category = Column("CATEGORIA", String, nullable=True, index=True)
    subcategory = Column("SUBCATEGORIA", String, nullable=True)
    stock = Column("STOCK", Integer, nullable=False, default=0)
    position = Column("POSICION", Integer, nullable=False, default=0)
    sales_count = Column("NUM_VENTAS", Integer, nullable=False, default=0)

    images = Column("IMAGENES", JSON, nullable=False, default=list)
    videos = Column("VIDEOS", JSON, nullable=False, default=list)
    media = Column("MEDIA", JSON, nullable=False, default=dict)

    created_at = Column("creado_en", DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint('"STOCK" >= 0', name="ck_productos_stock"),
        CheckConstraint('"NUM_VENTAS" >= 0', name="ck_productos_num_ventas"),
    )
