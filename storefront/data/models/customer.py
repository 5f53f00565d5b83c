from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
import uuid

from storefront.data.database import Base


class CustomerModel(Base):
    __tablename__ = "clientes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column("nombre", String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    phone = Column("telefono", String, nullable=True)
    address = Column("direccion", String, nullable=True)
    created_at = Column("creado_en", DateTime(timezone=True), server_default=func.now())
