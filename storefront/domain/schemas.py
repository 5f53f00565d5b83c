# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional
from datetime import datetime
from uuid import UUID


# =====================================================
# CATALOG
# =====================================================
class ProductCreate(BaseModel):
    """Schema for creating a product."""

    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = None
    price: int = Field(0, ge=0, description="Price in the smallest currency unit")
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock: int = Field(0, ge=0)
    position: int = 0
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    media: Dict[str, Any] = Field(default_factory=dict)


class ProductUpdate(BaseModel):
    """Partial product update, only the fields that are sent get written."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    position: Optional[int] = None
    images: Optional[List[str]] = None
    videos: Optional[List[str]] = None
    media: Optional[Dict[str, Any]] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: int
    category: Optional[str] = None
    subcategory: Optional[str] = None
    stock: int
    position: int
    sales_count: int
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    media: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class ProductSummaryOut(BaseModel):
    id: int
    name: str
    price: int
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class ProductPageOut(BaseModel):
    data: List[ProductOut]
    pagination: PaginationOut


class PositionIn(BaseModel):
    id: int
    position: int


class PositionsIn(BaseModel):
    positions: List[PositionIn]


class PositionResultOut(BaseModel):
    id: int
    updated: bool


# =====================================================
# CUSTOMERS
# =====================================================
class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    phone: Optional[str] = None
    address: Optional[str] = None


class CustomerOut(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# CARTS
# =====================================================
class CreateCartIn(BaseModel):
    """Schema for creating a cart, anonymous when customer_id is missing."""

    customer_id: Optional[UUID] = None


class ItemIn(BaseModel):
    """Schema for adding a product to a cart."""

    product_id: int = Field(..., gt=0)
    quantity: int


class QuantityIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    id: UUID
    product_id: int
    quantity: int
    unit_price: int

    model_config = ConfigDict(from_attributes=True)


class EnrichedLineOut(BaseModel):
    line: CartLineOut
    product: Optional[ProductSummaryOut] = None
    subtotal: int


class CartOut(BaseModel):
    id: UUID
    customer_id: Optional[UUID] = None
    status: str
    created_at: Optional[datetime] = None
    items: List[EnrichedLineOut]
    subtotal: int


class RemovedOut(BaseModel):
    removed: int


class QuoteOut(BaseModel):
    subtotal: int
    discount_amount: int
    total: int
    promotion_code: Optional[str] = None


# =====================================================
# CHECKOUT
# =====================================================
class ShipmentIn(BaseModel):
    address: str = Field(..., min_length=1)
    courier: Optional[str] = None


class CheckoutIn(BaseModel):
    method: str = Field(..., min_length=1, description="webpay, transferencia, ...")
    shipment: Optional[ShipmentIn] = None
    promotion_code: Optional[str] = None


class PaymentOut(BaseModel):
    id: UUID
    cart_id: UUID
    total: int
    discount: int
    promotion_code: Optional[str] = None
    method: str
    status: str
    transaction_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShipmentOut(BaseModel):
    id: UUID
    cart_id: UUID
    address: str
    status: str
    courier: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    cart_id: UUID
    cart_status: str
    subtotal: int
    discount_amount: int
    payment: PaymentOut
    shipment: Optional[ShipmentOut] = None


class PaymentConfirmIn(BaseModel):
    approved: bool
    transaction_id: Optional[str] = None


# =====================================================
# PROMOTIONS
# =====================================================
class DiscountCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    percentage: int
    code: str = Field(..., min_length=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class DiscountOut(BaseModel):
    id: UUID
    product_id: int
    percentage: int
    code: str
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    used: bool

    model_config = ConfigDict(from_attributes=True)


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1)
    kind: str = Field(..., description="'porcentaje' or 'monto_fijo'")
    value: int = Field(..., ge=0)
    single_use: bool = False
    max_uses: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    active: bool = True


class CouponOut(BaseModel):
    id: UUID
    code: str
    kind: str
    value: int
    single_use: bool
    max_uses: Optional[int] = None
    uses: int
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    active: bool

    model_config = ConfigDict(from_attributes=True)


class PromotionValidateIn(BaseModel):
    code: str = Field(..., min_length=1)


class PromotionOut(BaseModel):
    code: str
    source: str
    kind: str
    value: int
    product_id: Optional[int] = None


# =====================================================
# PACKS
# =====================================================
class PackItemIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0)


class PackCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: int = Field(..., ge=0)
    items: List[PackItemIn] = Field(default_factory=list)


class PackUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    items: Optional[List[PackItemIn]] = None


class PackItemOut(BaseModel):
    product_id: int
    quantity: int
    product: Optional[ProductSummaryOut] = None


class PackOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: int
    items: List[PackItemOut]


# =====================================================
# POINT OF SALE
# =====================================================
class SaleLineIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int
    unit_price: int = Field(..., ge=0)


class SaleIn(BaseModel):
    lines: List[SaleLineIn] = Field(..., min_length=1)
    total: int
    payment_method: str


class ReceiptLineOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price: int
    subtotal: int

    model_config = ConfigDict(from_attributes=True)


class ReceiptOut(BaseModel):
    id: str
    created_at: datetime
    lines: List[ReceiptLineOut]
    total: int
    payment_method: str
    status: str

    model_config = ConfigDict(from_attributes=True)


# =====================================================
# SIDE CHANNELS
# =====================================================
class ContactIn(BaseModel):
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    service: Optional[str] = None
    message: str = ""


class ContactOut(BaseModel):
    success: bool
    message: str
    whatsapp_url: str


class UploadOut(BaseModel):
    success: bool
    url: str
