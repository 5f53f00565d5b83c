from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_lock_service
from storefront.data.database import get_db
from storefront.domain.schemas import CartOut, CustomerCreate, CustomerOut
from storefront.services.cart_service import CartService
from storefront.services.customer_service import CustomerService
from storefront.services.lock_service import LockService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    return CustomerService(db).create_customer(payload)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: UUID, db: Session = Depends(get_db)):
    return CustomerService(db).get_customer(customer_id)


@router.get("/{customer_id}/cart", response_model=CartOut)
def get_pending_cart(
    customer_id: UUID,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """The customer's pending cart, created on first access."""
    svc = CartService(db, lock_service=lock_service)
    cart = svc.create_cart(customer_id)
    return svc.get_enriched_cart(cart.id)
