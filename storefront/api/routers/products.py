# storefront/api/routers/products.py
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import (
    PositionResultOut,
    PositionsIn,
    ProductCreate,
    ProductOut,
    ProductPageOut,
    ProductUpdate,
)
from storefront.services.catalog_service import CatalogService
from storefront.utils.settings import DEFAULT_PAGE_SIZE, LOW_STOCK_THRESHOLD

router = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return CatalogService(db)


@router.get("", response_model=Union[ProductPageOut, List[ProductOut]])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=200),
    all: bool = False,
    db: Session = Depends(get_db),
):
    """Paged by display position; ``all=true`` returns the whole catalog (admin)."""
    svc = get_service(db)
    if all:
        return svc.list_all()
    return svc.list_products(page, limit)


@router.get("/search", response_model=ProductPageOut)
def search_products(
    q: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[int] = Query(None, alias="minPrice"),
    max_price: Optional[int] = Query(None, alias="maxPrice"),
    in_stock: bool = Query(False, alias="inStock"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return get_service(db).search(q, category, min_price, max_price, in_stock, page, limit)


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    return get_service(db).categories()


@router.get("/low-stock", response_model=List[ProductOut])
def low_stock(threshold: int = LOW_STOCK_THRESHOLD, db: Session = Depends(get_db)):
    return get_service(db).low_stock(threshold)


@router.get("/top-selling", response_model=List[ProductOut])
def top_selling(limit: int = Query(10, ge=1), db: Session = Depends(get_db)):
    return get_service(db).top_selling(limit)


@router.put("/positions", response_model=List[PositionResultOut])
def update_positions(payload: PositionsIn, db: Session = Depends(get_db)):
    updates = [p.model_dump() for p in payload.positions]
    return get_service(db).reorder_positions(updates)


@router.get("/{product_id}/related", response_model=List[ProductOut])
def related_products(product_id: int, limit: int = Query(4, ge=1), db: Session = Depends(get_db)):
    return get_service(db).related(product_id, limit)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return get_service(db).get_product(product_id)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    return get_service(db).create_product(payload)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return get_service(db).update_product(product_id, payload)


@router.delete("/{product_id}")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    return {"deleted": get_service(db).delete_product(product_id)}
