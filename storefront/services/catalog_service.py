# storefront/services/catalog_service.py
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.domain.errors import ProductNotFound
from storefront.domain.schemas import ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger
from storefront.utils.settings import DEFAULT_PAGE_SIZE, LOW_STOCK_THRESHOLD

logger = get_logger(__name__)

BY_POSITION = (ProductModel.position.asc(), ProductModel.id.asc())


def _paginate(page: int, limit: int):
    page = max(page, 1)
    limit = max(limit, 1)
    return page, limit, (page - 1) * limit


def _envelope(rows, total: int, page: int, limit: int) -> Dict[str, Any]:
    last_index = page * limit - 1
    return {
        "data": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
            "has_more": last_index < total - 1,
        },
    }


class CatalogService:
    """Product reads and writes, including manual display ordering."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    # query
    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get(product_id)
        if not product:
            raise ProductNotFound(product_id)
        return product

    def list_all(self) -> List[ProductModel]:
        rows, _ = self.repo.list(order_by=BY_POSITION)
        return rows

    def list_products(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        page, limit, offset = _paginate(page, limit)
        rows, total = self.repo.list(order_by=BY_POSITION, offset=offset, limit=limit)
        return _envelope(rows, total, page, limit)

    def search(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        in_stock: bool = False,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        page, limit, offset = _paginate(page, limit)
        if category == "all":
            category = None
        rows, total = self.repo.list(
            q=q,
            category=category,
            min_price=min_price,
            max_price=max_price,
            in_stock=in_stock,
            order_by=BY_POSITION,
            offset=offset,
            limit=limit,
        )
        return _envelope(rows, total, page, limit)

    def categories(self) -> List[str]:
        return self.repo.categories()

    def low_stock(self, threshold: int = LOW_STOCK_THRESHOLD) -> List[ProductModel]:
        rows, _ = self.repo.list(
            max_stock=threshold,
            order_by=(ProductModel.stock.asc(), ProductModel.id.asc()),
        )
        return rows

    def top_selling(self, limit: int = 10) -> List[ProductModel]:
        rows, _ = self.repo.list(
            order_by=(ProductModel.sales_count.desc(), ProductModel.id.asc()),
            limit=max(limit, 1),
        )
        return rows

    def related(self, product_id: int, limit: int = 4) -> List[ProductModel]:
        product = self.get_product(product_id)
        if product.category is None:
            return []
        rows, _ = self.repo.list(
            category=product.category,
            exclude_id=product.id,
            order_by=BY_POSITION,
            limit=max(limit, 1),
        )
        return rows

    # commands
    def create_product(self, payload: ProductCreate) -> ProductModel:
        product = ProductModel(**payload.model_dump())
        created = self.repo.insert(product)
        logger.info(f"Created product {created.id} ({created.name})")
        return created

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel:
        fields = payload.model_dump(exclude_unset=True)
        updated = self.repo.update(product_id, fields)
        if not updated:
            raise ProductNotFound(product_id)
        logger.info(f"Updated product {product_id}: {sorted(fields)}")
        return updated

    def delete_product(self, product_id: int) -> int:
        deleted = self.repo.delete(product_id)
        if deleted:
            logger.info(f"Deleted product {product_id}")
        else:
            logger.warning(f"Delete of product {product_id} matched no rows")
        return deleted

    def reorder_positions(self, updates: List[Dict[str, int]]) -> List[Dict[str, Any]]:
        """
        Apply each (id, position) pair on its own. Not transactional: a pair
        that matches no product is reported and the rest still apply.
        """
        results = []
        for item in updates:
            rowcount = self.repo.set_position(item["id"], item["position"])
            results.append({"id": item["id"], "updated": rowcount > 0})
        missed = [r["id"] for r in results if not r["updated"]]
        if missed:
            logger.warning(f"Position update matched no product for ids {missed}")
        logger.info(f"Reordered {len(results) - len(missed)} products")
        return results
