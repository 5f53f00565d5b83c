# storefront/repos/product_repo.py
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_many(self, product_ids: Iterable[int]) -> Dict[int, ProductModel]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        ).scalars().all()
        return {p.id: p for p in rows}

    def list(
        self,
        *,
        q: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        in_stock: bool = False,
        max_stock: Optional[int] = None,
        exclude_id: Optional[int] = None,
        order_by=None,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[ProductModel], int]:
        conditions = []
        if q:
            pattern = f"%{q}%"
            conditions.append(
                or_(
                    ProductModel.name.ilike(pattern),
                    ProductModel.description.ilike(pattern),
                    ProductModel.category.ilike(pattern),
                )
            )
        if category:
            conditions.append(ProductModel.category == category)
        if min_price is not None:
            conditions.append(ProductModel.price >= min_price)
        if max_price is not None:
            conditions.append(ProductModel.price <= max_price)
        if in_stock:
            conditions.append(ProductModel.stock > 0)
        if max_stock is not None:
            conditions.append(ProductModel.stock <= max_stock)
        if exclude_id is not None:
            conditions.append(ProductModel.id != exclude_id)

        total = self.db.execute(
            select(func.count()).select_from(ProductModel).where(*conditions)
        ).scalar_one()

        stmt = select(ProductModel).where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all()), total

    def categories(self) -> List[str]:
        rows = self.db.execute(
            select(ProductModel.category)
            .where(ProductModel.category.is_not(None))
            .distinct()
            .order_by(ProductModel.category)
        ).scalars().all()
        return list(rows)

    def insert(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product_id: int, fields: dict) -> ProductModel | None:
        product = self.get(product_id)
        if not product:
            return None
        for key, value in fields.items():
            setattr(product, key, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product_id: int) -> int:
        # cart lines, pack memberships and discounts go with it (ON DELETE CASCADE)
        result = self.db.execute(delete(ProductModel).where(ProductModel.id == product_id))
        self.db.commit()
        return result.rowcount

    def set_position(self, product_id: int, position: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(position=position)
        )
        self.db.commit()
        return result.rowcount

    def apply_sale(self, product_id: int, quantity: int) -> int:
        """
        Conditional decrement: UPDATE ... SET STOCK = STOCK - q, NUM_VENTAS = NUM_VENTAS + q
        WHERE id = ? AND STOCK >= q. Zero rows means the stock moved under us.
        Does not commit.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(
                stock=ProductModel.stock - quantity,
                sales_count=ProductModel.sales_count + quantity,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, product: ProductModel) -> None:
        self.db.refresh(product)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
