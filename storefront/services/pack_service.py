# storefront/services/pack_service.py
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from storefront.data.models.pack import PackModel, PackProductModel
from storefront.domain.errors import PackNotFound, ProductNotFound
from storefront.domain.schemas import PackCreate, PackItemIn, PackUpdate
from storefront.repos.pack_repo import PackRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PackService:
    """Fixed-price bundles. Membership is always replaced as a whole."""

    def __init__(self, db: Session):
        self.repo = PackRepo(db)
        self.products = ProductRepo(db)

    def _members(self, pack_id: UUID, items: List[PackItemIn]) -> List[PackProductModel]:
        known = self.products.get_many(i.product_id for i in items)
        for item in items:
            if item.product_id not in known:
                raise ProductNotFound(item.product_id)
        return [
            PackProductModel(pack_id=pack_id, product_id=i.product_id, quantity=i.quantity)
            for i in items
        ]

    def _view(self, pack: PackModel) -> Dict[str, Any]:
        members = self.repo.get_members(pack.id)
        products = self.products.get_many(m.product_id for m in members)
        return {
            "id": pack.id,
            "name": pack.name,
            "description": pack.description,
            "price": pack.price,
            "items": [
                {
                    "product_id": m.product_id,
                    "quantity": m.quantity,
                    "product": products.get(m.product_id),
                }
                for m in members
            ],
        }

    def get_pack(self, pack_id: UUID) -> Dict[str, Any]:
        pack = self.repo.get_pack(pack_id)
        if not pack:
            raise PackNotFound(pack_id)
        return self._view(pack)

    def list_packs(self) -> List[Dict[str, Any]]:
        return [self._view(p) for p in self.repo.list_packs()]

    def create_pack(self, payload: PackCreate) -> Dict[str, Any]:
        pack = self.repo.add_pack(
            PackModel(name=payload.name, description=payload.description, price=payload.price)
        )
        try:
            self.repo.replace_members(pack.id, self._members(pack.id, payload.items))
        except ProductNotFound:
            self.repo.rollback()
            raise
        self.repo.commit()

        logger.info(f"Created pack {pack.id} ({pack.name}) with {len(payload.items)} products")
        return self._view(pack)

    def update_pack(self, pack_id: UUID, payload: PackUpdate) -> Dict[str, Any]:
        pack = self.repo.get_pack(pack_id)
        if not pack:
            raise PackNotFound(pack_id)

        fields = payload.model_dump(exclude_unset=True, exclude={"items"})
        for key, value in fields.items():
            setattr(pack, key, value)

        if payload.items is not None:
            # delete-then-reinsert, no diffing
            try:
                self.repo.replace_members(pack_id, self._members(pack_id, payload.items))
            except ProductNotFound:
                self.repo.rollback()
                raise

        self.repo.commit()
        logger.info(f"Updated pack {pack_id}")
        return self._view(pack)

    def delete_pack(self, pack_id: UUID) -> int:
        deleted = self.repo.delete_pack(pack_id)
        if not deleted:
            logger.warning(f"Delete of pack {pack_id} matched no rows")
        return deleted
