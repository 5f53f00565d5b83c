# storefront/repos/pack_repo.py
from typing import List
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storefront.data.models.pack import PackModel, PackProductModel


class PackRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_pack(self, pack_id: UUID) -> PackModel | None:
        return self.db.get(PackModel, pack_id)

    def list_packs(self) -> List[PackModel]:
        return list(
            self.db.execute(select(PackModel).order_by(PackModel.created_at)).scalars().all()
        )

    def get_members(self, pack_id: UUID) -> List[PackProductModel]:
        return list(
            self.db.execute(
                select(PackProductModel).where(PackProductModel.pack_id == pack_id)
            ).scalars().all()
        )

    def add_pack(self, pack: PackModel) -> PackModel:
        self.db.add(pack)
        self.db.flush()
        return pack

    def replace_members(self, pack_id: UUID, members: List[PackProductModel]) -> None:
        self.db.execute(delete(PackProductModel).where(PackProductModel.pack_id == pack_id))
        self.db.add_all(members)
        self.db.flush()

    def delete_pack(self, pack_id: UUID) -> int:
        result = self.db.execute(delete(PackModel).where(PackModel.id == pack_id))
        self.db.commit()
        return result.rowcount

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
