from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.schemas import PackCreate, PackOut, PackUpdate
from storefront.services.pack_service import PackService

router = APIRouter(prefix="/packs", tags=["packs"])


@router.post("", response_model=PackOut, status_code=201)
def create_pack(payload: PackCreate, db: Session = Depends(get_db)):
    return PackService(db).create_pack(payload)


@router.get("", response_model=List[PackOut])
def list_packs(db: Session = Depends(get_db)):
    return PackService(db).list_packs()


@router.get("/{pack_id}", response_model=PackOut)
def get_pack(pack_id: UUID, db: Session = Depends(get_db)):
    return PackService(db).get_pack(pack_id)


@router.put("/{pack_id}", response_model=PackOut)
def update_pack(pack_id: UUID, payload: PackUpdate, db: Session = Depends(get_db)):
    return PackService(db).update_pack(pack_id, payload)


@router.delete("/{pack_id}")
def delete_pack(pack_id: UUID, db: Session = Depends(get_db)):
    return {"deleted": PackService(db).delete_pack(pack_id)}
