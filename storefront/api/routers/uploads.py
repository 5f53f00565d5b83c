from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import get_storage_client
from storefront.domain.schemas import UploadOut
from storefront.services.storage_client import StorageClient

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/{kind}", response_model=UploadOut)
async def upload_media(
    kind: str,
    file: UploadFile = File(...),
    storage: StorageClient = Depends(get_storage_client),
):
    """kind is ``image`` or ``video``; returns the public URL of the stored object."""
    data = await file.read()
    url = await run_in_threadpool(
        storage.upload_media,
        kind,
        file.filename or "upload",
        data,
        file.content_type or "application/octet-stream",
    )
    return {"success": True, "url": url}
