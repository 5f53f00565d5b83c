# storefront/services/storage_client.py
import secrets
import time

import requests
from requests import RequestException

from storefront.domain.errors import UpstreamError, ValidationError
from storefront.utils.logging import get_logger
from storefront.utils.retry import http_retry
from storefront.utils.settings import STORAGE_BUCKET, STORAGE_KEY, STORAGE_URL

logger = get_logger(__name__)

MEDIA_FOLDERS = {"image": "images", "video": "videos"}
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


class StorageClient:
    """Object uploads against the hosted storage REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        bucket: str | None = None,
        timeout: int = 10,
    ):
        self.base_url = (base_url or STORAGE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else STORAGE_KEY
        self.bucket = bucket or STORAGE_BUCKET
        self.timeout = timeout

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    @http_retry()
    def _post(self, path: str, data: bytes, content_type: str) -> requests.Response:
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        logger.info(f"StorageClient POST {url}")
        resp = requests.post(
            url,
            data=data,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": content_type,
                "Cache-Control": "3600",
                "x-upsert": "false",
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp

    def put(self, path: str, data: bytes, content_type: str) -> str:
        try:
            self._post(path, data, content_type)
        except RequestException as e:
            logger.error(f"Upload of {path} failed: {e}")
            raise UpstreamError("Blob store upload failed", path=path) from e
        return self.public_url(path)

    def upload_media(self, kind: str, filename: str, data: bytes, content_type: str) -> str:
        folder = MEDIA_FOLDERS.get(kind)
        if folder is None:
            raise ValidationError(f"Unknown media kind {kind!r}", kind=kind)
        if not data:
            raise ValidationError("No file provided", kind=kind)
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError("File too large", size=len(data), limit=MAX_UPLOAD_BYTES)

        ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        name = f"{secrets.token_hex(6)}_{int(time.time() * 1000)}.{ext}"
        return self.put(f"{folder}/{name}", data, content_type)
