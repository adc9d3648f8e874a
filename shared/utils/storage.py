"""
shared/utils/storage.py
Blob store for uploaded images (banners, event covers, profile pictures).

Two backends, chosen by STORAGE_BACKEND:
- local: files under UPLOAD_DIR, served by the app at UPLOAD_URL_PREFIX
- s3:    S3 / Cloudflare R2 bucket, referenced by public URL

Contract: ``store(bytes) -> public URL/path`` and ``delete(ref)`` which is
best effort: failures are logged and never raised to the caller.
"""

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from config.settings import settings

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    async def store(self, content: bytes, filename: str, content_type: str, folder: str) -> str: ...

    async def delete(self, ref: Optional[str]) -> None: ...


def _object_name(filename: str, content_type: str) -> str:
    ext = Path(filename or "").suffix.lower()
    if not ext:
        ext = mimetypes.guess_extension(content_type or "") or ""
    return f"{uuid.uuid4().hex}{ext}"


# ── Local disk ────────────────────────────────────────────────

class LocalBlobStore:
    def __init__(self, root: str, url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    async def store(self, content: bytes, filename: str, content_type: str, folder: str) -> str:
        name = _object_name(filename, content_type)
        target_dir = self.root / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool((target_dir / name).write_bytes, content)
        return f"{self.url_prefix}/{folder}/{name}"

    def _path_for(self, ref: str) -> Optional[Path]:
        if not ref.startswith(self.url_prefix + "/"):
            return None
        relative = ref[len(self.url_prefix) + 1:]
        path = (self.root / relative).resolve()
        # Refuse anything that escapes the upload root
        if self.root.resolve() not in path.parents:
            return None
        return path

    async def delete(self, ref: Optional[str]) -> None:
        if not ref:
            return
        path = self._path_for(ref)
        if path is None:
            logger.warning(f"Skipping delete of foreign asset reference: {ref}")
            return
        try:
            await run_in_threadpool(path.unlink)
        except OSError as e:
            logger.warning(f"Failed to delete local asset {ref}: {e}")


# ── S3 / R2 ───────────────────────────────────────────────────

def get_s3_client():
    """Get configured boto3 client for S3-compatible storage (R2 or AWS)."""
    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        aws_access_key_id=settings.S3_ACCESS_KEY_ID,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name=settings.S3_REGION,
    )


class S3BlobStore:
    def __init__(self, bucket: str, public_base_url: Optional[str] = None):
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = get_s3_client()
        return self._client

    def _url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{self.bucket}/{key}"

    def _key_for(self, ref: str) -> str:
        if self.public_base_url and ref.startswith(self.public_base_url + "/"):
            return ref[len(self.public_base_url) + 1:]
        marker = f"/{self.bucket}/"
        return ref.split(marker, 1)[1] if marker in ref else ref

    async def store(self, content: bytes, filename: str, content_type: str, folder: str) -> str:
        key = f"{folder}/{_object_name(filename, content_type)}"
        await run_in_threadpool(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=content,
            ContentType=content_type,
            CacheControl="public, max-age=31536000",
        )
        return self._url_for(key)

    async def delete(self, ref: Optional[str]) -> None:
        if not ref:
            return
        try:
            await run_in_threadpool(
                self.client.delete_object, Bucket=self.bucket, Key=self._key_for(ref)
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Failed to delete S3 asset {ref}: {e}")


# ── Factory / helpers ─────────────────────────────────────────

_store: Optional[BlobStore] = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency: process-wide blob store for the configured backend."""
    global _store
    if _store is None:
        if settings.STORAGE_BACKEND == "s3":
            _store = S3BlobStore(settings.S3_BUCKET_PUBLIC, settings.S3_PUBLIC_BASE_URL)
        else:
            _store = LocalBlobStore(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
    return _store


async def read_image_upload(file: UploadFile) -> bytes:
    """Validate an uploaded image's type and size and return its bytes."""
    if file.content_type not in settings.allowed_image_types_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only JPEG, PNG and WebP images are allowed.",
        )
    contents = await file.read()
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"File size exceeds {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit. "
                f"Your file is {len(contents) / (1024 * 1024):.2f}MB."
            ),
        )
    return contents


async def store_image(store: BlobStore, file: UploadFile, folder: str) -> str:
    contents = await read_image_upload(file)
    return await store.store(contents, file.filename or "", file.content_type, folder)
