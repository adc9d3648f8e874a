"""
services/banner/router.py
Homepage banners. Each banner occupies a unique display index; uploading
to an occupied index replaces the banner and deletes its old image.
"""

import json
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import require_admin
from shared.models.models import Banner, User
from shared.schemas.schemas import BannerResponse, BannerUploadResponse, MessageResponse
from shared.utils.storage import BlobStore, get_blob_store, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/banner", tags=["Banners"])


def _parse_json_list(raw: Optional[str], name: str) -> list:
    if raw is None or raw == "":
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    if not isinstance(value, list):
        raise HTTPException(status_code=400, detail=f"Invalid {name}")
    return value


@router.post("", response_model=BannerUploadResponse)
async def upload_banners(
    files: Optional[List[UploadFile]] = File(None),
    indexes: Optional[str] = Form(None),
    titles: Optional[str] = Form(None),
    subtitles: Optional[str] = Form(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """
    ``files[i]`` goes to display slot ``indexes[i]``. ``indexes``,
    ``titles`` and ``subtitles`` are JSON arrays sent as form fields.
    """
    files = [f for f in files or [] if f.filename]
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    slots = _parse_json_list(indexes, "indexes")
    if len(slots) != len(files):
        raise HTTPException(status_code=400, detail="Files and indexes count mismatch")
    try:
        slots = [int(i) for i in slots]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid indexes")
    title_list = _parse_json_list(titles, "titles")
    subtitle_list = _parse_json_list(subtitles, "subtitles")

    # Reject the whole batch before anything is written
    contents = [await read_image_upload(file) for file in files]

    saved: List[Banner] = []
    replaced: List[str] = []
    for pos, (file, content, index) in enumerate(zip(files, contents, slots)):
        url = await store.store(content, file.filename or "", file.content_type, "banners")
        title = title_list[pos] if pos < len(title_list) else None
        subtitle = subtitle_list[pos] if pos < len(subtitle_list) else None

        result = await db.execute(select(Banner).where(Banner.index == index))
        banner = result.scalar_one_or_none()
        if banner:
            old_image = banner.image
            banner.image = url
            banner.title = title
            banner.subtitle = subtitle
            replaced.append(old_image)
        else:
            banner = Banner(image=url, index=index, title=title, subtitle=subtitle)
            db.add(banner)
        await db.flush()
        if banner not in saved:
            saved.append(banner)

    for old_image in replaced:
        await store.delete(old_image)

    logger.info(f"Uploaded {len(saved)} banner(s) at indexes {slots}")
    return BannerUploadResponse(
        message="Banners uploaded successfully",
        banners=[BannerResponse.model_validate(b) for b in saved],
    )


@router.get("", response_model=List[BannerResponse])
async def list_banners(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Banner).order_by(Banner.index))
    return [BannerResponse.model_validate(b) for b in result.scalars().all()]


@router.delete("/{banner_id}", response_model=MessageResponse)
async def delete_banner(
    banner_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    banner = await db.get(Banner, banner_id)
    if not banner:
        raise HTTPException(status_code=404, detail="Banner not found")

    await store.delete(banner.image)
    await db.delete(banner)
    return MessageResponse(message="Banner deleted successfully")
