"""
services/catalog/router.py
Catalog management: Service → Event → Package.
Reads are public; every write requires an Admin.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from shared.middleware.auth import require_admin
from shared.models.models import Event, Package, Service, User
from shared.schemas.schemas import (
    EventDetailResponse,
    EventResponse,
    MessageResponse,
    PackageCreateRequest,
    PackageResponse,
    PackageUpdateRequest,
    ServiceBulkUpdateRequest,
    ServiceCreateRequest,
    ServiceResponse,
)
from shared.utils.storage import BlobStore, get_blob_store, store_image

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

EVENT_LOAD = (selectinload(Event.packages), selectinload(Event.form))
SERVICE_LOAD = (
    selectinload(Service.events).selectinload(Event.packages),
    selectinload(Service.events).selectinload(Event.form),
)


# ── Helpers ───────────────────────────────────────────────────

async def _get_service(db: AsyncSession, service_id: UUID) -> Optional[Service]:
    result = await db.execute(
        select(Service)
        .options(*SERVICE_LOAD)
        .where(Service.id == service_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _get_event(db: AsyncSession, event_id: UUID) -> Optional[Event]:
    result = await db.execute(
        select(Event)
        .options(*EVENT_LOAD)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _package_fields(data: PackageCreateRequest) -> dict:
    return {
        "service_id": data.service_id,
        "event_id": data.event_id,
        "name": data.name,
        "price": data.price,
        "booking_price": data.booking_price,
        "card_details": [c.model_dump() for c in data.card_details],
        "package_details": [p.model_dump() for p in data.package_details],
        "bill_details": [b.model_dump() for b in data.bill_details],
        "category": data.category,
    }


async def _validate_package_refs(db: AsyncSession, data: PackageCreateRequest) -> Event:
    if not await db.get(Service, data.service_id):
        raise HTTPException(status_code=400, detail="Service not found")
    event = await db.get(Event, data.event_id)
    if not event:
        raise HTTPException(status_code=400, detail="Invalid Event ID")
    return event


# ── Services ──────────────────────────────────────────────────

@router.post("/services", response_model=ServiceResponse, tags=["Services"])
async def create_service(
    data: ServiceCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = Service(name=data.name, events=[])
    db.add(service)
    await db.flush()
    return ServiceResponse.model_validate(service)


@router.get("/services", response_model=List[ServiceResponse], tags=["Services"])
async def list_services(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Service).options(*SERVICE_LOAD).order_by(Service.created_at))
    return [ServiceResponse.model_validate(s) for s in result.scalars().all()]


@router.get("/services/{service_id}", response_model=ServiceResponse, tags=["Services"])
async def get_service(service_id: UUID, db: AsyncSession = Depends(get_db)):
    service = await _get_service(db, service_id)
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    return ServiceResponse.model_validate(service)


@router.put("/services", response_model=MessageResponse, tags=["Services"])
async def rename_services(
    data: ServiceBulkUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Bulk rename. Entries without both ``_id`` and ``name`` are skipped."""
    updated = 0
    for item in data.services_to_update:
        if not item.id or not item.name:
            continue
        service = await db.get(Service, item.id)
        if service:
            service.name = item.name
            updated += 1
    return MessageResponse(message=f"Services updated successfully ({updated})")


# ── Events ────────────────────────────────────────────────────

@router.post("/events", response_model=EventResponse, tags=["Events"])
async def create_event(
    eventName: str = Form(..., min_length=1),
    serviceId: UUID = Form(...),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    if not await db.get(Service, serviceId):
        raise HTTPException(status_code=400, detail="Service not found")

    image_url = None
    if image is not None and image.filename:
        image_url = await store_image(store, image, "events")

    event = Event(
        event_name=eventName,
        service_id=serviceId,
        description=description,
        image=image_url,
        packages=[],
        form=None,
    )
    db.add(event)
    await db.flush()
    return EventResponse.model_validate(event)


@router.get("/events", response_model=List[EventResponse], tags=["Events"])
async def list_events(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Event).options(*EVENT_LOAD).order_by(Event.created_at))
    return [EventResponse.model_validate(e) for e in result.scalars().all()]


@router.get("/events/service/{service_id}", response_model=List[EventResponse], tags=["Events"])
async def list_events_for_service(service_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Event)
        .options(*EVENT_LOAD)
        .where(Event.service_id == service_id)
        .order_by(Event.created_at)
    )
    events = result.scalars().all()
    if not events:
        raise HTTPException(status_code=404, detail="No events found for this service")
    return [EventResponse.model_validate(e) for e in events]


@router.get("/events/{event_id}", response_model=EventDetailResponse, tags=["Events"])
async def get_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    event = await _get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return EventDetailResponse.model_validate(event)


@router.put("/events/{event_id}", response_model=EventResponse, tags=["Events"])
async def update_event(
    event_id: UUID,
    eventName: Optional[str] = Form(None, min_length=1),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """Update name/description; a new image replaces (and deletes) the old one."""
    event = await _get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    if eventName is not None:
        event.event_name = eventName
    if description is not None:
        event.description = description
    old_image = None
    if image is not None and image.filename:
        old_image = event.image
        event.image = await store_image(store, image, "events")

    await db.flush()
    if old_image is not None:
        await store.delete(old_image)
    return EventResponse.model_validate(event)


# ── Packages ──────────────────────────────────────────────────

@router.post("/packages", response_model=PackageResponse, tags=["Packages"])
async def create_package(
    data: PackageCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await _validate_package_refs(db, data)
    package = Package(**_package_fields(data))
    db.add(package)
    await db.flush()
    return PackageResponse.model_validate(package)


@router.get("/packages", response_model=List[PackageResponse], tags=["Packages"])
async def list_packages(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Package).order_by(Package.created_at))
    return [PackageResponse.model_validate(p) for p in result.scalars().all()]


@router.get("/packages/event/{event_id}", response_model=List[PackageResponse], tags=["Packages"])
async def list_packages_for_event(event_id: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Package).where(Package.event_id == event_id).order_by(Package.created_at)
    )
    packages = result.scalars().all()
    if not packages:
        raise HTTPException(status_code=404, detail="No packages found for this event")
    return [PackageResponse.model_validate(p) for p in packages]


@router.get("/packages/{package_id}", response_model=PackageResponse, tags=["Packages"])
async def get_package(package_id: UUID, db: AsyncSession = Depends(get_db)):
    package = await db.get(Package, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return PackageResponse.model_validate(package)


@router.put("/packages/{package_id}", response_model=PackageResponse, tags=["Packages"])
async def update_package(
    package_id: UUID,
    data: PackageUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    package = await db.get(Package, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    await _validate_package_refs(db, data)

    for field, value in _package_fields(data).items():
        setattr(package, field, value)
    await db.flush()
    return PackageResponse.model_validate(package)
