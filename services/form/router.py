"""
services/form/router.py
Custom booking forms, one per event type.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import require_admin
from shared.models.models import Event, Form, User
from shared.schemas.schemas import FormResponse, FormUpdateRequest, FormUpsertRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/forms", tags=["Forms"])


@router.post("", response_model=FormResponse)
async def upsert_form(
    data: FormUpsertRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Create or replace the form for ``eventType``. Creating a form for
    an unknown event is a 404; the new form is linked to its event.
    """
    fields = [f.model_dump() for f in data.fields]
    result = await db.execute(select(Form).where(Form.event_id == data.event_type))
    form = result.scalar_one_or_none()

    if form:
        form.form_title = data.form_title
        form.fields = fields
    else:
        if not await db.get(Event, data.event_type):
            raise HTTPException(status_code=404, detail="Event not found")
        form = Form(form_title=data.form_title, event_id=data.event_type, fields=fields)
        db.add(form)
        logger.info(f"Form created for event {data.event_type}")

    await db.flush()
    return FormResponse.model_validate(form)


@router.put("/{form_id}", response_model=FormResponse)
async def update_form(
    form_id: UUID,
    data: FormUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    form = await db.get(Form, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")

    if data.form_title is not None:
        form.form_title = data.form_title
    form.fields = [f.model_dump() for f in data.fields]
    await db.flush()
    return FormResponse.model_validate(form)


@router.get("/event/{event_type}", response_model=FormResponse)
async def get_form_for_event(event_type: UUID, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Form).where(Form.event_id == event_type))
    form = result.scalar_one_or_none()
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    return FormResponse.model_validate(form)
