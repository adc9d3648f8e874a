"""
services/service_partner/router.py
Service partner onboarding: a Service Provider files a business profile,
an admin approves or deactivates it. The partner's status is mirrored
onto the linked user account.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from config.database import get_db
from services.notification.router import notify_admins, push_notification
from shared.middleware.auth import get_current_user, require_admin
from shared.models.models import AccountStatus, ServicePartner, User, UserRole
from shared.schemas.schemas import (
    ServicePartnerCreateRequest,
    ServicePartnerResponse,
    ServicePartnerUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/service-partners", tags=["Service Partners"])

DUPLICATE_PARTNER_MESSAGE = (
    "This Service Partner is already registered. Please use a different Service Partner."
)


# ── Helpers ───────────────────────────────────────────────────

async def _get_partner_or_404(db: AsyncSession, **criteria) -> ServicePartner:
    result = await db.execute(
        select(ServicePartner)
        .options(selectinload(ServicePartner.user))
        .filter_by(**criteria)
        .execution_options(populate_existing=True)
    )
    partner = result.scalar_one_or_none()
    if not partner:
        raise HTTPException(status_code=404, detail="Service Partner not found")
    return partner


# ── Endpoints ─────────────────────────────────────────────────

@router.post("/{user_id}", response_model=ServicePartnerResponse)
async def create_service_partner(
    user_id: UUID,
    data: ServicePartnerCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    File a partner application for ``user_id``. The profile and the user
    both start as Pending and every admin is notified.
    """
    if current_user.id != user_id and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not your account")

    user = current_user if current_user.id == user_id else await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.partner_profile is not None:
        raise HTTPException(status_code=400, detail=DUPLICATE_PARTNER_MESSAGE)

    partner = ServicePartner(
        **data.model_dump(exclude_unset=True),
        user=user,
        status=AccountStatus.PENDING,
    )
    db.add(partner)
    user.status = AccountStatus.PENDING
    await db.flush()

    await notify_admins(
        db,
        title=f"New Service Partner Request: {partner.name}",
        message="New service partner requested to join program",
        redirect_path=f"/admin/service-partners/{partner.id}",
        sender_id=user.id,
    )
    logger.info(f"Service partner {partner.id} registered for user {user.id}")
    return ServicePartnerResponse.model_validate(partner)


@router.get("", response_model=List[ServicePartnerResponse])
async def list_service_partners(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(ServicePartner)
        .options(selectinload(ServicePartner.user))
        .order_by(ServicePartner.created_at)
    )
    return [ServicePartnerResponse.model_validate(p) for p in result.scalars().all()]


@router.get("/partner/{user_id}", response_model=ServicePartnerResponse)
async def get_service_partner_by_user(user_id: UUID, db: AsyncSession = Depends(get_db)):
    """Look up a partner profile by its owning user's id."""
    partner = await _get_partner_or_404(db, user_id=user_id)
    return ServicePartnerResponse.model_validate(partner)


@router.get("/{partner_id}", response_model=ServicePartnerResponse)
async def get_service_partner(partner_id: UUID, db: AsyncSession = Depends(get_db)):
    partner = await _get_partner_or_404(db, id=partner_id)
    return ServicePartnerResponse.model_validate(partner)


@router.put("/{partner_id}", response_model=ServicePartnerResponse)
async def update_service_partner(
    partner_id: UUID,
    data: ServicePartnerUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. A status change is copied to the user and announced to them."""
    partner = await _get_partner_or_404(db, id=partner_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(partner, field, value)

    if data.status is not None:
        new_status = AccountStatus(data.status)
        partner.user.status = new_status
        await push_notification(
            db,
            partner.user_id,
            title="Service Partner Status Updated",
            message=f"Your service partner status has been updated to {new_status.value}",
            redirect_path="/profile",
            sender_id=admin.id,
        )

    await db.flush()
    return ServicePartnerResponse.model_validate(partner)
