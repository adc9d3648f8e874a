"""
services/notification/router.py
In-app notifications and transactional email.

Notifications live in their own table and are read newest first. Each push
trims the receiver's list: once it holds more than NOTIFICATION_CAP
entries only the newest NOTIFICATION_KEEP are kept.
Email goes out through Resend.
"""

import logging
from typing import List, Optional
from uuid import UUID

import resend
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import get_current_user
from shared.models.models import Notification, User, UserRole
from shared.schemas.schemas import (
    MessageResponse,
    NotificationCreateRequest,
    NotificationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["Notifications"])


# ── Email ─────────────────────────────────────────────────────

async def send_email(to_email: str, to_name: str, subject: str, html_body: str,
                     reply_to: Optional[str] = None) -> bool:
    """Send transactional email via Resend. Returns False on failure."""
    resend.api_key = settings.RESEND_API_KEY
    params = {
        "from": f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>",
        "to": [f"{to_name} <{to_email}>"],
        "subject": subject,
        "html": html_body,
    }
    if reply_to:
        params["reply_to"] = reply_to
    try:
        resend.Emails.send(params)
        return True
    except Exception as e:
        logger.error(f"Email to {to_email} failed: {e}")
        return False


# ── Fan-out ───────────────────────────────────────────────────

async def trim_notifications(db: AsyncSession, user_id: UUID) -> int:
    """Drop all but the newest NOTIFICATION_KEEP once over NOTIFICATION_CAP. Returns rows removed."""
    count = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    )
    if not count or count <= settings.NOTIFICATION_CAP:
        return 0

    newest = (
        select(Notification.id)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(settings.NOTIFICATION_KEEP)
    )
    await db.execute(
        delete(Notification)
        .where(Notification.user_id == user_id, Notification.id.not_in(newest))
        .execution_options(synchronize_session=False)
    )
    return count - settings.NOTIFICATION_KEEP


async def push_notification(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    message: str,
    redirect_path: Optional[str] = None,
    sender_id: Optional[UUID] = None,
) -> Notification:
    """Add a notification as the receiver's newest entry."""
    notification = Notification(
        user_id=user_id,
        sender_id=sender_id,
        title=title,
        message=message,
        redirect_path=redirect_path,
        read=False,
    )
    db.add(notification)
    await db.flush()
    await trim_notifications(db, user_id)
    return notification


async def admin_ids(db: AsyncSession) -> List[UUID]:
    result = await db.execute(
        select(User.id).where(User.role == UserRole.ADMIN).order_by(User.created_at)
    )
    return list(result.scalars().all())


async def notify_admins(
    db: AsyncSession,
    title: str,
    message: str,
    redirect_path: Optional[str] = None,
    sender_id: Optional[UUID] = None,
) -> int:
    """Push the same notification to every Admin. Returns how many were notified."""
    ids = await admin_ids(db)
    for admin_id in ids:
        await push_notification(db, admin_id, title, message, redirect_path, sender_id)
    return len(ids)


# ── Routes ────────────────────────────────────────────────────

@router.post("/addNotification", response_model=NotificationResponse)
async def add_notification(
    data: NotificationCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Send a notification to ``receiverId``, or to the first Admin when omitted."""
    if data.receiver_id:
        receiver = await db.get(User, data.receiver_id)
        if not receiver:
            raise HTTPException(status_code=404, detail="Receiver not found")
        receiver_id = receiver.id
    else:
        ids = await admin_ids(db)
        if not ids:
            raise HTTPException(status_code=404, detail="Receiver not found")
        receiver_id = ids[0]

    notification = await push_notification(
        db,
        receiver_id,
        data.title,
        data.message,
        data.redirect_path,
        sender_id=current_user.id,
    )
    return NotificationResponse.model_validate(notification)


@router.get("/notifications", response_model=List[NotificationResponse])
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == current_user.id)
        .order_by(Notification.created_at.desc())
    )
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]


@router.get("/clearNotifications", response_model=MessageResponse)
async def clear_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(
        delete(Notification)
        .where(Notification.user_id == current_user.id)
        .execution_options(synchronize_session=False)
    )
    return MessageResponse(message="Notifications cleared successfully")


@router.get("/readNotification/{notification_id}", response_model=MessageResponse)
async def read_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.user_id == current_user.id,
        )
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Notification not found")
    return MessageResponse(message="Notification marked as read")
