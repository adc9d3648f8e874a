"""
tests/test_notifications.py
Tests for the in-app inbox: push, newest-first listing, trimming,
read/clear, and email delivery via Resend.
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.notification.router import push_notification, send_email, trim_notifications
from shared.models.models import Notification, User
from tests.conftest import auth_headers


async def seed_notifications(db: AsyncSession, user: User, count: int) -> None:
    """Insert ``count`` notifications one minute apart, well in the past."""
    base = datetime(2020, 1, 1, tzinfo=timezone.utc)
    for i in range(count):
        db.add(Notification(
            user_id=user.id,
            title=f"Note {i}",
            message=f"Message {i}",
            read=False,
            created_at=base + timedelta(minutes=i),
        ))
    await db.commit()


# ── Trimming ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_trim_keeps_newest_80_once_over_100(db: AsyncSession, user: User):
    await seed_notifications(db, user, 101)

    removed = await trim_notifications(db, user.id)
    await db.commit()
    assert removed == 21

    result = await db.execute(
        select(Notification.title)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at)
    )
    titles = result.scalars().all()
    assert len(titles) == 80
    assert titles[0] == "Note 21"
    assert titles[-1] == "Note 100"


@pytest.mark.asyncio
async def test_trim_noop_at_cap(db: AsyncSession, user: User):
    await seed_notifications(db, user, 100)
    assert await trim_notifications(db, user.id) == 0

    count = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == user.id)
    )
    assert count == 100


@pytest.mark.asyncio
async def test_push_trims_receiver_only(db: AsyncSession, user: User, admin_user: User):
    await seed_notifications(db, user, 100)
    await seed_notifications(db, admin_user, 3)

    await push_notification(db, user.id, "Newest", "Pushed last")
    await db.commit()

    user_count = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == user.id)
    )
    admin_count = await db.scalar(
        select(func.count()).select_from(Notification).where(Notification.user_id == admin_user.id)
    )
    assert user_count == 80
    assert admin_count == 3


# ── Routes ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_add_notification_defaults_to_admin(
    client: AsyncClient, user: User, admin_user: User
):
    response = await client.post(
        "/api/user/addNotification",
        headers=auth_headers(user),
        json={"title": "Help", "message": "Call me back", "redirectPath": "/support"},
    )
    assert response.status_code == 200
    assert response.json()["sender"] == str(user.id)

    response = await client.get("/api/user/notifications", headers=auth_headers(admin_user))
    [note] = response.json()
    assert note["title"] == "Help"
    assert note["read"] is False
    assert note["redirectPath"] == "/support"


@pytest.mark.asyncio
async def test_add_notification_unknown_receiver(client: AsyncClient, user: User):
    response = await client.post(
        "/api/user/addNotification",
        headers=auth_headers(user),
        json={"title": "x", "message": "y", "receiverId": str(uuid.uuid4())},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_notifications_newest_first(client: AsyncClient, db: AsyncSession, user: User):
    await seed_notifications(db, user, 3)
    response = await client.get("/api/user/notifications", headers=auth_headers(user))
    assert [n["title"] for n in response.json()] == ["Note 2", "Note 1", "Note 0"]


@pytest.mark.asyncio
async def test_push_over_cap_via_api(
    client: AsyncClient, db: AsyncSession, user: User, admin_user: User
):
    await seed_notifications(db, user, 100)
    response = await client.post(
        "/api/user/addNotification",
        headers=auth_headers(admin_user),
        json={"title": "Latest", "message": "Trim me", "receiverId": str(user.id)},
    )
    assert response.status_code == 200

    notes = (await client.get("/api/user/notifications", headers=auth_headers(user))).json()
    assert len(notes) == 80
    assert notes[0]["title"] == "Latest"


@pytest.mark.asyncio
async def test_read_notification(client: AsyncClient, db: AsyncSession, user: User):
    await seed_notifications(db, user, 1)
    headers = auth_headers(user)
    [note] = (await client.get("/api/user/notifications", headers=headers)).json()

    response = await client.get(f"/api/user/readNotification/{note['_id']}", headers=headers)
    assert response.status_code == 200

    [note] = (await client.get("/api/user/notifications", headers=headers)).json()
    assert note["read"] is True


@pytest.mark.asyncio
async def test_read_someone_elses_notification(
    client: AsyncClient, db: AsyncSession, user: User, admin_user: User
):
    await seed_notifications(db, admin_user, 1)
    [note] = (await client.get("/api/user/notifications", headers=auth_headers(admin_user))).json()

    response = await client.get(
        f"/api/user/readNotification/{note['_id']}", headers=auth_headers(user)
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_clear_notifications(client: AsyncClient, db: AsyncSession, user: User):
    await seed_notifications(db, user, 5)
    headers = auth_headers(user)

    response = await client.get("/api/user/clearNotifications", headers=headers)
    assert response.status_code == 200
    assert (await client.get("/api/user/notifications", headers=headers)).json() == []


# ── Email ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_send_email_uses_resend():
    with patch("services.notification.router.resend.Emails.send") as send:
        ok = await send_email("ops@example.com", "Ops", "Hello", "<p>Hi</p>", reply_to="a@b.c")

    assert ok is True
    params = send.call_args.args[0]
    assert params["to"] == ["Ops <ops@example.com>"]
    assert params["reply_to"] == "a@b.c"


@pytest.mark.asyncio
async def test_send_email_failure_returns_false():
    with patch(
        "services.notification.router.resend.Emails.send",
        side_effect=RuntimeError("boom"),
    ):
        ok = await send_email("ops@example.com", "Ops", "Hello", "<p>Hi</p>")
    assert ok is False
