"""
tests/conftest.py
Shared fixtures: an in-memory SQLite database per test, an ASGI client
wired to it, a temporary local blob store, and ready-made users and
catalog rows.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="capturestudio-uploads-")
os.environ["STORAGE_BACKEND"] = "local"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "s3cr3t"
os.environ["ADMIN_EMAIL"] = "admin@capturestudio.in"
os.environ["ADMIN_NUMBER"] = "9000000000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config.database import Base, get_db
from main import app
from shared.models.models import (
    AccountStatus,
    Event,
    Package,
    Service,
    ServicePartner,
    User,
    UserRole,
)
from shared.utils.security import create_access_token, hash_password
from shared.utils.storage import LocalBlobStore, get_blob_store

PASSWORD = "password123"


def auth_headers(user: User) -> dict:
    token, _ = create_access_token(user_id=str(user.id), role=user.role.value, email=user.email)
    return {"Authorization": f"Bearer {token}"}


# ── Database ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path), "/uploads")


@pytest_asyncio.fixture
async def client(session_factory, blob_store):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Users ─────────────────────────────────────────────────────

async def _create_user(db: AsyncSession, **fields) -> User:
    user = User(
        password_hash=hash_password(PASSWORD),
        wishlist=[],
        partner_profile=None,
        **fields,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def user(db) -> User:
    return await _create_user(
        db,
        fullname="Asha Client",
        email="asha@example.com",
        contact="9876543210",
        role=UserRole.CLIENT,
    )


@pytest_asyncio.fixture
async def admin_user(db) -> User:
    return await _create_user(
        db,
        fullname="Studio Admin",
        email="admin@capturestudio.in",
        contact="9000000000",
        role=UserRole.ADMIN,
    )


@pytest_asyncio.fixture
async def partner_user(db) -> User:
    """Service Provider with an approved partner profile."""
    partner_user = User(
        fullname="Ravi Lens",
        email="ravi@lensandlight.in",
        contact="9123456780",
        role=UserRole.SERVICE_PROVIDER,
        status=AccountStatus.ACTIVE,
        password_hash=hash_password(PASSWORD),
        wishlist=[],
    )
    partner = ServicePartner(
        user=partner_user,
        name="Lens & Light Studios",
        contact_person="Ravi",
        contact_number="9123456780",
        status=AccountStatus.ACTIVE,
        bookings=[],
    )
    db.add_all([partner_user, partner])
    await db.commit()
    return partner_user


# ── Catalog ───────────────────────────────────────────────────

@pytest_asyncio.fixture
async def service(db) -> Service:
    service = Service(name="Photography", events=[])
    db.add(service)
    await db.commit()
    return service


@pytest_asyncio.fixture
async def event(db, service) -> Event:
    event = Event(
        service_id=service.id,
        event_name="Wedding",
        description="Full-day wedding coverage",
        packages=[],
        form=None,
    )
    db.add(event)
    await db.commit()
    return event


@pytest_asyncio.fixture
async def package(db, service, event) -> Package:
    package = Package(
        service_id=service.id,
        event_id=event.id,
        name="Gold",
        price=10000,
        booking_price=3000,
        card_details=[{"product_name": "Album", "quantity": 2}],
        package_details=[{"title": "Coverage", "subtitle": ["Candid", "Traditional"]}],
        bill_details=[{"type": "Base", "amount": 10000}],
        category="Premium",
    )
    db.add(package)
    await db.commit()
    return package
