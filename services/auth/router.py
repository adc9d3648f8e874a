"""
services/auth/router.py
Email/contact + password authentication.
Implements: Register → Login (JWT in http-only cookie) → Logout,
plus password change and the public contact form.
"""

import html
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from services.notification.router import send_email
from shared.middleware.auth import get_current_user
from shared.models.models import User, UserRole
from shared.schemas.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    ContactRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserResponse,
)
from shared.utils.security import (
    create_access_token,
    hash_password,
    token_max_age_seconds,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# ── Helpers ───────────────────────────────────────────────────

def _is_admin_registration(email: str, contact: str) -> bool:
    return bool(settings.ADMIN_EMAIL and settings.ADMIN_NUMBER) and (
        email == settings.ADMIN_EMAIL and contact == settings.ADMIN_NUMBER
    )


def _is_admin_login(email: str, contact: str) -> bool:
    return bool(settings.ADMIN_EMAIL and email == settings.ADMIN_EMAIL) or bool(
        settings.ADMIN_NUMBER and contact == settings.ADMIN_NUMBER
    )


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=token_max_age_seconds(),
    )


# ── Endpoints ─────────────────────────────────────────────────

@router.post("/register", response_model=MessageResponse)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    role = UserRole(data.role)
    if _is_admin_registration(data.email, data.contact):
        role = UserRole.ADMIN
    elif role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin accounts cannot be self-registered",
        )

    existing = await db.execute(
        select(User.id).where(
            User.email == data.email,
            User.role == role,
            User.contact == data.contact,
        )
    )
    if existing.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already registered")

    db.add(
        User(
            fullname=data.fullname,
            contact=data.contact,
            email=data.email,
            password_hash=hash_password(data.password),
            role=role,
        )
    )
    logger.info(f"Registered {role.value} account {data.email}")
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, response: Response, db: AsyncSession = Depends(get_db)):
    """
    Log in with email or contact number plus role.
    The configured admin email/number always logs in as Admin.
    """
    role = UserRole(data.role)
    if _is_admin_login(data.email, data.contact):
        role = UserRole.ADMIN

    identifiers = []
    if data.email:
        identifiers.append(User.email == data.email)
    if data.contact:
        identifiers.append(User.contact == data.contact)

    result = await db.execute(
        select(User).where(or_(*identifiers), User.role == role).order_by(User.created_at)
    )
    user = result.scalars().first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email/contact or role",
        )
    if not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    token, _ = create_access_token(user_id=str(user.id), role=user.role.value, email=user.email)
    _set_auth_cookie(response, token)

    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.get("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clears the auth cookie. Tokens are stateless and simply expire."""
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME)
    return MessageResponse(message="Logout successful")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
):
    if not verify_password(data.current_password, current_user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    current_user.password_hash = hash_password(data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/contact", response_model=MessageResponse)
async def contact(data: ContactRequest):
    """Forward a public contact-form submission to the admin inbox."""
    body = f"""
        <h2>New Contact Form Submission</h2>
        <p><strong>Name:</strong> {html.escape(data.first_name)} {html.escape(data.last_name)}</p>
        <p><strong>Phone:</strong> {html.escape(data.phone)}</p>
        <p><strong>Email:</strong> {html.escape(data.email)}</p>
        <p><strong>Subject:</strong> {html.escape(data.subject)}</p>
        <p><strong>Message:</strong></p>
        <p>{html.escape(data.message)}</p>
    """
    sent = await send_email(
        to_email=settings.ADMIN_EMAIL,
        to_name=settings.APP_NAME,
        subject=f"New Contact Form Submission: {data.subject}",
        html_body=body,
        reply_to=data.email,
    )
    if not sent:
        raise HTTPException(status_code=500, detail="Failed to send message")
    return MessageResponse(message="Message sent successfully")
