"""
services/user/router.py
User profile, wishlist, and support-ticket endpoints.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.middleware.auth import TokenData, get_current_user, get_token_data
from shared.models.models import Package, SupportTicket, TicketStatus, User, UserRole
from shared.schemas.schemas import (
    CheckLoginResponse,
    PackageResponse,
    SupportTicketCreateRequest,
    SupportTicketResponse,
    UserPublicResponse,
    UserResponse,
    WishlistRequest,
    WishlistResponse,
)
from shared.utils.storage import BlobStore, get_blob_store, store_image

router = APIRouter(prefix="/api/user", tags=["Users"])


# ── Profile ───────────────────────────────────────────────────

@router.get("/checkLogin", response_model=CheckLoginResponse)
@router.get("/me", response_model=CheckLoginResponse)
async def check_login(
    token_data: TokenData = Depends(get_token_data),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirms the session. A valid token whose user no longer exists
    gets its cookie cleared and a 404.
    """
    user = await db.get(User, UUID(token_data.user_id))
    if not user:
        response = JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"message": "User not found", "isLoggedIn": False, "userExistsInDb": False},
        )
        response.delete_cookie(settings.AUTH_COOKIE_NAME)
        return response

    return CheckLoginResponse(
        is_logged_in=True,
        user_exists_in_db=True,
        user=UserResponse.model_validate(user),
    )


@router.post("/updateProfile", response_model=UserResponse)
async def update_profile(
    fullname: str = Form(..., min_length=1),
    contact: str = Form(..., min_length=1),
    role: UserRole = Form(...),
    dateOfBirth: Optional[str] = Form(None),
    aadharCard: Optional[str] = Form(None),
    panCard: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    profileImage: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    """Update profile fields; a new profile image replaces (and deletes) the old one."""
    if role != current_user.role and current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role cannot be changed")

    current_user.fullname = fullname
    current_user.contact = contact
    current_user.role = role
    for attr, value in (
        ("date_of_birth", dateOfBirth),
        ("aadhar_card", aadharCard),
        ("pan_card", panCard),
        ("address", address),
    ):
        if value is not None:
            setattr(current_user, attr, value)

    old_image = None
    if profileImage is not None and profileImage.filename:
        old_image = current_user.profile_image
        current_user.profile_image = await store_image(store, profileImage, "profiles")

    await db.flush()
    if old_image is not None:
        await store.delete(old_image)
    return UserResponse.model_validate(current_user)


@router.get("/user/{user_id}", response_model=UserPublicResponse)
async def get_user_by_id(user_id: UUID, db: AsyncSession = Depends(get_db)):
    """Public lookup: name only."""
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserPublicResponse.model_validate(user)


@router.get("/serviceProvider", response_model=List[UserResponse])
async def list_service_providers(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(User).where(User.role == UserRole.SERVICE_PROVIDER).order_by(User.created_at)
    )
    return [UserResponse.model_validate(u) for u in result.scalars().all()]


# ── Wishlist ──────────────────────────────────────────────────

@router.get("/wishlist", response_model=List[PackageResponse])
async def get_wishlist(current_user: User = Depends(get_current_user)):
    return [PackageResponse.model_validate(p) for p in current_user.wishlist]


@router.post("/addToWishlist", response_model=WishlistResponse)
async def add_to_wishlist(
    data: WishlistRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    package = await db.get(Package, data.package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    if any(p.id == package.id for p in current_user.wishlist):
        raise HTTPException(status_code=400, detail="Package already in wishlist")

    current_user.wishlist.append(package)
    return WishlistResponse(
        message="Package added to wishlist",
        wishlist=[PackageResponse.model_validate(p) for p in current_user.wishlist],
    )


@router.post("/removeFromWishlist", response_model=WishlistResponse)
async def remove_from_wishlist(
    data: WishlistRequest,
    current_user: User = Depends(get_current_user),
):
    """Removing a package that is not in the wishlist is a no-op."""
    current_user.wishlist = [p for p in current_user.wishlist if p.id != data.package_id]
    return WishlistResponse(
        message="Package removed from wishlist",
        wishlist=[PackageResponse.model_validate(p) for p in current_user.wishlist],
    )


# ── Support ───────────────────────────────────────────────────

@router.post("/support", response_model=SupportTicketResponse, status_code=status.HTTP_201_CREATED)
async def create_support_ticket(
    data: SupportTicketCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ticket = SupportTicket(
        user_id=current_user.id,
        subject=data.subject,
        message=data.message,
        priority=data.priority,
        status=TicketStatus.OPEN,
    )
    db.add(ticket)
    await db.flush()
    return SupportTicketResponse.model_validate(ticket)


@router.get("/support", response_model=List[SupportTicketResponse])
async def list_support_tickets(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(SupportTicket)
        .where(SupportTicket.user_id == current_user.id)
        .order_by(SupportTicket.created_at.desc())
    )
    return [SupportTicketResponse.model_validate(t) for t in result.scalars().all()]
