"""
shared/utils/security.py
JWT creation/verification, password hashing, and Razorpay signature checks.
"""

import hashlib
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── JWT ───────────────────────────────────────────────────────

def create_access_token(
    user_id: str,
    role: str,
    email: str,
    extra: Optional[dict] = None,
) -> tuple[str, str]:
    """
    Create a signed JWT carrying {id, email, role}.
    Returns (token, jti). Lifetime is JWT_EXPIRE_DAYS (one day by default),
    matching the auth cookie max-age.
    """
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=settings.JWT_EXPIRE_DAYS)

    payload = {
        "sub": str(user_id),
        "id": str(user_id),
        "role": role,
        "email": email,
        "jti": jti,
        "iat": now,
        "exp": expire,
        "type": "access",
        **(extra or {}),
    }

    token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return token, jti


def verify_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.
    Raises JWTError on invalid/expired token.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
    )
    if payload.get("type") != "access":
        raise JWTError("Invalid token type")
    return payload


def token_max_age_seconds() -> int:
    return settings.JWT_EXPIRE_DAYS * 24 * 60 * 60


# ── Password ──────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ── Razorpay Signature ────────────────────────────────────────

def compute_razorpay_signature(order_id: str, payment_id: str, secret: str) -> str:
    """hex(HMAC-SHA256(secret, "<order_id>|<payment_id>")) as Razorpay computes it."""
    body = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


def verify_razorpay_signature(
    order_id: str,
    payment_id: str,
    signature: str,
    secret: Optional[str] = None,
) -> bool:
    """Verify a checkout signature. Defaults to RAZORPAY_KEY_SECRET."""
    key = settings.RAZORPAY_KEY_SECRET if secret is None else secret
    expected = compute_razorpay_signature(order_id, payment_id, key)
    return hmac.compare_digest(expected, signature or "")
