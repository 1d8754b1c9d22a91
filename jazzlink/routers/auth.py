"""
Authentication: verify identity-provider JWTs and project them onto users.

The token is read from ``Authorization: Bearer <jwt>`` or the
``access_token`` cookie.  ``sub`` is the provider uid; ``name``,
``picture`` and ``email`` claims seed the user row on first sign-in.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.config import settings
from jazzlink.database import get_db
from jazzlink.models.user import User

COOKIE_KEY = "access_token"


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

def create_access_token(data: dict) -> str:
    """Create a signed JWT with an expiry claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _read_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(COOKIE_KEY)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Decode the JWT and return the matching User, creating it on first sign-in.
    Returns None when no valid token is present (allows public pages).
    """
    token = _read_token(request)
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None
    uid = payload.get("sub")
    if not uid:
        return None

    result = await db.execute(select(User).where(User.uid == uid))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            uid=uid,
            name=payload.get("name"),
            photo=payload.get("picture"),
            email=payload.get("email"),
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # created by a concurrent first request
            await db.rollback()
            result = await db.execute(select(User).where(User.uid == uid))
            user = result.scalar_one()
    return user


async def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    if not current_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return current_user


async def require_admin(current_user: User = Depends(require_user)) -> User:
    if current_user.uid not in settings.ADMIN_UIDS:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins only")
    return current_user
