"""Users router – account projection and account type."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jazzlink.database import get_db
from jazzlink.models.user import User
from jazzlink.routers.auth import require_user
from jazzlink.schemas.user import AccountTypeUpdate, UserOut

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
async def read_me(current_user: User = Depends(require_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.put("/me/account-type", response_model=UserOut)
async def set_account_type(
    body: AccountTypeUpdate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Choose musician / venue owner / general after the first sign-in."""
    current_user.account_type = body.account_type
    await db.commit()
    return current_user


@router.get("/{uid}", response_model=UserOut)
async def read_user(uid: str, db: AsyncSession = Depends(get_db)):
    """Get a public user profile by uid."""
    result = await db.execute(select(User).where(User.uid == uid))
    user: Optional[User] = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
