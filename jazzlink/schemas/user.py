"""User Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel

from jazzlink.models.user import AccountTypeEnum


class UserOut(BaseModel):
    uid: str
    name: Optional[str] = None
    photo: Optional[str] = None
    email: Optional[str] = None
    account_type: Optional[AccountTypeEnum] = None

    model_config = {"from_attributes": True}


class AccountTypeUpdate(BaseModel):
    account_type: AccountTypeEnum
