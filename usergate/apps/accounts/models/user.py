from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from usergate.apps.accounts.models.documents import UserDocument


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never part of it."""

    id: str
    email: str
    is_admin: bool = False
    device_token: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, user: UserDocument, **extra) -> "UserResponse":
        data = {name: getattr(user, name, None) for name in UserResponse.model_fields if name != "id"}
        data["is_admin"] = bool(data["is_admin"])
        return cls(id=str(user.id), **data, **extra)


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    is_admin: bool = False
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class UpdateUserRequest(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    device_token: Optional[str] = None


class UpdateUserByAdminRequest(UpdateUserRequest):
    email: Optional[EmailStr] = None
    is_admin: Optional[bool] = None


class UpdatePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserQuery(BaseModel):
    page_number: Optional[int] = Field(default=None, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    email: Optional[str] = None
    is_admin: Optional[bool] = None


class UserListResponse(BaseModel):
    data: List[UserResponse]
    count: int
