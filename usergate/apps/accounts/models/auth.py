from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from usergate.apps.accounts.models.user import UserResponse


class SignupPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    device_name: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    device_name: str = Field(..., min_length=1)
    device_token: Optional[str] = None


class ForgotPasswordPayload(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    device_name: str = Field(..., min_length=1)


class RequestCodePayload(BaseModel):
    email: EmailStr


class VerifyCodePayload(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1)


class AuthResponse(UserResponse):
    """The signed-in user together with a fresh token pair."""

    access_token: str
    refresh_token: str


class PasswordChangedResponse(BaseModel):
    msg: str
    access_token: str
    refresh_token: str


class CodeIssuedResponse(BaseModel):
    msg: str
    expires_at: str
    otp: Optional[str] = None


class VerifyCodeResponse(BaseModel):
    valid: bool


class MessageResponse(BaseModel):
    msg: str
