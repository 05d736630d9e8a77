from .documents import RefreshTokenDocument, UserDocument, VerificationCodeDocument
from .user import (
    CreateUserRequest,
    UpdatePasswordRequest,
    UpdateUserByAdminRequest,
    UpdateUserRequest,
    UserListResponse,
    UserQuery,
    UserResponse,
)
from .auth import (
    AuthResponse,
    CodeIssuedResponse,
    ForgotPasswordPayload,
    LoginPayload,
    MessageResponse,
    PasswordChangedResponse,
    RequestCodePayload,
    SignupPayload,
    VerifyCodePayload,
    VerifyCodeResponse,
)

__all__ = [
    # Documents
    "RefreshTokenDocument",
    "UserDocument",
    "VerificationCodeDocument",
    # Users
    "CreateUserRequest",
    "UpdatePasswordRequest",
    "UpdateUserByAdminRequest",
    "UpdateUserRequest",
    "UserListResponse",
    "UserQuery",
    "UserResponse",
    # Auth
    "AuthResponse",
    "CodeIssuedResponse",
    "ForgotPasswordPayload",
    "LoginPayload",
    "MessageResponse",
    "PasswordChangedResponse",
    "RequestCodePayload",
    "SignupPayload",
    "VerifyCodePayload",
    "VerifyCodeResponse",
]
