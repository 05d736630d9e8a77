"""Signup, login, password reset and refresh-token rotation."""

import secrets
from typing import Awaitable, Callable, Optional

from fastapi import HTTPException, status

from usergate.apps.accounts.core import HashService, TokenPair, TokenPayload, get_accounts_config, get_tokens
from usergate.apps.accounts.models import (
    AuthResponse,
    CodeIssuedResponse,
    ForgotPasswordPayload,
    LoginPayload,
    PasswordChangedResponse,
    SignupPayload,
    UserDocument,
    UserResponse,
    VerificationCodeDocument,
)
from usergate.apps.accounts.repositories import CodeRepository, RefreshTokenRepository, UsersRepository
from usergate.core import UserGate, ifnone
from usergate.database import DocumentNotFoundError

CodeSender = Callable[[VerificationCodeDocument], Awaitable[None]]

INVALID_CREDENTIALS = "Invalid email or password."


class AuthService(UserGate):
    """Session lifecycle per (user, device).

    A device holds a session once a refresh token hash is stored for it. Login, signup, password reset and refresh
    all overwrite that hash, so only the most recently issued refresh token of a device is accepted.

    Args:
        users: User store.
        codes: Verification code store.
        refresh_tokens: Refresh token store.
        hasher: Hashing for passwords and refresh tokens.
        code_sender: Coroutine delivering a freshly issued code. Defaults to logging that a code was issued.
    """

    def __init__(
        self,
        users: Optional[UsersRepository] = None,
        codes: Optional[CodeRepository] = None,
        refresh_tokens: Optional[RefreshTokenRepository] = None,
        hasher: Optional[HashService] = None,
        code_sender: Optional[CodeSender] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.users = users if users is not None else UsersRepository()
        self.codes = codes if codes is not None else CodeRepository()
        self.refresh_token_repo = refresh_tokens if refresh_tokens is not None else RefreshTokenRepository()
        self.hasher = hasher if hasher is not None else HashService()
        self.code_sender = ifnone(code_sender, default=self._log_code)
        self._placeholder_hash: Optional[str] = None

    async def _log_code(self, code: VerificationCodeDocument) -> None:
        self.logger.info(f"Verification code issued for {code.email}, expires at {code.expires_at.isoformat()}")

    async def _session(self, user: UserDocument, device_name: str) -> TokenPair:
        tokens = await get_tokens(
            TokenPayload(user_id=str(user.id), is_admin=user.is_admin, device_name=device_name)
        )
        await self.update_refresh_token(str(user.id), device_name, tokens.refresh_token)
        return tokens

    async def get_tokens(self, payload: TokenPayload) -> TokenPair:
        return await get_tokens(payload)

    async def update_refresh_token(self, user_id: str, device_name: str, refresh_token: str) -> None:
        """Store the hash of `refresh_token` as the device's only valid refresh token."""
        hashed = await self.hasher.hash_data(refresh_token)
        await self.refresh_token_repo.update_refresh_token(user_id, device_name, hashed)

    async def request_code(self, email: str) -> CodeIssuedResponse:
        config = get_accounts_config().ACCOUNTS
        code = await self.codes.issue_code(email, int(config.CODE_TTL))
        await self.code_sender(code)
        return CodeIssuedResponse(
            msg="Verification code sent.",
            expires_at=code.expires_at.isoformat(),
            otp=code.otp if config.DEBUG else None,
        )

    async def verify_code(self, email: str, otp: str) -> bool:
        return await self.codes.find_code_by_email_and_otp(email, otp) is not None

    async def signup(self, payload: SignupPayload) -> AuthResponse:
        email = str(payload.email)
        if await self.users.find_by_email(email) is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists.")

        if await self.codes.find_active_code(email) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please confirm your email first.")

        user = await self.users.create(
            {
                **payload.model_dump(exclude={"password", "device_name"}),
                "email": email,
                "password": await self.hasher.hash_data(payload.password),
            }
        )
        self.logger.info(f"Created user {user.id}")

        tokens = await self._session(user, payload.device_name)
        return AuthResponse.from_document(user, **tokens.model_dump())

    async def _password_matches(self, user: Optional[UserDocument], password: str) -> bool:
        """Verify the password. Unknown users are checked against a placeholder hash and never match."""
        if user is None:
            if self._placeholder_hash is None:
                self._placeholder_hash = await self.hasher.hash_data(secrets.token_urlsafe(16))
            await self.hasher.is_match_hashed(self._placeholder_hash, password)
            return False
        return await self.hasher.is_match_hashed(user.password, password)

    async def login(self, payload: LoginPayload) -> AuthResponse:
        user = await self.users.find_by_email(str(payload.email))
        if not await self._password_matches(user, payload.password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        if payload.device_token:
            user = await self.users.update_by_id(str(user.id), {"device_token": payload.device_token}) or user

        tokens = await self._session(user, payload.device_name)
        return AuthResponse.from_document(user, **tokens.model_dump())

    async def forgot_password(self, payload: ForgotPasswordPayload) -> PasswordChangedResponse:
        email = str(payload.email)
        code = await self.codes.find_code_by_email_and_otp(email, payload.otp)
        if code is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OTP.")

        user = await self.users.find_by_email(email)
        if user is None:
            raise DocumentNotFoundError("User not found")

        hashed = await self.hasher.hash_data(payload.new_password)
        user = await self.users.update_by_id(str(user.id), {"password": hashed}) or user
        await self.codes.deactivate(code)
        self.logger.info(f"Password reset for user {user.id}")

        tokens = await self._session(user, payload.device_name)
        return PasswordChangedResponse(msg="Your password changed successfully.", **tokens.model_dump())

    async def refresh_tokens(self, user_id: str, device_name: str, refresh_token: str) -> AuthResponse:
        """Rotate the device's refresh token. Any mismatch is reported as 403 Access Denied."""
        stored = await self.refresh_token_repo.get_refresh_token(user_id, device_name)
        if stored is None or not await self.hasher.is_match_hashed(stored.refresh_token, refresh_token):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Denied")

        user = await self.users.find_by_id(user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Denied")

        tokens = await self._session(user, device_name)
        return AuthResponse.from_document(user, **tokens.model_dump())

    async def logout(self, user_id: str, device_name: str) -> bool:
        """End the device's session. Calling it for a device without a session is a no-op."""
        removed = await self.refresh_token_repo.delete_refresh_token(user_id, device_name)
        if removed:
            self.logger.info(f"User {user_id} logged out of device {device_name}")
        return removed
