"""Accounts Service: authentication and user management over HTTP."""

from typing import Annotated, Optional

from fastapi import Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse

from usergate.apps.accounts.core import (
    HashService,
    RefreshPrincipal,
    get_accounts_config,
    require_refresh_token,
    verify_access_token,
)
from usergate.apps.accounts.db import close_db, initialize_db
from usergate.apps.accounts.models import (
    AuthResponse,
    CodeIssuedResponse,
    CreateUserRequest,
    ForgotPasswordPayload,
    LoginPayload,
    MessageResponse,
    PasswordChangedResponse,
    RequestCodePayload,
    SignupPayload,
    UpdatePasswordRequest,
    UpdateUserByAdminRequest,
    UpdateUserRequest,
    UserListResponse,
    UserQuery,
    UserResponse,
    VerifyCodePayload,
    VerifyCodeResponse,
)
from usergate.apps.accounts.repositories import UsersRepository, to_object_id
from usergate.apps.accounts.seed import seed_admin_user
from usergate.apps.accounts.services import AuthService, UsersService
from usergate.database import DocumentNotFoundError, DuplicateInsertError, PersistenceError
from usergate.services import RequestLoggingMiddleware, Scope, Service, set_token_verifier, verify_token

Principal = Annotated[dict, Depends(verify_token)]


def _checked_id(user_id: str) -> str:
    if to_object_id(user_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid id.")
    return user_id


class AccountsService(Service):
    """Accounts service: signup, login, password reset, token refresh and user management."""

    expected_exceptions = (HTTPException, PersistenceError, DocumentNotFoundError)

    def __init__(
        self,
        *,
        url: str | None = None,
        enable_db: bool = True,
        auth_service: Optional[AuthService] = None,
        users_service: Optional[UsersService] = None,
        **kwargs,
    ):
        self._config = get_accounts_config()
        cfg = self._config.ACCOUNTS
        if url is None:
            url = cfg.URL

        kwargs.setdefault("use_structlog", True)

        super().__init__(
            url=url,
            summary="Accounts Service",
            description="Authentication, sessions and user management",
            **kwargs,
        )

        self.db_enabled = enable_db
        self.seed_admin = bool(cfg.SEED_ADMIN)

        self._auth_service = auth_service
        self._users_service = users_service

        set_token_verifier(verify_access_token)

        self.app.add_middleware(
            RequestLoggingMiddleware,
            service_name=self.name,
            add_request_id_header=True,
            logger=self.logger,
        )
        self._register_exception_handlers()
        self._register_auth_endpoints()
        self._register_user_endpoints()

    # Collaborators are built on first use so that they are created inside the running loop

    @property
    def auth_service(self) -> AuthService:
        if self._auth_service is None:
            self._auth_service = AuthService()
        return self._auth_service

    @property
    def users_service(self) -> UsersService:
        if self._users_service is None:
            self._users_service = UsersService()
        return self._users_service

    async def startup_initialize(self):
        if not self.db_enabled:
            self.logger.info("Database disabled; skipping initialization.")
            return
        await initialize_db()
        if self.seed_admin:
            await seed_admin_user(UsersRepository(), HashService())

    async def shutdown_cleanup(self):
        if self.db_enabled:
            await close_db()

    def _register_exception_handlers(self) -> None:
        def handler(status_code: int):
            async def _handle(request: Request, exc: Exception) -> JSONResponse:
                return JSONResponse(status_code=status_code, content={"detail": str(exc)})

            return _handle

        self.app.add_exception_handler(DuplicateInsertError, handler(status.HTTP_400_BAD_REQUEST))
        self.app.add_exception_handler(PersistenceError, handler(status.HTTP_400_BAD_REQUEST))
        self.app.add_exception_handler(DocumentNotFoundError, handler(status.HTTP_404_NOT_FOUND))

    def _register_auth_endpoints(self) -> None:
        self.add_endpoint("/auth/request-code", self.request_code, methods=["POST"])
        self.add_endpoint("/auth/verify-code", self.verify_code, methods=["POST"])
        self.add_endpoint("/auth/signup", self.signup, methods=["POST"])
        self.add_endpoint("/auth/login", self.login, methods=["POST"])
        self.add_endpoint("/auth/forgot-password", self.forgot_password, methods=["POST"])
        # The refresh token itself is the credential here, checked by require_refresh_token
        self.add_endpoint("/auth/refresh", self.refresh, methods=["POST"])
        self.add_endpoint("/auth/logout", self.logout, methods=["POST"], scope=Scope.AUTHENTICATED)

    def _register_user_endpoints(self) -> None:
        self.add_endpoint("/users", self.list_users, methods=["GET"], scope=Scope.ADMIN)
        self.add_endpoint("/users", self.create_user, methods=["POST"], scope=Scope.ADMIN)
        self.add_endpoint("/users", self.update_user, methods=["PUT"], scope=Scope.AUTHENTICATED)
        self.add_endpoint(
            "/users/update_password", self.update_user_password, methods=["PUT"], scope=Scope.AUTHENTICATED
        )
        self.add_endpoint("/users/admin/{user_id}", self.update_user_by_admin, methods=["PUT"], scope=Scope.ADMIN)
        self.add_endpoint("/users/set_image/{user_id}", self.set_image, methods=["PUT"], scope=Scope.AUTHENTICATED)
        self.add_endpoint("/users/set_image_admin/{user_id}", self.set_image_admin, methods=["PUT"], scope=Scope.ADMIN)
        self.add_endpoint("/users/{user_id}", self.get_user, methods=["GET"], scope=Scope.AUTHENTICATED)

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def request_code(self, payload: RequestCodePayload) -> CodeIssuedResponse:
        return await self.auth_service.request_code(str(payload.email))

    async def verify_code(self, payload: VerifyCodePayload) -> VerifyCodeResponse:
        return VerifyCodeResponse(valid=await self.auth_service.verify_code(str(payload.email), payload.otp))

    async def signup(self, payload: SignupPayload) -> AuthResponse:
        return await self.auth_service.signup(payload)

    async def login(self, payload: LoginPayload) -> AuthResponse:
        return await self.auth_service.login(payload)

    async def forgot_password(self, payload: ForgotPasswordPayload) -> PasswordChangedResponse:
        return await self.auth_service.forgot_password(payload)

    async def refresh(self, principal: Annotated[RefreshPrincipal, Depends(require_refresh_token)]) -> AuthResponse:
        return await self.auth_service.refresh_tokens(
            principal.user_id, principal.device_name, principal.refresh_token
        )

    async def logout(self, principal: Principal) -> MessageResponse:
        await self.auth_service.logout(principal["user_id"], principal["device_name"])
        return MessageResponse(msg="Logged out.")

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_user(self, user_id: str) -> UserResponse:
        return await self.users_service.get_user_by_id(_checked_id(user_id))

    async def list_users(
        self,
        page_number: Annotated[Optional[int], Query(alias="pageNumber", ge=1)] = None,
        page_size: Annotated[Optional[int], Query(alias="pageSize", ge=1)] = None,
        email: Optional[str] = None,
        is_admin: Optional[bool] = None,
    ) -> UserListResponse:
        query = UserQuery(page_number=page_number, page_size=page_size, email=email, is_admin=is_admin)
        return await self.users_service.get_users(query)

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        return await self.users_service.create_user(request)

    async def update_user(self, request: UpdateUserRequest, principal: Principal) -> UserResponse:
        return await self.users_service.update_user(principal["user_id"], request)

    async def update_user_password(self, request: UpdatePasswordRequest, principal: Principal) -> UserResponse:
        return await self.users_service.update_user_password(principal["user_id"], request)

    async def update_user_by_admin(self, user_id: str, request: UpdateUserByAdminRequest) -> UserResponse:
        return await self.users_service.update_user_by_admin(_checked_id(user_id), request)

    async def set_image(self, user_id: str, principal: Principal, image: UploadFile = File(...)) -> UserResponse:
        if user_id != principal["user_id"]:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Can't access this route.")
        return await self.users_service.set_user_image(user_id, image)

    async def set_image_admin(self, user_id: str, image: UploadFile = File(...)) -> UserResponse:
        return await self.users_service.set_user_image(_checked_id(user_id), image)
