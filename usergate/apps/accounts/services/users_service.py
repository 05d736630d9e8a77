from typing import Optional

from fastapi import HTTPException, UploadFile, status

from usergate.apps.accounts.core import HashService
from usergate.apps.accounts.models import (
    CreateUserRequest,
    UpdatePasswordRequest,
    UpdateUserByAdminRequest,
    UpdateUserRequest,
    UserDocument,
    UserListResponse,
    UserQuery,
    UserResponse,
)
from usergate.apps.accounts.repositories import UsersRepository
from usergate.apps.accounts.services.image_storage import ImageStorage
from usergate.core import UserGate
from usergate.database import DocumentNotFoundError, PaginateParams

USER_NOT_FOUND = "User not found"


class UsersService(UserGate):
    def __init__(
        self,
        users: Optional[UsersRepository] = None,
        hasher: Optional[HashService] = None,
        images: Optional[ImageStorage] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.users = users if users is not None else UsersRepository()
        self.hasher = hasher if hasher is not None else HashService()
        self._images = images

    @property
    def images(self) -> ImageStorage:
        if self._images is None:
            self._images = ImageStorage()
        return self._images

    @staticmethod
    def _found(user: Optional[UserDocument]) -> UserDocument:
        """Raises DocumentNotFoundError, which the service answers with 404."""
        if user is None:
            raise DocumentNotFoundError(USER_NOT_FOUND)
        return user

    async def get_user_by_id(self, user_id: str) -> UserResponse:
        return UserResponse.from_document(self._found(await self.users.find_by_id(user_id)))

    async def get_user_by_email(self, email: str) -> UserResponse:
        return UserResponse.from_document(self._found(await self.users.find_by_email(email)))

    async def get_users(self, query: UserQuery) -> UserListResponse:
        page = await self.users.list_users(
            email=query.email,
            is_admin=query.is_admin,
            paginate=PaginateParams(page_number=query.page_number, page_size=query.page_size),
        )
        return UserListResponse(data=[UserResponse.from_document(u) for u in page.data], count=page.count)

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        """Create a user on behalf of an admin. The password is hashed before it is stored."""
        if await self.users.find_by_email(str(request.email)) is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists.")
        user = await self.users.create(
            {**request.model_dump(exclude={"password"}), "password": await self.hasher.hash_data(request.password)}
        )
        self.logger.info(f"Admin created user {user.id}")
        return UserResponse.from_document(user)

    async def update_user(self, user_id: str, request: UpdateUserRequest) -> UserResponse:
        fields = request.model_dump(exclude_unset=True)
        if not fields:
            return await self.get_user_by_id(user_id)
        return UserResponse.from_document(self._found(await self.users.update_by_id(user_id, fields)))

    async def update_user_password(self, user_id: str, request: UpdatePasswordRequest) -> UserResponse:
        user = self._found(await self.users.find_by_id(user_id))
        if not await self.hasher.is_match_hashed(user.password, request.old_password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Old password is incorrect.")
        hashed = await self.hasher.hash_data(request.new_password)
        return UserResponse.from_document(self._found(await self.users.update_by_id(user_id, {"password": hashed})))

    async def update_user_by_admin(self, user_id: str, request: UpdateUserByAdminRequest) -> UserResponse:
        """Admins may additionally change `email` and `is_admin`. Neither can be cleared."""
        fields = request.model_dump(exclude_unset=True)
        for key in ("email", "is_admin"):
            if fields.get(key, ...) is None:
                fields.pop(key)
        if not fields:
            return await self.get_user_by_id(user_id)
        return UserResponse.from_document(self._found(await self.users.update_by_id(user_id, fields)))

    async def set_user_image(self, user_id: str, upload: UploadFile) -> UserResponse:
        self._found(await self.users.find_by_id(user_id))
        path = await self.images.save_user_image(user_id, upload)
        return UserResponse.from_document(self._found(await self.users.update_by_id(user_id, {"image": path})))
