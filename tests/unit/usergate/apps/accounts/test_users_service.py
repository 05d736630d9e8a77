from io import BytesIO

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from usergate.apps.accounts.models import (
    CreateUserRequest,
    UpdatePasswordRequest,
    UpdateUserByAdminRequest,
    UpdateUserRequest,
    UserQuery,
)
from usergate.apps.accounts.services import ImageStorage, UsersService
from usergate.database import DocumentNotFoundError

MISSING_ID = "507f1f77bcf86cd799439011"


@pytest.fixture
def service(users_repo, hasher, tmp_path) -> UsersService:
    return UsersService(users=users_repo, hasher=hasher, images=ImageStorage(media_dir=str(tmp_path)))


async def create(service: UsersService, email: str = "u@x.com", **kwargs):
    return await service.create_user(CreateUserRequest(email=email, password="secret-1", **kwargs))


class TestLookup:
    @pytest.mark.asyncio
    async def test_get_by_id_and_email(self, service):
        user = await create(service, first_name="Ada")

        assert (await service.get_user_by_id(user.id)).first_name == "Ada"
        assert (await service.get_user_by_email("u@x.com")).id == user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", ["get_user_by_id", "get_user_by_email"])
    async def test_missing_user(self, service, call):
        with pytest.raises(DocumentNotFoundError, match="User not found"):
            await getattr(service, call)(MISSING_ID)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_hashes_password(self, service, users_repo, hasher):
        user = await create(service, is_admin=True)

        stored = await users_repo.find_by_id(user.id)
        assert stored.password != "secret-1"
        assert await hasher.is_match_hashed(stored.password, "secret-1")
        assert user.is_admin is True

    @pytest.mark.asyncio
    async def test_create_rejects_existing_email(self, service):
        await create(service)
        with pytest.raises(HTTPException) as exc:
            await create(service)
        assert exc.value.status_code == 400


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_only_touches_given_fields(self, service):
        user = await create(service, first_name="Ada", last_name="Lovelace")

        updated = await service.update_user(user.id, UpdateUserRequest(phone="555"))

        assert updated.phone == "555"
        assert updated.first_name == "Ada"
        assert updated.last_name == "Lovelace"

    @pytest.mark.asyncio
    async def test_empty_update_returns_user(self, service):
        user = await create(service)
        assert (await service.update_user(user.id, UpdateUserRequest())).id == user.id

    @pytest.mark.asyncio
    async def test_update_missing_user(self, service):
        with pytest.raises(DocumentNotFoundError):
            await service.update_user(MISSING_ID, UpdateUserRequest(phone="1"))

    @pytest.mark.asyncio
    async def test_admin_update_can_change_role_and_email(self, service):
        user = await create(service)

        updated = await service.update_user_by_admin(
            user.id, UpdateUserByAdminRequest(email="new@x.com", is_admin=True)
        )

        assert updated.email == "new@x.com"
        assert updated.is_admin is True

    @pytest.mark.asyncio
    async def test_admin_update_ignores_null_email_and_role(self, service):
        user = await create(service, is_admin=True)

        updated = await service.update_user_by_admin(
            user.id, UpdateUserByAdminRequest(email=None, is_admin=None, first_name="Grace")
        )

        assert updated.email == "u@x.com"
        assert updated.is_admin is True
        assert updated.first_name == "Grace"


class TestPassword:
    @pytest.mark.asyncio
    async def test_change_password(self, service, users_repo, hasher):
        user = await create(service)

        await service.update_user_password(
            user.id, UpdatePasswordRequest(old_password="secret-1", new_password="secret-2")
        )

        assert await hasher.is_match_hashed((await users_repo.find_by_id(user.id)).password, "secret-2")

    @pytest.mark.asyncio
    async def test_wrong_old_password(self, service):
        user = await create(service)
        with pytest.raises(HTTPException) as exc:
            await service.update_user_password(
                user.id, UpdatePasswordRequest(old_password="nope", new_password="secret-2")
            )
        assert exc.value.status_code == 400
        assert exc.value.detail == "Old password is incorrect."


class TestListing:
    @pytest.mark.asyncio
    async def test_list_without_pagination_returns_everything(self, service):
        for i in range(12):
            await create(service, email=f"u{i}@x.com")

        result = await service.get_users(UserQuery())

        assert result.count == 12
        assert len(result.data) == 12

    @pytest.mark.asyncio
    async def test_list_with_pagination(self, service):
        for i in range(12):
            await create(service, email=f"u{i}@x.com")

        first = await service.get_users(UserQuery(page_number=1))
        second = await service.get_users(UserQuery(page_number=2, page_size=10))

        assert len(first.data) == 10
        assert len(second.data) == 2
        assert first.count == second.count == 12

    @pytest.mark.asyncio
    async def test_list_filters(self, service):
        await create(service, email="a@x.com", is_admin=True)
        await create(service, email="b@x.com")

        admins = await service.get_users(UserQuery(is_admin=True))
        by_email = await service.get_users(UserQuery(email="b@x.com"))

        assert [u.email for u in admins.data] == ["a@x.com"]
        assert [u.email for u in by_email.data] == ["b@x.com"]


class TestImages:
    @pytest.mark.asyncio
    async def test_set_image_stores_file_and_path(self, service, tmp_path):
        user = await create(service)
        upload = UploadFile(
            file=BytesIO(b"\x89PNG data"), filename="me.png", headers=Headers({"content-type": "image/png"})
        )

        updated = await service.set_user_image(user.id, upload)

        assert updated.image.startswith(f"users/{user.id}/")
        assert updated.image.endswith(".png")
        assert (tmp_path / updated.image).read_bytes() == b"\x89PNG data"

    @pytest.mark.asyncio
    async def test_set_image_for_missing_user(self, service, tmp_path):
        upload = UploadFile(file=BytesIO(b"x"), filename="me.png", headers=Headers({"content-type": "image/png"}))
        with pytest.raises(DocumentNotFoundError):
            await service.set_user_image(MISSING_ID, upload)
        assert not (tmp_path / "users").exists()
