from typing import Any, Dict, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from usergate.apps.accounts.models.documents import UserDocument, utc_now
from usergate.database import EntityRepository, Page, PaginateParams, QueryOptions


def to_object_id(value: str) -> Optional[PydanticObjectId]:
    """Parse a hex id, returning None when it is not a valid ObjectId."""
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        return None


class UsersRepository(EntityRepository[UserDocument]):
    model_cls = UserDocument

    async def find_by_email(self, email: str) -> Optional[UserDocument]:
        return await self.find_one({"email": email})

    async def find_by_id(self, user_id: str) -> Optional[UserDocument]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self.find_one({"_id": oid})

    async def list_users(
        self,
        email: Optional[str] = None,
        is_admin: Optional[bool] = None,
        paginate: Optional[PaginateParams] = None,
    ) -> Page[UserDocument]:
        filter: Dict[str, Any] = {}
        if email is not None:
            filter["email"] = email
        if is_admin is not None:
            filter["is_admin"] = is_admin
        return await self.find_with_pagination(filter, QueryOptions(sort="-created_at"), paginate)

    async def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserDocument]:
        """Set `fields` on the user and bump `updated_at`. Returns None if the user does not exist."""
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self.find_one_and_update({"_id": oid}, {**fields, "updated_at": utc_now()})
