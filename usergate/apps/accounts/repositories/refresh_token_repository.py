from typing import Optional

from usergate.apps.accounts.models.documents import RefreshTokenDocument, utc_now
from usergate.database import EntityRepository


class RefreshTokenRepository(EntityRepository[RefreshTokenDocument]):
    """One hashed refresh token per (user, device)."""

    model_cls = RefreshTokenDocument

    async def get_refresh_token(self, user_id: str, device_name: str) -> Optional[RefreshTokenDocument]:
        return await self.find_one({"user_id": user_id, "device_name": device_name})

    async def update_refresh_token(self, user_id: str, device_name: str, refresh_token: str) -> RefreshTokenDocument:
        """Store the hashed token for the device, replacing any previous one."""
        now = utc_now()
        return await self.find_one_and_update(
            {"user_id": user_id, "device_name": device_name},
            {"$set": {"refresh_token": refresh_token, "updated_at": now}},
            upsert={"user_id": user_id, "device_name": device_name, "refresh_token": refresh_token, "updated_at": now},
        )

    async def delete_refresh_token(self, user_id: str, device_name: str) -> bool:
        return await self.delete_many({"user_id": user_id, "device_name": device_name})
