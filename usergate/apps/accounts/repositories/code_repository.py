import secrets
from datetime import timedelta
from typing import Optional

from usergate.apps.accounts.models.documents import VerificationCodeDocument, utc_now
from usergate.database import EntityRepository, QueryOptions

OTP_DIGITS = 6


def generate_otp(digits: int = OTP_DIGITS) -> str:
    return f"{secrets.randbelow(10**digits):0{digits}d}"


class CodeRepository(EntityRepository[VerificationCodeDocument]):
    """Verification codes. A code is active while `is_active` is set and it has not expired."""

    model_cls = VerificationCodeDocument

    @staticmethod
    def _active(email: str) -> dict:
        return {"email": email, "is_active": True, "expires_at": {"$gt": utc_now()}}

    async def find_active_code(self, email: str) -> Optional[VerificationCodeDocument]:
        return await self.find_one(self._active(email), QueryOptions(sort="-created_at"))

    async def find_code_by_email_and_otp(self, email: str, otp: str) -> Optional[VerificationCodeDocument]:
        return await self.find_one({**self._active(email), "otp": otp}, QueryOptions(sort="-created_at"))

    async def issue_code(self, email: str, ttl_seconds: int) -> VerificationCodeDocument:
        """Deactivate any outstanding code for the email and store a new one."""
        await self.model_cls.find({"email": email, "is_active": True}).update({"$set": {"is_active": False}})
        return await self.create(
            {
                "email": email,
                "otp": generate_otp(),
                "is_active": True,
                "expires_at": utc_now() + timedelta(seconds=ttl_seconds),
            }
        )

    async def deactivate(self, code: VerificationCodeDocument) -> None:
        await self.find_one_and_update({"_id": code.id}, {"is_active": False})
