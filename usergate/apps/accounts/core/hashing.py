import asyncio

from usergate.core import UserGate
from usergate.core.utils import hash_password, verify_password


class HashService(UserGate):
    """Argon2 hashing for passwords and refresh tokens, run off the event loop."""

    async def hash_data(self, plain: str) -> str:
        return await asyncio.to_thread(hash_password, plain)

    async def is_match_hashed(self, hashed: str | None, plain: str) -> bool:
        if not hashed:
            return False
        return await asyncio.to_thread(verify_password, plain, hashed)
