# app/modules/auth/revocation.py

"""
Access-token revocation list kept in Redis.

Keys are the SHA-256 of the raw token and expire together with the token,
so the list never outgrows the set of still-valid tokens.
"""

from app.core.cache import Cache, cache
from app.core.security import hash_access_token

KEY_PREFIX = "revoked_token:"


class RevocationList:
    def __init__(self, store: Cache):
        self.store = store

    @staticmethod
    def _key(token: str) -> str:
        return KEY_PREFIX + hash_access_token(token)

    async def revoke(self, token: str, ttl_seconds: int) -> None:
        await self.store.set(self._key(token), "1", ttl=ttl_seconds)

    async def is_revoked(self, token: str) -> bool:
        return await self.store.exists(self._key(token))


revocation_list = RevocationList(cache)
