# crud/user_crud.py
from typing import Any, Dict, List, Optional
from mentara.core import keys
from mentara.core.db import KeyValueStore
from mentara.core.utils import make_id, utc_iso_now, parse_iso


class UserRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(keys.user_key(user_id))

    async def save(self, user: Dict[str, Any]):
        await self.store.set(keys.user_key(user["id"]), user)

    async def list(self) -> List[Dict[str, Any]]:
        return await self.store.get_by_prefix(keys.prefix(keys.USER))

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        email = email.strip().lower()
        for user in await self.list():
            if (user.get("email") or "").lower() == email:
                return user
        return None


class PasswordTokenRepository:
    """
    Set-password and reset tokens. Lookup by token value scans every token
    record (O(n) in the number of tokens ever issued).
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def save(self, token: Dict[str, Any]):
        await self.store.set(keys.password_token_key(token["id"]), token)

    async def find_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        for record in await self.store.get_by_prefix(keys.prefix(keys.PASSWORD_TOKEN)):
            if record.get("token") == token:
                return record
        return None

    async def get_temp_password(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(keys.temp_password_key(user_id))

    async def save_temp_password(self, user_id: str, record: Dict[str, Any]):
        await self.store.set(keys.temp_password_key(user_id), record)

    async def delete_temp_password(self, user_id: str):
        await self.store.delete(keys.temp_password_key(user_id))


class AuditRepository:
    """Append-only audit log. Reads are a full prefix scan sorted in memory."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def append(self, admin_id: Optional[str], target_user_id: str, action: str,
                     metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        metadata = metadata or {}
        audit_id = make_id("audit")
        entry = {
            "id": audit_id,
            "adminId": admin_id,
            "targetUserId": target_user_id,
            "action": action,
            "metadata": metadata,
            "timestamp": utc_iso_now(),
            "ip": metadata.get("ip", "unknown"),
        }
        await self.store.set(keys.audit_key(audit_id), entry)
        return entry

    async def list(self, target_user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        entries = await self.store.get_by_prefix(keys.prefix(keys.AUDIT))
        if target_user_id is not None:
            entries = [e for e in entries if e.get("targetUserId") == target_user_id]
        entries.sort(key=lambda e: parse_iso(e["timestamp"]), reverse=True)
        return entries
