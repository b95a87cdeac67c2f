# crud/session_crud.py
from typing import Any, Dict, List, Optional
from mentara.core import keys
from mentara.core.db import KeyValueStore
from mentara.core.utils import make_id, utc_iso_now, parse_iso


class SessionRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def list(self) -> List[Dict[str, Any]]:
        return await self.store.get_by_prefix(keys.prefix(keys.SESSION))

    async def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(keys.session_key(session_id))

    async def save(self, session: Dict[str, Any]):
        await self.store.set(keys.session_key(session["id"]), session)


class NotificationRepository:
    """Notifications are looked up per user by a full prefix scan."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def create(self, user_id: Optional[str], type: str, title: str, message: str,
                     session_id: Optional[str] = None) -> Dict[str, Any]:
        notification_id = make_id("notif")
        notification = {
            "id": notification_id,
            "userId": user_id,
            "type": type,
            "title": title,
            "message": message,
            "read": False,
            "createdAt": utc_iso_now(),
            "sessionId": session_id,
        }
        await self.store.set(keys.notification_key(notification_id), notification)
        return notification

    async def get(self, notification_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get(keys.notification_key(notification_id))

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        notifications = await self.store.get_by_prefix(keys.prefix(keys.NOTIFICATION))
        mine = [n for n in notifications if n.get("userId") == user_id]
        mine.sort(key=lambda n: parse_iso(n["createdAt"]), reverse=True)
        return mine

    async def mark_read(self, notification_id: str) -> bool:
        notification = await self.get(notification_id)
        if not notification:
            return False
        await self.store.set(keys.notification_key(notification_id), {**notification, "read": True})
        return True

    async def mark_all_read(self, user_id: str) -> int:
        unread = [n for n in await self.list_for_user(user_id) if not n.get("read")]
        for notification in unread:
            await self.store.set(keys.notification_key(notification["id"]), {**notification, "read": True})
        return len(unread)

    async def delete(self, notification_id: str):
        await self.store.delete(keys.notification_key(notification_id))
