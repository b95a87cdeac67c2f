# services/user_service.py
import logging
import uuid
from typing import Any, Dict, List, Optional
from mentara.core.config import settings
from mentara.core.db import KeyValueStore
from mentara.core.exceptions import (
    AuthenticationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from mentara.core.security import hash_password, create_access_token
from mentara.core.utils import utc_iso_now
from mentara.api.crud.user_crud import UserRepository

logger = logging.getLogger(__name__)


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User document without credential material."""
    return {k: v for k, v in user.items() if k != "passwordHash"}


def _fresh_account(user_id: str, email: str, name: Optional[str], password: str) -> Dict[str, Any]:
    now = utc_iso_now()
    return {
        "id": user_id,
        "email": email,
        "name": name,
        "passwordHash": hash_password(password),
        "createdAt": now,
        "lastActive": now,
        "isActive": True,
        "isOnline": False,
        "isDeleted": False,
        "deleteReason": None,
        "deletedAt": None,
        "allowRecreation": False,
        "isBanned": False,
        "banReason": None,
        "banUntil": None,
        "bannedAt": None,
        "passwordSetVia": "signup",
        "lastPasswordChange": now,
    }


class UserService:
    def __init__(self, store: KeyValueStore):
        self.users = UserRepository(store)

    async def signup(self, email: Optional[str], password: Optional[str], name: Optional[str]) -> Dict[str, Any]:
        if not email or not password:
            raise ValidationError("Email and password are required")

        existing = await self.users.find_by_email(email)
        if existing:
            if existing.get("isBanned"):
                raise ForbiddenError(
                    f"This account has been banned. Reason: {existing.get('banReason') or 'No reason provided'}"
                )
            if existing.get("isDeleted") and existing.get("allowRecreation"):
                await self.users.save(_fresh_account(existing["id"], email, name, password))
                logger.info(f"Deleted account {existing['id']} re-registered")
                return {"message": "Account recreated successfully"}
            raise ValidationError("User already exists")

        user = _fresh_account(str(uuid.uuid4()), email, name, password)
        await self.users.save(user)
        logger.info(f"New user {user['id']} created")
        return {"user": public_user(user)}

    @staticmethod
    def portal_login(role: str, email: str, password: str) -> Dict[str, Any]:
        """Built-in admin and counselor accounts come from configuration."""
        credentials = {
            "admin": (settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD),
            "counselor": (settings.COUNSELOR_EMAIL, settings.COUNSELOR_PASSWORD),
        }
        expected_email, expected_password = credentials[role]
        if email != expected_email or password != expected_password:
            raise AuthenticationError("Invalid credentials")
        token = create_access_token(subject=f"{role}_{email.split('@')[0]}", role=role, email=email)
        return {"access_token": token, "token_type": "bearer", "role": role}

    async def _load(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        user = await self._load(user_id)
        return {
            "id": user["id"],
            "email": user.get("email"),
            "name": user.get("name") or "",
            "university": user.get("university") or "",
            "profileImage": user.get("profileImage") or "",
        }

    async def update_profile(self, user_id: str, name: Optional[str], university: Optional[str],
                             profile_image: Optional[str]) -> Dict[str, Any]:
        user = await self._load(user_id)
        updated = {
            **user,
            "name": name or user.get("name"),
            "university": university if university is not None else user.get("university"),
            "profileImage": profile_image if profile_image is not None else user.get("profileImage"),
        }
        await self.users.save(updated)
        return public_user(updated)

    async def list_users(self) -> List[Dict[str, Any]]:
        users = [public_user(u) for u in await self.users.list()]
        users.sort(key=lambda u: u.get("createdAt") or "", reverse=True)
        return users

    async def ban_or_delete(self, user_id: str, action: str, reason: Optional[str],
                            ban_until: Optional[str]) -> Dict[str, Any]:
        if not reason:
            raise ValidationError("Reason is required")
        user = await self._load(user_id)

        if action == "ban":
            updated = {
                **user,
                "isBanned": True,
                "banReason": reason,
                "bannedAt": utc_iso_now(),
                "banUntil": ban_until,
                "isDeleted": False,
            }
        else:
            # soft delete, the email may sign up again
            updated = {
                **user,
                "isDeleted": True,
                "deleteReason": reason,
                "deletedAt": utc_iso_now(),
                "allowRecreation": True,
                "isBanned": False,
            }
        await self.users.save(updated)
        logger.info(f"User {user_id} {'banned' if action == 'ban' else 'soft deleted'}")
        return public_user(updated)

    async def unban(self, user_id: str) -> Dict[str, Any]:
        user = await self._load(user_id)
        if not user.get("isBanned"):
            raise ValidationError("User is not banned")
        updated = {
            **user,
            "isBanned": False,
            "banReason": None,
            "bannedAt": None,
            "banUntil": None,
            "unbannedAt": utc_iso_now(),
        }
        await self.users.save(updated)
        return public_user(updated)
