# services/password_service.py
import logging
from typing import Any, Dict, List, Optional
from mentara.core.config import settings
from mentara.core.db import KeyValueStore
from mentara.core.exceptions import AuthenticationError, NotFoundError, PolicyError, TokenError
from mentara.core.security import (
    hash_password,
    verify_password,
    generate_secure_token,
    generate_secure_password,
)
from mentara.core.utils import expires_in, to_iso, utc_iso_now, utc_now, parse_iso, now_ms
from mentara.api.crud.user_crud import UserRepository, PasswordTokenRepository, AuditRepository

logger = logging.getLogger(__name__)

SSO_MESSAGE = "User uses SSO authentication. Password changes are managed through SSO provider."
PASSWORD_POLICY = "Minimum 8 characters, mix of letters, numbers and symbols"


class PasswordService:
    """
    Admin password operations. Every admin action appends one audit entry;
    the password itself is never written to the audit log.
    """

    def __init__(self, store: KeyValueStore):
        self.users = UserRepository(store)
        self.tokens = PasswordTokenRepository(store)
        self.audit = AuditRepository(store)

    async def _load_user(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_password_status(self, user_id: str) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        has_password = bool(user.get("passwordHash"))

        if has_password:
            status = "set"
        elif user.get("ssoProvider"):
            status = "sso_managed"
        elif user.get("pendingPasswordSet"):
            status = "pending_invite"
        else:
            status = "not_set"

        return {
            "status": status,
            "hasPassword": has_password,
            "lastPasswordChange": user.get("lastPasswordChange") or user.get("createdAt"),
            "passwordSetVia": user.get("passwordSetVia") or "unknown",
            "ssoProvider": user.get("ssoProvider"),
            "passwordStrengthPolicy": PASSWORD_POLICY,
        }

    async def _issue_token(self, user_id: str, token_type: str, admin_id: Optional[str]) -> Dict[str, Any]:
        record = {
            "id": f"{token_type}_{user_id}_{now_ms()}",
            "userId": user_id,
            "token": generate_secure_token(),
            "type": token_type,
            "expiresAt": to_iso(expires_in(settings.PASSWORD_TOKEN_TTL_MINUTES)),
            "used": False,
            "createdBy": admin_id,
        }
        await self.tokens.save(record)
        return record

    async def send_set_password_link(self, user_id: str, admin_id: Optional[str], reason: Optional[str]) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        record = await self._issue_token(user_id, "set_password", admin_id)

        await self.users.save({**user, "pendingPasswordSet": True, "passwordTokenId": record["id"]})
        await self.audit.append(admin_id, user_id, "SEND_SET_PASSWORD_LINK", {
            "reason": reason,
            "tokenId": record["id"],
            "expiresAt": record["expiresAt"],
        })
        logger.info(f"Set-password link issued for user {user_id}")

        # No mail transport; the link goes back to the admin console.
        return {
            "message": "Set password link sent to user",
            "expiresAt": record["expiresAt"],
            "setPasswordUrl": f"/set-password?token={record['token']}",
        }

    async def generate_temp_password(self, user_id: str, admin_id: Optional[str], reason: Optional[str],
                                     email_to_user: bool = False) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        if user.get("ssoProvider"):
            raise PolicyError(SSO_MESSAGE)

        temp_password = generate_secure_password(16)
        expires_at = to_iso(expires_in(settings.TEMP_PASSWORD_TTL_MINUTES))

        # one active temp password per user
        await self.tokens.delete_temp_password(user_id)
        record_id = f"temp_password_{user_id}"
        await self.tokens.save_temp_password(user_id, {
            "id": record_id,
            "userId": user_id,
            "passwordHash": hash_password(temp_password),
            "expiresAt": expires_at,
            "singleUse": True,
            "used": False,
            "createdBy": admin_id,
        })

        await self.users.save({
            **user,
            "tempPasswordActive": True,
            "tempPasswordId": record_id,
            "requiresPasswordChange": True,
        })
        await self.audit.append(admin_id, user_id, "GENERATE_TEMP_PASSWORD", {
            "reason": reason,
            "emailToUser": email_to_user,
            "expiresAt": expires_at,
            "tempPasswordId": record_id,
        })
        logger.info(f"Temporary password generated for user {user_id}")

        return {
            "message": "Temporary password generated",
            "tempPassword": temp_password,
            "expiresAt": expires_at,
            "expiresInMinutes": settings.TEMP_PASSWORD_TTL_MINUTES,
            "singleUse": True,
            "warning": "This password is shown only once and cannot be retrieved again. Consider emailing it to the user.",
        }

    async def force_password_reset(self, user_id: str, admin_id: Optional[str], reason: Optional[str]) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        if user.get("ssoProvider"):
            raise PolicyError(SSO_MESSAGE)

        record = await self._issue_token(user_id, "force_reset", admin_id)
        await self.users.save({
            **user,
            "requiresPasswordChange": True,
            "passwordResetRequired": True,
            "passwordResetTokenId": record["id"],
            "currentPasswordInvalidated": True,
        })
        await self.audit.append(admin_id, user_id, "FORCE_PASSWORD_RESET", {
            "reason": reason,
            "tokenId": record["id"],
            "expiresAt": record["expiresAt"],
        })
        logger.info(f"Password reset forced for user {user_id}")

        return {
            "message": "Password reset forced. User must reset password on next login.",
            "resetUrl": f"/reset-password?token={record['token']}",
            "expiresAt": record["expiresAt"],
        }

    async def deactivate(self, user_id: str, admin_id: Optional[str], reason: Optional[str]) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        await self.users.save({
            **user,
            "isActive": False,
            "deactivatedAt": utc_iso_now(),
            "deactivatedBy": admin_id,
            "deactivationReason": reason,
        })
        await self.audit.append(admin_id, user_id, "DEACTIVATE_USER", {"reason": reason})
        return {"message": "User access deactivated"}

    async def reactivate(self, user_id: str, admin_id: Optional[str], reason: Optional[str]) -> Dict[str, Any]:
        user = await self._load_user(user_id)
        await self.users.save({
            **user,
            "isActive": True,
            "reactivatedAt": utc_iso_now(),
            "reactivatedBy": admin_id,
            "deactivationReason": None,
        })
        await self.audit.append(admin_id, user_id, "REACTIVATE_USER", {"reason": reason})
        return {"message": "User access reactivated"}

    async def get_user_audit_logs(self, user_id: str) -> List[Dict[str, Any]]:
        return await self.audit.list(user_id)

    async def get_all_audit_logs(self) -> List[Dict[str, Any]]:
        return await self.audit.list()

    async def _check_token(self, token: str) -> Dict[str, Any]:
        record = await self.tokens.find_by_token(token)
        if not record:
            raise TokenError("Invalid token")
        if parse_iso(record["expiresAt"]) < utc_now():
            raise TokenError("Token expired")
        if record.get("used"):
            raise TokenError("Token already used")
        return record

    async def verify_token(self, token: str) -> Dict[str, Any]:
        record = await self._check_token(token)
        return {"valid": True, "userId": record["userId"], "type": record["type"]}

    async def set_password_with_token(self, token: str, new_password: str) -> Dict[str, Any]:
        record = await self._check_token(token)

        # token is spent before the user is written; the two writes are not atomic
        await self.tokens.save({**record, "used": True, "usedAt": utc_iso_now()})

        user = await self._load_user(record["userId"])
        await self.users.save({
            **user,
            "passwordHash": hash_password(new_password),
            "lastPasswordChange": utc_iso_now(),
            "passwordSetVia": "invite" if record["type"] == "set_password" else "reset",
            "pendingPasswordSet": False,
            "requiresPasswordChange": False,
            "passwordResetRequired": False,
            "currentPasswordInvalidated": False,
            "passwordTokenId": None,
            "passwordResetTokenId": None,
        })
        logger.info(f"Password set via {record['type']} token for user {record['userId']}")
        return {"message": "Password set successfully"}

    async def change_temp_password(self, user_id: str, temp_password: str, new_password: str) -> Dict[str, Any]:
        """Redeem the active temporary password once, replacing it with ``new_password``."""
        user = await self._load_user(user_id)
        record = await self.tokens.get_temp_password(user_id)
        if not record or record.get("used"):
            raise AuthenticationError("Invalid temporary password")
        if parse_iso(record["expiresAt"]) < utc_now():
            await self.tokens.delete_temp_password(user_id)
            raise TokenError("Temporary password expired")
        if not verify_password(temp_password, record.get("passwordHash")):
            raise AuthenticationError("Invalid temporary password")

        await self.tokens.delete_temp_password(user_id)
        await self.users.save({
            **user,
            "passwordHash": hash_password(new_password),
            "lastPasswordChange": utc_iso_now(),
            "passwordSetVia": "temporary",
            "tempPasswordActive": False,
            "tempPasswordId": None,
            "requiresPasswordChange": False,
        })
        logger.info(f"Temporary password redeemed for user {user_id}")
        return {"message": "Password changed successfully"}
