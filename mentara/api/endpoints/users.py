import logging
from fastapi import APIRouter, Depends, Body
from typing import Dict, Any, Optional
from mentara.core.db import KeyValueStore, get_store
from mentara.core.exceptions import ServiceError, failure
from mentara.core.security import get_optional_user
from mentara.api.models.schemas import (
    ProfileUpdate,
    UserActionRequest,
    AdminActionRequest,
    TempPasswordRequest,
)
from mentara.api.services.user_service import UserService
from mentara.api.services.password_service import PasswordService

logger = logging.getLogger(__name__)

router = APIRouter()


def _admin_id(request: Optional[AdminActionRequest], current_user: Optional[Dict[str, Any]]) -> Optional[str]:
    if request and request.admin_id:
        return request.admin_id
    return current_user["id"] if current_user else None


# Profiles

@router.get("/profile/{user_id}")
async def get_profile(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, "profile": await UserService(store).get_profile(user_id)}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error fetching profile: {e}")
        return failure(500, "Failed to fetch profile")


@router.put("/profile/{user_id}")
async def update_profile(user_id: str, request: ProfileUpdate, store: KeyValueStore = Depends(get_store)):
    try:
        profile = await UserService(store).update_profile(
            user_id, request.name, request.university, request.profile_image
        )
        return {"success": True, "profile": profile}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error updating profile: {e}")
        return failure(500, "Failed to update profile")


# User administration

@router.get("/admin/users")
async def list_users(store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, "users": await UserService(store).list_users()}
    except Exception as e:
        logger.exception(f"Error fetching users: {e}")
        return failure(500, "Failed to fetch users")


@router.delete("/admin/users/{user_id}")
async def ban_or_delete_user(user_id: str, request: UserActionRequest, store: KeyValueStore = Depends(get_store)):
    """``action=ban`` blocks the account; anything else soft-deletes it so the email can sign up again."""
    try:
        await UserService(store).ban_or_delete(user_id, request.action, request.reason, request.ban_until)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error processing user action: {e}")
        return failure(500, "Failed to process action")


@router.post("/admin/users/{user_id}/unban")
async def unban_user(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        await UserService(store).unban(user_id)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error unbanning user: {e}")
        return failure(500, "Failed to unban user")


# Password management

@router.get("/admin/users/{user_id}/password/status")
async def password_status(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, "status": await PasswordService(store).get_password_status(user_id)}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error getting password status: {e}")
        return failure(500, "Failed to get password status")


@router.post("/admin/users/{user_id}/password/set-link")
async def send_set_password_link(
    user_id: str,
    request: Optional[AdminActionRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    try:
        result = await PasswordService(store).send_set_password_link(
            user_id, _admin_id(request, current_user), request.reason if request else None
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error sending set password link: {e}")
        return failure(500, "Failed to send set password link")


@router.post("/admin/users/{user_id}/password/temp")
async def generate_temp_password(
    user_id: str,
    request: Optional[TempPasswordRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    """The temporary password is returned once here and stored only as a hash."""
    try:
        request = request or TempPasswordRequest()
        result = await PasswordService(store).generate_temp_password(
            user_id, _admin_id(request, current_user), request.reason, request.email_to_user
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error generating temp password: {e}")
        return failure(500, "Failed to generate temporary password")


@router.post("/admin/users/{user_id}/password/force-reset")
async def force_password_reset(
    user_id: str,
    request: Optional[AdminActionRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    try:
        result = await PasswordService(store).force_password_reset(
            user_id, _admin_id(request, current_user), request.reason if request else None
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error forcing password reset: {e}")
        return failure(500, "Failed to force password reset")


@router.post("/admin/users/{user_id}/password/deactivate")
async def deactivate_user(
    user_id: str,
    request: Optional[AdminActionRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    try:
        result = await PasswordService(store).deactivate(
            user_id, _admin_id(request, current_user), request.reason if request else None
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error deactivating user: {e}")
        return failure(500, "Failed to deactivate user")


@router.post("/admin/users/{user_id}/password/reactivate")
async def reactivate_user(
    user_id: str,
    request: Optional[AdminActionRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
    current_user: Optional[Dict[str, Any]] = Depends(get_optional_user),
):
    try:
        result = await PasswordService(store).reactivate(
            user_id, _admin_id(request, current_user), request.reason if request else None
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error reactivating user: {e}")
        return failure(500, "Failed to reactivate user")


@router.get("/admin/users/{user_id}/password/audit-logs")
async def user_audit_logs(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, "logs": await PasswordService(store).get_user_audit_logs(user_id)}
    except Exception as e:
        logger.exception(f"Error getting audit logs: {e}")
        return failure(500, "Failed to get audit logs")


@router.get("/admin/audit-logs")
async def all_audit_logs(store: KeyValueStore = Depends(get_store)):
    """Every audit entry, newest first. Full scan with an in-memory sort."""
    try:
        return {"success": True, "logs": await PasswordService(store).get_all_audit_logs()}
    except Exception as e:
        logger.exception(f"Error getting audit logs: {e}")
        return failure(500, "Failed to get audit logs")
