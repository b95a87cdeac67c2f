import logging
from fastapi import APIRouter, HTTPException, Depends
from mentara.core.db import KeyValueStore, get_store
from mentara.core.exceptions import ServiceError, failure
from mentara.api.models.schemas import SignupRequest, LoginRequest, TokenRequest, SetPasswordRequest, ChangeTempPasswordRequest
from mentara.api.services.user_service import UserService
from mentara.api.services.password_service import PasswordService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/signup")
async def signup(request: SignupRequest, store: KeyValueStore = Depends(get_store)):
    """Create the account record, or revive a soft-deleted one. Banned emails are refused."""
    try:
        result = await UserService(store).signup(request.email, request.password, request.name)
        return {"success": True, **result}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Signup error: {e}")
        raise HTTPException(status_code=500, detail="Failed to create account")


@router.post("/admin/login")
async def admin_login(request: LoginRequest):
    try:
        return {"success": True, **UserService.portal_login("admin", request.email, request.password)}
    except ServiceError as e:
        return failure(e.status_code, e.message)


@router.post("/counselor/login")
async def counselor_login(request: LoginRequest):
    try:
        return {"success": True, **UserService.portal_login("counselor", request.email, request.password)}
    except ServiceError as e:
        return failure(e.status_code, e.message)


@router.post("/auth/verify-password-token")
async def verify_password_token(request: TokenRequest, store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, **await PasswordService(store).verify_token(request.token)}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error verifying token: {e}")
        return failure(500, "Failed to verify token")


@router.post("/auth/set-password-with-token")
async def set_password_with_token(request: SetPasswordRequest, store: KeyValueStore = Depends(get_store)):
    try:
        result = await PasswordService(store).set_password_with_token(request.token, request.new_password)
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error setting password with token: {e}")
        return failure(500, "Failed to set password")


@router.post("/auth/change-temp-password")
async def change_temp_password(request: ChangeTempPasswordRequest, store: KeyValueStore = Depends(get_store)):
    try:
        result = await PasswordService(store).change_temp_password(
            request.user_id, request.temp_password, request.new_password
        )
        return {"success": True, **result}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error changing temporary password: {e}")
        return failure(500, "Failed to change password")
