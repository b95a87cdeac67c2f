from fastapi import APIRouter
from mentara.api.endpoints import chat, catalog, status
from mentara.api.endpoints import auth, users
from mentara.api.endpoints import sessions, notifications

api_router = APIRouter()

api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])
api_router.include_router(status.router, prefix="/status", tags=["API Status"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(auth.router, tags=["Auth"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(catalog.router, tags=["Catalogs"])
