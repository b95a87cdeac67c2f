import logging
from fastapi import APIRouter, Depends
from mentara.core.db import KeyValueStore, get_store
from mentara.core.exceptions import ServiceError, failure
from mentara.api.models.schemas import SendNotificationRequest
from mentara.api.crud.session_crud import NotificationRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}")
async def get_notifications(user_id: str, store: KeyValueStore = Depends(get_store)):
    """Newest first. Scans every notification record."""
    try:
        return {"success": True, "notifications": await NotificationRepository(store).list_for_user(user_id)}
    except Exception as e:
        logger.exception(f"Error fetching notifications: {e}")
        return failure(500, "Failed to fetch notifications")


@router.put("/{notification_id}/read")
async def mark_notification_read(notification_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        if not await NotificationRepository(store).mark_read(notification_id):
            return failure(404, "Notification not found")
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error marking notification as read: {e}")
        return failure(500, "Failed to mark notification as read")


@router.put("/{user_id}/read-all")
async def mark_all_read(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        updated = await NotificationRepository(store).mark_all_read(user_id)
        return {"success": True, "updated": updated}
    except Exception as e:
        logger.exception(f"Error marking all notifications as read: {e}")
        return failure(500, "Failed to mark all notifications as read")


@router.delete("/{notification_id}")
async def delete_notification(notification_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        await NotificationRepository(store).delete(notification_id)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error deleting notification: {e}")
        return failure(500, "Failed to delete notification")


@router.post("/send")
async def send_notification(request: SendNotificationRequest, store: KeyValueStore = Depends(get_store)):
    try:
        notification = await NotificationRepository(store).create(
            request.user_id, request.type, request.title, request.message, request.session_id
        )
        return {"success": True, "notificationId": notification["id"]}
    except Exception as e:
        logger.exception(f"Error sending notification: {e}")
        return failure(500, "Failed to send notification")
