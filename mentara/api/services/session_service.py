# services/session_service.py
import logging
import random
from typing import Any, Dict, List, Optional
from mentara.core.db import KeyValueStore
from mentara.core.exceptions import NotFoundError
from mentara.core.utils import make_id, now_ms, utc_iso_now
from mentara.api.crud.session_crud import SessionRepository, NotificationRepository

logger = logging.getLogger(__name__)


def _status_notification(status: str, session: Dict[str, Any], reason: Optional[str]):
    """(type, title, message) for statuses that notify, else None."""
    if status == "confirmed":
        return ("session_confirmed", "Session Confirmed",
                f"Your session on {session.get('date')} at {session.get('time')} has been confirmed.")
    if status == "cancelled":
        return ("session_cancelled", "Session Cancelled",
                f"Your session on {session.get('date')} at {session.get('time')} has been cancelled. {reason or ''}".strip())
    if status == "in-progress":
        return ("session_started", "Session Started", "Your session has started.")
    if status == "completed":
        return ("session_completed", "Session Completed",
                "Your session has been completed. Please provide feedback.")
    return None


class SessionService:
    """
    Booking lifecycle. Each call writes the booking first and then creates
    notifications one at a time; a failure part way leaves the earlier writes in place.
    """

    def __init__(self, store: KeyValueStore):
        self.sessions = SessionRepository(store)
        self.notifications = NotificationRepository(store)

    async def list_sessions(self) -> List[Dict[str, Any]]:
        return await self.sessions.list()

    async def _load(self, session_id: str) -> Dict[str, Any]:
        session = await self.sessions.get(session_id)
        if not session:
            raise NotFoundError("Session not found")
        return session

    async def book(self, data: Dict[str, Any]) -> Dict[str, Any]:
        session_id = make_id("session")
        transaction_id = f"TXN{now_ms()}{random.randint(0, 999)}"
        session = {
            **data,
            "id": session_id,
            "transactionId": transaction_id,
            "bookingDate": utc_iso_now(),
            "status": data.get("status") or "pending",
        }
        await self.sessions.save(session)
        logger.info(f"Session {session_id} booked for user {session.get('userId')}")

        await self.notifications.create(
            session.get("userId"), "session_booked", "Session Booked Successfully",
            f"Your session with {session.get('counselorName')} has been booked for "
            f"{session.get('date')} at {session.get('time')}.",
            session_id,
        )
        await self.notifications.create(
            session.get("counselorId"), "session_booked", "New Session Booked",
            f"A new session has been booked for {session.get('date')} at {session.get('time')}.",
            session_id,
        )
        return session

    async def update_status(self, session_id: str, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
        session = await self._load(session_id)
        updated = {**session, "status": status}
        if reason:
            updated["cancellationReason"] = reason
        await self.sessions.save(updated)

        notification = _status_notification(status, session, reason)
        if notification:
            notification_type, title, message = notification
            await self.notifications.create(session.get("userId"), notification_type, title, message, session_id)
            await self.notifications.create(
                session.get("counselorId"), notification_type,
                title.replace("Your", "Session", 1), message.replace("Your", "The", 1), session_id,
            )
        return updated

    async def reschedule(self, session_id: str, new_date: str, new_time: str) -> Dict[str, Any]:
        session = await self._load(session_id)
        old_date_time = f"{session.get('date')} at {session.get('time')}"
        updated = {
            **session,
            "date": new_date,
            "time": new_time,
            "status": "rescheduled",
            "rescheduledFrom": old_date_time,
        }
        await self.sessions.save(updated)

        await self.notifications.create(
            session.get("userId"), "session_rescheduled", "Session Rescheduled",
            f"Your session has been rescheduled from {old_date_time} to {new_date} at {new_time}.",
            session_id,
        )
        await self.notifications.create(
            session.get("counselorId"), "session_rescheduled", "Session Rescheduled",
            f"A session has been rescheduled from {old_date_time} to {new_date} at {new_time}.",
            session_id,
        )
        return updated

    async def change_type(self, session_id: str, session_type: str) -> Dict[str, Any]:
        session = await self._load(session_id)
        updated = {**session, "sessionType": session_type}
        await self.sessions.save(updated)
        await self.notifications.create(
            session.get("userId"), "session_rescheduled", "Session Type Changed",
            f"Your session type has been changed to {session_type}.", session_id,
        )
        return updated

    async def add_notes(self, session_id: str, notes: str) -> Dict[str, Any]:
        session = await self._load(session_id)
        updated = {**session, "notes": notes}
        await self.sessions.save(updated)
        await self.notifications.create(
            session.get("userId"), "notes_added", "Session Notes Added",
            "Your counselor has added notes to your session.", session_id,
        )
        return updated

    async def add_feedback(self, session_id: str, rating: Optional[int], comment: Optional[str]) -> Dict[str, Any]:
        session = await self._load(session_id)
        updated = {**session, "feedback": {"rating": rating, "comment": comment}}
        await self.sessions.save(updated)
        return updated
