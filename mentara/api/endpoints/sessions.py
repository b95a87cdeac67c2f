import logging
from fastapi import APIRouter, Depends
from mentara.core.db import KeyValueStore, get_store
from mentara.core.exceptions import ServiceError, failure
from mentara.api.models.schemas import (
    BookSessionRequest,
    SessionStatusUpdate,
    RescheduleRequest,
    SessionTypeUpdate,
    SessionNotesUpdate,
    SessionFeedback,
)
from mentara.api.services.session_service import SessionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_sessions(store: KeyValueStore = Depends(get_store)):
    try:
        return {"success": True, "sessions": await SessionService(store).list_sessions()}
    except Exception as e:
        logger.exception(f"Error fetching sessions: {e}")
        return failure(500, "Failed to fetch sessions")


@router.post("/book")
async def book_session(request: BookSessionRequest, store: KeyValueStore = Depends(get_store)):
    """Create a booking and notify both the user and the counselor."""
    try:
        session = await SessionService(store).book(request.to_doc())
        return {"success": True, "sessionId": session["id"], "transactionId": session["transactionId"]}
    except Exception as e:
        logger.exception(f"Error booking session: {e}")
        return failure(500, "Failed to book session")


@router.put("/{session_id}/status")
async def update_session_status(session_id: str, request: SessionStatusUpdate,
                                store: KeyValueStore = Depends(get_store)):
    try:
        await SessionService(store).update_status(session_id, request.status, request.reason)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error updating session status: {e}")
        return failure(500, "Failed to update session status")


@router.put("/{session_id}/reschedule")
async def reschedule_session(session_id: str, request: RescheduleRequest,
                             store: KeyValueStore = Depends(get_store)):
    try:
        await SessionService(store).reschedule(session_id, request.new_date, request.new_time)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error rescheduling session: {e}")
        return failure(500, "Failed to reschedule session")


@router.put("/{session_id}/type")
async def change_session_type(session_id: str, request: SessionTypeUpdate,
                              store: KeyValueStore = Depends(get_store)):
    try:
        await SessionService(store).change_type(session_id, request.session_type)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error changing session type: {e}")
        return failure(500, "Failed to change session type")


@router.put("/{session_id}/notes")
async def add_session_notes(session_id: str, request: SessionNotesUpdate,
                            store: KeyValueStore = Depends(get_store)):
    try:
        await SessionService(store).add_notes(session_id, request.notes)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error adding session notes: {e}")
        return failure(500, "Failed to add session notes")


@router.put("/{session_id}/feedback")
async def add_session_feedback(session_id: str, request: SessionFeedback,
                               store: KeyValueStore = Depends(get_store)):
    try:
        await SessionService(store).add_feedback(session_id, request.rating, request.comment)
        return {"success": True}
    except ServiceError as e:
        return failure(e.status_code, e.message)
    except Exception as e:
        logger.exception(f"Error adding session feedback: {e}")
        return failure(500, "Failed to add session feedback")
