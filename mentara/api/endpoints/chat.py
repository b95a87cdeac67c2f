import logging
from fastapi import APIRouter, HTTPException, Depends, Body
from typing import Dict, Any, Optional
from mentara.core.db import KeyValueStore, get_store
from mentara.core.exceptions import ServiceError
from mentara.core.utils import now_ms
from mentara.core.security import safety_service
from mentara.api.models.schemas import (
    ChatRequest,
    CreateConversationRequest,
    RenameConversationRequest,
    GenerateSummaryRequest,
)
from mentara.api.crud.conversation_crud import ConversationRepository
from mentara.api.services.ai_services import ResponseGenerator, get_response_generator
from mentara.api.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def chat(
    request: ChatRequest,
    store: KeyValueStore = Depends(get_store),
    generator: ResponseGenerator = Depends(get_response_generator),
) -> Dict[str, Any]:
    """
    Send a message and get the AI reply.

    The reply is generated from the stored history *before* this turn; the user
    message and the reply are then appended together and the list is cut to the
    most recent 50 messages.
    """
    validation = safety_service.validate_message(request.message)
    if not validation["is_valid"]:
        raise HTTPException(status_code=400, detail=validation["reason"])

    try:
        service = ChatService(store, generator)
        return await service.process_turn(request.user_id, request.conversation_id, request.message)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error in chat endpoint: {e}")
        raise HTTPException(status_code=500, detail="Failed to process chat message")


@router.get("/history/{user_id}/{conversation_id}")
async def get_history(user_id: str, conversation_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        messages = await ConversationRepository(store).get_history(user_id, conversation_id)
        return {"messages": messages}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error fetching chat history: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch chat history")


@router.get("/context/{user_id}")
async def get_context(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        context = await ConversationRepository(store).get_context(user_id)
        return {"context": context}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error fetching user context: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch user context")


@router.get("/conversations/{user_id}")
async def list_conversations(user_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        conversations = await ConversationRepository(store).list_summaries(user_id)
        return {"conversations": conversations}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error fetching conversations: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch conversations")


@router.post("/conversations/{user_id}")
async def create_conversation(
    user_id: str,
    request: Optional[CreateConversationRequest] = Body(None),
    store: KeyValueStore = Depends(get_store),
):
    try:
        request = request or CreateConversationRequest()
        conversation_id = request.id or f"conv_{now_ms()}"
        conversation = await ConversationRepository(store).create_conversation(
            user_id, conversation_id, request.title
        )
        return {"conversation": conversation}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error creating conversation: {e}")
        raise HTTPException(status_code=500, detail="Failed to create conversation")


@router.put("/conversations/{user_id}/{conversation_id}")
async def rename_conversation(
    user_id: str,
    conversation_id: str,
    request: RenameConversationRequest,
    store: KeyValueStore = Depends(get_store),
):
    try:
        await ConversationRepository(store).rename_conversation(user_id, conversation_id, request.title)
        return {"success": True}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error updating conversation: {e}")
        raise HTTPException(status_code=500, detail="Failed to update conversation")


@router.delete("/conversations/{user_id}/{conversation_id}")
async def delete_conversation(user_id: str, conversation_id: str, store: KeyValueStore = Depends(get_store)):
    try:
        await ConversationRepository(store).delete_conversation(user_id, conversation_id)
        return {"success": True}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error deleting conversation: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete conversation")


@router.post("/generate-summary")
async def generate_summary(
    request: GenerateSummaryRequest,
    store: KeyValueStore = Depends(get_store),
    generator: ResponseGenerator = Depends(get_response_generator),
):
    """Short generated title for a conversation; stored on the summary entry when one exists."""
    try:
        title = await ChatService(store, generator).generate_summary(request.user_id, request.conversation_id)
        return {"title": title}
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception(f"Error generating summary: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate summary")
