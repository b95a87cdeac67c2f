# services/chat_service.py
import logging
from datetime import timedelta
from typing import Any, Dict, List
from mentara.core.db import KeyValueStore
from mentara.core.utils import utc_now, to_iso, parse_iso
from mentara.api.crud.conversation_crud import ConversationRepository, DEFAULT_TITLE, derive_title
from mentara.api.services.context_service import update_user_context

logger = logging.getLogger(__name__)


class ChatService:
    """
    One chat turn against the key-value store.

    The message list, the summary list and the user context are three separate
    read-modify-write cycles with no lock. Two concurrent turns on the same
    conversation can both read the same history and the later write wins.
    """

    def __init__(self, store: KeyValueStore, generator):
        self.repo = ConversationRepository(store)
        self.generator = generator

    async def process_turn(self, user_id: str, conversation_id: str, message: str) -> Dict[str, Any]:
        history = await self.repo.get_history(user_id, conversation_id)
        user_context = await self.repo.get_context(user_id)
        logger.debug(f"Loaded {len(history)} messages for conversation {conversation_id}")

        # generator sees only the turns before this one
        ai_response = await self.generator.generate_response(message, list(history), user_context)

        user_time = utc_now()
        user_message = {
            "id": str(int(user_time.timestamp() * 1000)),
            "content": message,
            "sender": "user",
            "timestamp": to_iso(user_time),
        }
        history.append(user_message)

        ai_time = max(utc_now(), parse_iso(user_message["timestamp"]) + timedelta(milliseconds=1))
        ai_message = {
            "id": str(int(ai_time.timestamp() * 1000)),
            "content": ai_response["content"],
            "sender": "ai",
            "timestamp": to_iso(ai_time),
            "type": ai_response.get("type", "text"),
            "suggestions": ai_response.get("suggestions") or [],
            "emotionalTone": ai_response.get("emotionalTone"),
        }
        if ai_response.get("therapeuticApproach"):
            ai_message["therapeuticApproach"] = ai_response["therapeuticApproach"]
        history.append(ai_message)

        stored = await self.repo.save_history(user_id, conversation_id, history)
        logger.debug(f"Saved {len(stored)} messages (had {len(history)} before truncation)")

        await self.repo.upsert_summary(user_id, conversation_id, self._summary_patch(
            await self.repo.get_summary(user_id, conversation_id), message, stored
        ))

        updated_context = update_user_context(user_context, message, ai_response)
        await self.repo.save_context(user_id, updated_context)

        return {"message": ai_message, "context": updated_context}

    @staticmethod
    def _summary_patch(existing, message: str, stored: List[Dict[str, Any]]) -> Dict[str, Any]:
        if len(stored) == 2:
            title = derive_title(message)
        elif existing:
            title = existing.get("title") or DEFAULT_TITLE
        else:
            title = DEFAULT_TITLE
        return {
            "title": title,
            "lastMessage": message[:100],
            "lastUpdated": to_iso(utc_now()),
            "messageCount": len(stored),
        }

    async def generate_summary(self, user_id: str, conversation_id: str) -> str:
        messages = await self.repo.get_history(user_id, conversation_id)
        if len(messages) < 2:
            return DEFAULT_TITLE

        user_lines = [m.get("content", "") for m in messages if m.get("sender") == "user"][:3]
        conversation_text = " ".join(user_lines)

        title = None
        try:
            title = await self.generator.generate_title(conversation_text)
        except Exception as e:
            logger.warning(f"Title generation failed, using fallback: {e}")
        if not title:
            title = conversation_text[:40] + "..."

        if await self.repo.get_summary(user_id, conversation_id):
            await self.repo.upsert_summary(user_id, conversation_id, {"title": title})
        return title
