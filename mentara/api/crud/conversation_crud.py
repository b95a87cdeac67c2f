# crud/conversation_crud.py
from typing import Any, Dict, List, Optional
from mentara.core import keys
from mentara.core.config import settings
from mentara.core.db import KeyValueStore
from mentara.core.utils import utc_iso_now

DEFAULT_TITLE = "New conversation"


def derive_title(content: str) -> str:
    """First 50 characters of the message, with an ellipsis when truncated."""
    return content[:50] + ("..." if len(content) > 50 else "")


def default_user_context() -> Dict[str, Any]:
    return {
        "concerns": [],
        "moods": [],
        "topics": [],
        "sessionCount": 0,
        "personality": "warm",
        "previousEmotions": [],
        "therapeuticProgress": {},
    }


class ConversationRepository:
    """
    Message lists and conversation summaries for one user.

    Every method is a read-modify-write of a whole document. Nothing here is
    atomic across keys, and two writers on the same key lose one update.
    """

    def __init__(self, store: KeyValueStore, history_limit: Optional[int] = None):
        self.store = store
        self.history_limit = history_limit or settings.CHAT_HISTORY_LIMIT

    # messages

    async def get_history(self, user_id: str, conversation_id: str) -> List[Dict[str, Any]]:
        return await self.store.get(keys.conversation_key(user_id, conversation_id)) or []

    async def save_history(self, user_id: str, conversation_id: str, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Persist only the most recent ``history_limit`` messages and return what was stored."""
        kept = messages[-self.history_limit:]
        await self.store.set(keys.conversation_key(user_id, conversation_id), kept)
        return kept

    async def append_message(self, user_id: str, conversation_id: str, message: Dict[str, Any]) -> List[Dict[str, Any]]:
        history = await self.get_history(user_id, conversation_id)
        history.append(message)
        return await self.save_history(user_id, conversation_id, history)

    # summaries

    async def list_summaries(self, user_id: str) -> List[Dict[str, Any]]:
        return await self.store.get(keys.conversation_list_key(user_id)) or []

    async def _save_summaries(self, user_id: str, summaries: List[Dict[str, Any]]):
        await self.store.set(keys.conversation_list_key(user_id), summaries)

    async def get_summary(self, user_id: str, conversation_id: str) -> Optional[Dict[str, Any]]:
        for summary in await self.list_summaries(user_id):
            if summary.get("id") == conversation_id:
                return summary
        return None

    async def upsert_summary(self, user_id: str, conversation_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``patch`` into the matching entry, or insert a new entry at the front."""
        summaries = await self.list_summaries(user_id)
        for index, summary in enumerate(summaries):
            if summary.get("id") == conversation_id:
                merged = {**summary, **patch, "id": conversation_id}
                summaries[index] = merged
                break
        else:
            merged = {
                "id": conversation_id,
                "title": DEFAULT_TITLE,
                "lastMessage": "",
                "lastUpdated": utc_iso_now(),
                "messageCount": 0,
                **patch,
            }
            summaries.insert(0, merged)
        await self._save_summaries(user_id, summaries)
        return merged

    async def create_conversation(self, user_id: str, conversation_id: str, title: Optional[str] = None) -> Dict[str, Any]:
        summaries = await self.list_summaries(user_id)
        for summary in summaries:
            if summary.get("id") == conversation_id:
                return summary

        conversation = {
            "id": conversation_id,
            "title": title or DEFAULT_TITLE,
            "lastMessage": "",
            "lastUpdated": utc_iso_now(),
            "messageCount": 0,
        }
        summaries.insert(0, conversation)
        await self._save_summaries(user_id, summaries)
        return conversation

    async def rename_conversation(self, user_id: str, conversation_id: str, title: str):
        summaries = await self.list_summaries(user_id)
        updated = [{**s, "title": title} if s.get("id") == conversation_id else s for s in summaries]
        await self._save_summaries(user_id, updated)

    async def delete_conversation(self, user_id: str, conversation_id: str):
        # Two independent writes: a failure in between leaves an orphaned message list.
        await self.store.delete(keys.conversation_key(user_id, conversation_id))
        summaries = await self.list_summaries(user_id)
        await self._save_summaries(user_id, [s for s in summaries if s.get("id") != conversation_id])

    # user context

    async def get_context(self, user_id: str) -> Dict[str, Any]:
        return await self.store.get(keys.user_context_key(user_id)) or default_user_context()

    async def save_context(self, user_id: str, context: Dict[str, Any]):
        await self.store.set(keys.user_context_key(user_id), context)
