import asyncio

import pytest

from mentara.core.utils import parse_iso
from mentara.api.crud.conversation_crud import ConversationRepository
from mentara.api.services.chat_service import ChatService
from conftest import FakeGenerator, FailingGenerator


async def test_first_turn_stores_pair_and_titles_conversation(store, generator):
    service = ChatService(store, generator)
    message = "I have been feeling anxious about my semester exams for the last two weeks"

    result = await service.process_turn("u1", "c1", message)

    assert result["message"]["sender"] == "ai"
    assert result["message"]["content"] == f"echo: {message}"
    history = await service.repo.get_history("u1", "c1")
    assert [m["sender"] for m in history] == ["user", "ai"]

    summary = await service.repo.get_summary("u1", "c1")
    assert summary["messageCount"] == 2
    assert summary["title"] == message[:50] + "..."
    assert summary["lastMessage"] == message[:100]


async def test_title_is_kept_after_first_turn(store, generator):
    service = ChatService(store, generator)
    await service.process_turn("u1", "c1", "hello there")
    await service.process_turn("u1", "c1", "a completely different second message")

    summary = await service.repo.get_summary("u1", "c1")
    assert summary["title"] == "hello there"
    assert summary["messageCount"] == 4


async def test_generator_history_excludes_current_message(store, generator):
    service = ChatService(store, generator)
    await service.process_turn("u1", "c1", "first")
    await service.process_turn("u1", "c1", "second")

    assert generator.calls[0]["history"] == []
    second_call = generator.calls[1]
    assert second_call["message"] == "second"
    assert [m["content"] for m in second_call["history"]] == ["first", "echo: first"]


async def test_ai_timestamp_is_after_user_timestamp(store, generator):
    service = ChatService(store, generator)
    await service.process_turn("u1", "c1", "hi")

    user_message, ai_message = await service.repo.get_history("u1", "c1")
    assert parse_iso(ai_message["timestamp"]) > parse_iso(user_message["timestamp"])


@pytest.mark.parametrize("turns", [1, 10, 25, 30])
async def test_message_count_is_bounded(store, generator, turns):
    service = ChatService(store, generator)
    for i in range(turns):
        await service.process_turn("u1", "c1", f"message {i + 1}")

    history = await service.repo.get_history("u1", "c1")
    summary = await service.repo.get_summary("u1", "c1")
    assert len(history) == min(2 * turns, 50)
    assert summary["messageCount"] == len(history)


async def test_sixty_turns_keep_most_recent_messages(store, generator):
    service = ChatService(store, generator)
    for i in range(60):
        await service.process_turn("u1", "c1", f"message {i + 1}")

    history = await service.repo.get_history("u1", "c1")
    assert len(history) == 50
    assert history[0]["content"] == "message 36"
    assert history[-1]["content"] == "echo: message 60"


async def test_context_is_updated_each_turn(store, generator):
    service = ChatService(store, generator)
    await service.process_turn("u1", "c1", "I am worried about my exam results")
    result = await service.process_turn("u1", "c1", "my parents expect too much")

    context = result["context"]
    assert context["sessionCount"] == 2
    assert "academic_pressure" in context["concerns"]
    assert "family_expectations" in context["concerns"]
    assert context == await ConversationRepository(store).get_context("u1")


async def test_generator_failure_writes_nothing(store):
    service = ChatService(store, FailingGenerator())
    with pytest.raises(RuntimeError):
        await service.process_turn("u1", "c1", "hello")

    assert store.keys() == []


class BlockingGenerator(FakeGenerator):
    """Holds every turn at the generator until ``expected`` turns have read their history."""

    def __init__(self, expected):
        super().__init__()
        self.expected = expected
        self.arrived = 0
        self.release = asyncio.Event()

    async def generate_response(self, message, history, user_context):
        self.arrived += 1
        if self.arrived >= self.expected:
            self.release.set()
        await self.release.wait()
        return await super().generate_response(message, history, user_context)


async def test_concurrent_turns_lose_one_update(store):
    generator = BlockingGenerator(expected=2)
    service = ChatService(store, generator)

    await asyncio.gather(
        service.process_turn("u1", "c1", "turn a"),
        service.process_turn("u1", "c1", "turn b"),
    )

    # both turns read an empty history, the later write wins
    history = await service.repo.get_history("u1", "c1")
    assert len(history) == 2
    assert (await service.repo.get_summary("u1", "c1"))["messageCount"] == 2


async def test_generate_summary(store, generator):
    service = ChatService(store, generator)
    assert await service.generate_summary("u1", "c1") == "New conversation"

    await service.process_turn("u1", "c1", "exams are stressing me out")
    title = await service.generate_summary("u1", "c1")

    assert title == "Exam stress support"
    assert (await service.repo.get_summary("u1", "c1"))["title"] == "Exam stress support"


async def test_generate_summary_falls_back_without_generated_title(store):
    class NoTitleGenerator(FakeGenerator):
        async def generate_title(self, conversation_text):
            return None

    service = ChatService(store, NoTitleGenerator())
    await service.process_turn("u1", "c1", "I cannot sleep before my exams and it is getting worse")

    title = await service.generate_summary("u1", "c1")
    assert title == "I cannot sleep before my exams and it is getting worse"[:40] + "..."
