import os

# Settings are read at import time; keep the tests off MongoDB and Gemini.
os.environ["KV_BACKEND"] = "memory"
os.environ["GEMINI_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from mentara.core.db import InMemoryKeyValueStore, get_store
from mentara.api.services.ai_services import GeminiService, get_response_generator
from mentara.main import app


class FakeGenerator:
    """Deterministic stand-in for the Gemini-backed generator. Records what it was given."""

    def __init__(self):
        self.calls = []
        self.gemini_service = GeminiService()

    async def generate_response(self, message, history, user_context):
        self.calls.append({"message": message, "history": list(history), "user_context": user_context})
        return {
            "content": f"echo: {message}",
            "type": "text",
            "suggestions": ["Try 4-7-8 breathing"],
            "emotionalTone": "anxiety",
            "therapeuticApproach": "cbt",
        }

    async def generate_title(self, conversation_text):
        return "Exam stress support"


class FailingGenerator(FakeGenerator):
    async def generate_response(self, message, history, user_context):
        raise RuntimeError("upstream unavailable")


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(store, generator):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_response_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
