import pytest
from fastapi.testclient import TestClient

from sessions import document_store


class FakeModel:
    """Stands in for GeminiModel: scripted replies, recorded prompts."""

    def __init__(self, replies=None, media_reply=""):
        self.replies = list(replies or [])
        self.media_reply = media_reply
        self.prompts = []
        self.media_calls = []

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        return self.replies.pop(0) if self.replies else ""

    async def generate_text_from_media(self, prompt, data, media_type):
        self.media_calls.append({"prompt": prompt, "data": data, "media_type": media_type})
        return self.media_reply


@pytest.fixture(autouse=True)
def clean_store():
    document_store.reset()
    yield
    document_store.reset()


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def client(fake_model):
    from main import app
    from pipeline.llm import get_model

    app.dependency_overrides[get_model] = lambda: fake_model
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
