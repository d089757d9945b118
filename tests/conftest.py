"""Pytest fixtures: settings, provider fakes and a wired TestClient."""

import pytest
from fastapi.testclient import TestClient

from answerer import QuestionAnswerer
from config import Settings
from fakes import FakeChatModel, FakeEmbedder, FakeIndex, make_match
from index import app, get_answerer_factory, get_settings


@pytest.fixture
def test_settings():
    return Settings(
        llm_api_key="test-llm-key",
        llm_base_url="http://llm.test/v1",
        pinecone_api_key="test-pinecone-key",
        pinecone_index_name="ted-test",
    )


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def index():
    return FakeIndex([make_match(), make_match(talk_id="2", title="Your body language", score=0.8)])


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def answerer(test_settings, embedder, index, chat_model):
    return QuestionAnswerer(test_settings, embedder, index, chat_model)


@pytest.fixture
def client(test_settings, answerer):
    """TestClient with settings and the answerer swapped for fakes."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_answerer_factory] = lambda: (lambda: answerer)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
