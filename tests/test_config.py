"""Tests for Settings construction and configuration lookups."""

import dataclasses

import pytest

from config import SYSTEM_PROMPT, UNKNOWN_ANSWER, Settings
from errors import MissingConfigError


def test_defaults_without_env():
    settings = Settings.from_env({})
    assert settings.stats() == {"chunk_size": 1024, "overlap_ratio": 0.15, "top_k": 12}
    assert settings.pinecone_namespace is None
    assert settings.embedding_model == "RPRTHPB-text-embedding-3-small"
    assert settings.chat_model == "RPRTHPB-gpt-5-mini"


def test_numeric_overrides():
    settings = Settings.from_env({"TOP_K": "5", "CHUNK_SIZE": "512", "OVERLAP_RATIO": "0.3"})
    assert settings.top_k == 5
    assert settings.chunk_size == 512
    assert settings.overlap_ratio == 0.3


def test_int_override_reads_leading_integer():
    assert Settings.from_env({"TOP_K": "7.9"}).top_k == 7
    assert Settings.from_env({"TOP_K": " 20 results"}).top_k == 20


@pytest.mark.parametrize("env", [
    {"TOP_K": "abc"},
    {"CHUNK_SIZE": "lots"},
    {"OVERLAP_RATIO": "nan"},
    {"OVERLAP_RATIO": "a fifth"},
])
def test_unparsable_override_falls_back_to_default(env, caplog):
    settings = Settings.from_env(env)
    assert settings.stats() == {"chunk_size": 1024, "overlap_ratio": 0.15, "top_k": 12}
    assert "Ignoring non-numeric" in caplog.text


def test_every_field_has_an_env_name():
    assert {f.name for f in dataclasses.fields(Settings)} == set(Settings.ENV_NAMES)


def test_string_overrides():
    settings = Settings.from_env({
        "LLMSTUDIO_API_KEY": "k",
        "PINECONE_INDEX_NAME": "ted",
        "CHAT_MODEL": "other-chat",
        "EMBEDDING_MODEL": "",
    })
    assert settings.llm_api_key == "k"
    assert settings.pinecone_index_name == "ted"
    assert settings.chat_model == "other-chat"
    assert settings.embedding_model == "RPRTHPB-text-embedding-3-small"


def test_empty_namespace_means_default():
    assert Settings.from_env({"PINECONE_NAMESPACE": ""}).pinecone_namespace is None
    assert Settings.from_env({"PINECONE_NAMESPACE": "ted"}).pinecone_namespace == "ted"


def test_require_returns_value():
    settings = Settings.from_env({"PINECONE_API_KEY": "pk"})
    assert settings.require("pinecone_api_key") == "pk"


def test_require_missing_names_env_var():
    with pytest.raises(MissingConfigError) as exc_info:
        Settings.from_env({}).require("llm_base_url")
    assert exc_info.value.message == "Missing env var: LLMSTUDIO_BASE_URL"
    assert exc_info.value.status_code == 500


def test_settings_are_immutable():
    settings = Settings()
    with pytest.raises(dataclasses.FrozenInstanceError):
        settings.top_k = 3


def test_system_prompt_carries_fallback_sentence():
    assert UNKNOWN_ANSWER in SYSTEM_PROMPT
    assert "strictly" in SYSTEM_PROMPT
