"""Adapters around the embedding, vector index and chat providers.

Every provider response is decoded here, once, into the small shapes
below so the rest of the app never pokes at optional SDK fields.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from pinecone import Pinecone

from config import TEMPERATURE, Settings
from errors import EmbeddingError

logger = logging.getLogger(__name__)


def _get(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


@dataclass(frozen=True)
class MatchMetadata:
    talk_id: Any = None
    title: Any = None
    chunk: str = ""

    @classmethod
    def decode(cls, raw: Any) -> "MatchMetadata":
        chunk = _get(raw, "chunk")
        return cls(
            talk_id=_get(raw, "talk_id"),
            title=_get(raw, "title"),
            chunk=str(chunk) if chunk else "",
        )


@dataclass(frozen=True)
class Match:
    score: float = 0.0
    metadata: MatchMetadata = field(default_factory=MatchMetadata)

    @classmethod
    def decode(cls, raw: Any) -> "Match":
        score = _get(raw, "score")
        return cls(
            score=float(score or 0),
            metadata=MatchMetadata.decode(_get(raw, "metadata")),
        )


def decode_matches(response: Any) -> List[Match]:
    """Decode a Pinecone query response, keeping the provider's order."""
    return [Match.decode(m) for m in (_get(response, "matches") or [])]


class Embedder:
    def __init__(self, embeddings: OpenAIEmbeddings):
        self._embeddings = embeddings

    def embed(self, text: str) -> Optional[List[float]]:
        try:
            vector = self._embeddings.embed_query(text)
        except Exception as exc:
            logger.exception("Embedding request failed")
            raise EmbeddingError() from exc
        return list(vector) if vector else None


class VectorIndex:
    def __init__(self, index: Any, namespace: Optional[str] = None):
        self._index = index
        self._namespace = namespace

    def query(self, vector: List[float], top_k: int) -> List[Match]:
        kwargs = {"vector": vector, "top_k": top_k, "include_metadata": True}
        if self._namespace:
            kwargs["namespace"] = self._namespace
        return decode_matches(self._index.query(**kwargs))


class ChatModel:
    def __init__(self, llm: ChatOpenAI):
        self._llm = llm

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        ai_msg = self._llm.invoke(messages)
        content = getattr(ai_msg, "content", None)
        if not content:
            return ""
        if isinstance(content, list):
            # content blocks: keep the text parts
            return "".join(
                part if isinstance(part, str) else str(_get(part, "text") or "")
                for part in content
            )
        return str(content)


def build_embedder(settings: Settings) -> Embedder:
    embeddings = OpenAIEmbeddings(
        api_key=settings.require("llm_api_key"),
        base_url=settings.require("llm_base_url"),
        model=settings.embedding_model,
        # gateway model names are unknown to tiktoken; send the raw question
        check_embedding_ctx_length=False,
    )
    return Embedder(embeddings)


def build_index(settings: Settings) -> VectorIndex:
    pc = Pinecone(api_key=settings.require("pinecone_api_key"))
    index = pc.Index(settings.require("pinecone_index_name"))
    return VectorIndex(index, namespace=settings.pinecone_namespace)


def build_chat_model(settings: Settings) -> ChatModel:
    llm = ChatOpenAI(
        base_url=settings.require("llm_base_url"),
        api_key=settings.require("llm_api_key"),
        model=settings.chat_model,
        temperature=TEMPERATURE,
    )
    return ChatModel(llm)
