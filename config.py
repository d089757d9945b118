# config file

import logging
import math
import os
import re
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from errors import MissingConfigError

logger = logging.getLogger(__name__)


# RAG hyperparameters (reported by /stats)
DEFAULT_CHUNK_SIZE: int = 1024
DEFAULT_OVERLAP_RATIO: float = 0.15
DEFAULT_TOP_K: int = 12

# Models served behind the LLMStudio gateway
EMBEDDING_MODEL: str = "RPRTHPB-text-embedding-3-small"
CHAT_MODEL: str = "RPRTHPB-gpt-5-mini"
TEMPERATURE: float = 1

# Transcript chunks are cut to this many characters before prompting
MAX_CHUNK_CHARS: int = 1200

# Must match the required fallback exactly (unicode apostrophe)
UNKNOWN_ANSWER: str = "I don’t know based on the provided TED data."

SYSTEM_PROMPT: str = (
    "You are a TED Talk assistant that answers questions strictly and "
    "only based on the TED dataset context provided to you (metadata "
    "and transcript passages). You must not use any external "
    "knowledge, the open internet, or information that is not explicitly "
    "contained in the retrieved context. If the answer cannot be "
    "determined from the provided context, respond: "
    f'"{UNKNOWN_ANSWER}" '
    "Always explain your answer using the given context, quoting or "
    "paraphrasing the relevant transcript or metadata when helpful."
)

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?\d+)")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    # parseInt semantics: "12.7" and "12abc" both read as 12
    m = _INT_PREFIX_RE.match(raw)
    if not m:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default
    return int(m.group(1))


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup and shared read-only.

    Provider credentials are optional here: the stats endpoint works
    without them, and the answer endpoint asks for them through
    :meth:`require` so a missing value fails only the request that
    needs it.
    """

    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = None
    pinecone_api_key: Optional[str] = None
    pinecone_index_name: Optional[str] = None
    # Leave unset to query the default namespace
    pinecone_namespace: Optional[str] = None

    embedding_model: str = EMBEDDING_MODEL
    chat_model: str = CHAT_MODEL

    top_k: int = DEFAULT_TOP_K
    chunk_size: int = DEFAULT_CHUNK_SIZE
    overlap_ratio: float = DEFAULT_OVERLAP_RATIO

    # field name -> environment variable
    ENV_NAMES = {
        "llm_api_key": "LLMSTUDIO_API_KEY",
        "llm_base_url": "LLMSTUDIO_BASE_URL",
        "pinecone_api_key": "PINECONE_API_KEY",
        "pinecone_index_name": "PINECONE_INDEX_NAME",
        "pinecone_namespace": "PINECONE_NAMESPACE",
        "embedding_model": "EMBEDDING_MODEL",
        "chat_model": "CHAT_MODEL",
        "top_k": "TOP_K",
        "chunk_size": "CHUNK_SIZE",
        "overlap_ratio": "OVERLAP_RATIO",
    }

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        values = {}
        for f in fields(cls):
            name = cls.ENV_NAMES[f.name]
            if f.type is int:
                values[f.name] = _env_int(env, name, f.default)
            elif f.type is float:
                values[f.name] = _env_float(env, name, f.default)
            else:
                # empty strings count as unset
                values[f.name] = env.get(name) or f.default
        return cls(**values)

    def require(self, field: str) -> str:
        if field not in {f.name for f in fields(self)}:
            raise AttributeError(field)
        value = getattr(self, field)
        if not value:
            raise MissingConfigError(f"Missing env var: {self.ENV_NAMES[field]}")
        return value

    def stats(self) -> dict:
        return {
            "chunk_size": self.chunk_size,
            "overlap_ratio": self.overlap_ratio,
            "top_k": self.top_k,
        }
