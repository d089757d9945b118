import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from config import MAX_CHUNK_CHARS, SYSTEM_PROMPT, Settings
from errors import EmbeddingError, MissingQuestionError
from providers import ChatModel, Embedder, Match, VectorIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextItem:
    talk_id: Any
    title: Any
    chunk: str
    score: float


@dataclass
class Answer:
    response: str
    context: List[ContextItem] = field(default_factory=list)
    system_prompt: str = SYSTEM_PROMPT
    user_prompt: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "context": [asdict(item) for item in self.context],
            "Augmented_prompt": {"System": self.system_prompt, "User": self.user_prompt},
        }


def parse_question(body: Any) -> str:
    """Pull a trimmed, non-empty ``question`` out of a request body.

    The body may arrive already decoded or as a raw JSON string.
    """
    if isinstance(body, (str, bytes)):
        body = json.loads(body)
    question = body.get("question") if isinstance(body, Mapping) else None
    question = _json_text(question or "").strip()
    if not question:
        raise MissingQuestionError()
    return question


def _json_text(value: Any) -> str:
    # JSON scalars spelled the way clients send them: true, 1 (not True, 1.0)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(value: Any) -> str:
    return "" if value is None else str(value)


def format_context(
    matches: Sequence[Match], max_chars: int = MAX_CHUNK_CHARS
) -> Tuple[str, List[ContextItem]]:
    """Return the prompt context block and the matching response items."""
    items: List[ContextItem] = []
    parts: List[str] = []

    for m in matches:
        md = m.metadata
        chunk = md.chunk[:max_chars]

        items.append(ContextItem(talk_id=md.talk_id, title=md.title, chunk=chunk, score=m.score))
        parts.append(
            f"Talk ID: {_render(md.talk_id)}\nTitle: {_render(md.title)}\nChunk:\n{chunk}\n"
        )

    return "\n---\n".join(parts).strip(), items


def build_user_prompt(question: str, context_text: str, top_k: int) -> str:
    return (
        f"Question:\n{question}\n\n"
        f"TED dataset context (top {top_k} retrieved chunks):\n{context_text}\n\n"
        "Answer using only the context above."
    )


class QuestionAnswerer:
    """Embed -> retrieve -> assemble prompt -> generate, once per question."""

    def __init__(
        self,
        settings: Settings,
        embedder: Embedder,
        index: VectorIndex,
        chat_model: ChatModel,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self._settings = settings
        self._embedder = embedder
        self._index = index
        self._chat_model = chat_model
        self._system_prompt = system_prompt

    def answer(self, question: str) -> Answer:
        top_k = self._settings.top_k

        vector = self._embedder.embed(question)
        if not vector:
            raise EmbeddingError()

        matches = self._index.query(vector, top_k)
        logger.info("Retrieved %d matches (top_k=%d)", len(matches), top_k)

        context_text, items = format_context(matches)
        user_prompt = build_user_prompt(question, context_text, top_k)

        response_text = self._chat_model.complete(self._system_prompt, user_prompt)
        logger.info("Generated response (%d chars)", len(response_text))

        return Answer(
            response=response_text,
            context=items,
            system_prompt=self._system_prompt,
            user_prompt=user_prompt,
        )
