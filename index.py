import logging
import os
from functools import lru_cache
from typing import Any, Callable, Dict

from dotenv import load_dotenv
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from answerer import QuestionAnswerer, parse_question
from config import Settings
from errors import RagError
from providers import (
    ChatModel,
    Embedder,
    VectorIndex,
    build_chat_model,
    build_embedder,
    build_index,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings = Settings.from_env()


def get_settings() -> Settings:
    return settings


# Provider clients are reused across requests; a failed build (missing
# configuration) is not cached and is retried on the next request.
@lru_cache(maxsize=1)
def get_embedder(settings: Settings) -> Embedder:
    return build_embedder(settings)


@lru_cache(maxsize=1)
def get_index(settings: Settings) -> VectorIndex:
    return build_index(settings)


@lru_cache(maxsize=1)
def get_chat_model(settings: Settings) -> ChatModel:
    return build_chat_model(settings)


def get_answerer_factory(
    settings: Settings = Depends(get_settings),
) -> Callable[[], QuestionAnswerer]:
    """Clients are built lazily so input validation runs before config checks."""

    def build() -> QuestionAnswerer:
        return QuestionAnswerer(
            settings,
            embedder=get_embedder(settings),
            index=get_index(settings),
            chat_model=get_chat_model(settings),
        )

    return build


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


router = APIRouter()


class StatsResponse(BaseModel):
    chunk_size: int
    overlap_ratio: float
    top_k: int


@router.get("/stats", response_model=StatsResponse)
def stats(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return settings.stats()


@router.post("/prompt")
def prompt(
    body: Any = Body(default=None),
    build_answerer: Callable[[], QuestionAnswerer] = Depends(get_answerer_factory),
):
    try:
        question = parse_question(body)
        logger.info("Prompt received (%d chars)", len(question))
        answer = build_answerer().answer(question)
    except RagError as exc:
        if exc.status_code >= 500:
            logger.error("Prompt failed: %s", exc.message)
        return _error(exc.status_code, exc.message)
    except Exception as exc:
        logger.exception("Prompt failed")
        return _error(500, str(exc) or "Internal error")

    return answer.to_payload()


app = FastAPI(title="TED RAG API")

# Served both at the root and under /api, where the frontend calls it
app.include_router(router)
app.include_router(router, prefix="/api")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return _error(405, "Method not allowed", headers=getattr(exc, "headers", None))
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # only reachable with an undecodable JSON body; reported like any
    # other parsing failure in the prompt route
    errors = exc.errors()
    logger.error("Prompt failed: undecodable body %s", errors)
    ctx = (errors[0].get("ctx") or {}) if errors else {}
    message = ctx.get("error") or (errors[0].get("msg") if errors else None)
    return _error(500, str(message or "") or "Internal error")
