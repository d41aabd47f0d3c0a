from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterator
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from hirelane.api.deps import get_db
from hirelane.api.schemas import FunctionExecuteRequest
from hirelane.config import Settings, get_settings
from hirelane.core.assistant import FunctionExecutor
from hirelane.db.session import SessionLocal
from hirelane.llm.functions import FUNCTION_SCHEMAS
from hirelane.llm.prompts import ADMIN_CHAT_SYSTEM_PROMPT, ADMIN_CHAT_WITH_CONTEXT, ADMIN_CHAT_WITHOUT_CONTEXT
from hirelane.llm.providers import StreamDelta
from hirelane.llm.router import LLMRouter
from hirelane.search.semantic import SemanticSearch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])

NO_CONTEXT = "No relevant database information found for your query."
CONTEXT_ERROR = (
    "Error retrieving database information. The system might be experiencing technical difficulties."
)
CHAT_ROLES = {"user", "assistant", "function"}
SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def get_llm_router() -> LLMRouter:
    return LLMRouter()


def build_system_prompt(database_context: str) -> str:
    if database_context and database_context not in (NO_CONTEXT, CONTEXT_ERROR):
        context_block = ADMIN_CHAT_WITH_CONTEXT.format(database_context=database_context)
    else:
        context_block = ADMIN_CHAT_WITHOUT_CONTEXT
    return ADMIN_CHAT_SYSTEM_PROMPT.format(context_block=context_block)


def conversation_messages(messages: list[Any]) -> list[dict[str, Any]]:
    """Drop client-supplied system turns and anything that is not a chat message."""
    cleaned: list[dict[str, Any]] = []
    for message in messages:
        if not isinstance(message, dict) or message.get("role") not in CHAT_ROLES:
            continue
        item = {"role": message["role"], "content": message.get("content") or ""}
        if message.get("name"):
            item["name"] = message["name"]
        cleaned.append(item)
    return cleaned


def last_user_message(messages: list[Any]) -> str | None:
    for message in reversed(messages):
        if isinstance(message, dict) and message.get("role") == "user":
            return str(message.get("content") or "")
    return None


def _search_database(query: str, llm: LLMRouter, settings: Settings) -> str:
    with SessionLocal() as session:
        return SemanticSearch(session, llm, settings).search_markdown(query, limit=settings.chat_search_limit)


async def fetch_database_context(query: str, llm: LLMRouter, settings: Settings) -> str:
    try:
        context = await asyncio.wait_for(
            asyncio.to_thread(_search_database, query, llm, settings),
            timeout=settings.search_timeout_sec,
        )
    except asyncio.TimeoutError:
        logger.warning("Vector search timed out after %.1fs", settings.search_timeout_sec)
        return CONTEXT_ERROR
    except Exception as exc:
        logger.warning("Vector search failed error=%s", exc)
        return CONTEXT_ERROR
    return context or NO_CONTEXT


def sse_events(first: StreamDelta | None, rest: Iterator[StreamDelta]) -> Iterator[str]:
    function_name = ""
    function_arguments = ""
    pieces = rest if first is None else _prepend(first, rest)
    for piece in pieces:
        if piece.content:
            yield f"data: {json.dumps({'content': piece.content})}\n\n"
        if piece.function_name:
            function_name = piece.function_name
        function_arguments += piece.function_arguments

    if function_name or function_arguments:
        payload = {"name": function_name, "arguments": function_arguments}
        yield f"data: {json.dumps({'functionCall': payload})}\n\n"
    yield "data: [DONE]\n\n"


def _prepend(first: StreamDelta, rest: Iterator[StreamDelta]) -> Iterator[StreamDelta]:
    yield first
    yield from rest


@router.post("/openai-chat")
async def openai_chat(request: Request, llm: LLMRouter = Depends(get_llm_router)):
    try:
        body = await request.json()
    except ValueError:
        body = None
    messages = body.get("messages") if isinstance(body, dict) else None
    if not isinstance(messages, list):
        return JSONResponse({"error": "Invalid request body. Messages array is required."}, status_code=400)

    settings = get_settings()
    if not settings.openai_api_key:
        logger.error("OPENAI_API_KEY is not set")
        return JSONResponse({"error": "API key configuration error"}, status_code=500)

    database_context = ""
    query = last_user_message(messages)
    if query is not None and body.get("includeDatabase", True):
        database_context = await fetch_database_context(query, llm, settings)

    chat_messages = [{"role": "system", "content": build_system_prompt(database_context)}]
    chat_messages.extend(conversation_messages(messages))
    functions = body.get("functions") or None

    if body.get("stream"):
        try:
            deltas = llm.stream_chat(chat_messages, functions)
            first = await run_in_threadpool(next, deltas, None)
        except Exception:
            logger.exception("Error creating streaming response")
            return JSONResponse({"error": "Error creating streaming response"}, status_code=500)
        return StreamingResponse(sse_events(first, deltas), media_type="text/event-stream", headers=SSE_HEADERS)

    try:
        reply = await run_in_threadpool(llm.chat, chat_messages, functions)
    except Exception:
        logger.exception("Chat completion failed")
        return JSONResponse({"error": "An error occurred while processing your request"}, status_code=500)

    return {
        "message": {
            "role": "assistant",
            "content": reply.content,
            "function_call": reply.function_call.model_dump() if reply.function_call else None,
        }
    }


@router.get("/chat/functions")
def list_chat_functions() -> dict[str, Any]:
    return {"functions": FUNCTION_SCHEMAS}


@router.post("/chat/functions/execute")
def execute_chat_function(payload: FunctionExecuteRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    try:
        return FunctionExecutor(db).execute(payload.name, payload.arguments)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
