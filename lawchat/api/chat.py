# =============================================================================
# Chat API — Streaming Legal Assistant
# =============================================================================
#
# POST /chat forwards the conversation to the configured chat model with
# the rendered system prompt template in front of it.
#
# FLOW:
#   1. Load the system prompt (cached after first read)
#   2. Convert client messages to {"role", "content"} dicts
#   3. stream=true  → Server-Sent Events, one event per text delta
#      stream=false → one JSON ChatResponse
#
# SSE EVENTS (each line is "data: <json>\n\n"):
#   {"type": "text-delta", "delta": "..."}
#   {"type": "finish", "model": "..."}
#   {"type": "error", "error": "..."}   — only after the stream has started
#
# The first delta is awaited before the response starts, so provider
# errors that happen immediately (auth, bad model name) still produce a
# proper 502 instead of an error event.
# =============================================================================

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from lawchat.api.deps import require_scope
from lawchat.models.requests import ChatRequest
from lawchat.models.responses import ChatResponse
from lawchat.services.llm import get_llm_provider
from lawchat.services.prompt import PromptTemplateError, get_system_prompt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def _sse_events(
    stream: AsyncIterator[str],
    first_delta: str | None,
    model: str,
) -> AsyncIterator[str]:
    """Wrap provider text deltas as SSE events, ending with finish or error."""
    try:
        if first_delta:
            yield _sse({"type": "text-delta", "delta": first_delta})
        async for delta in stream:
            yield _sse({"type": "text-delta", "delta": delta})
    except Exception as e:
        logger.exception("Chat stream failed mid-response: %s", e)
        yield _sse({"type": "error", "error": "Failed to process AI request"})
        return

    yield _sse({"type": "finish", "model": model})


@router.post(
    "/chat",
    response_model=None,
    dependencies=[Depends(require_scope("chat"))],
    summary="Chat with the legal assistant",
    description=(
        "Send the conversation so far. By default the answer is streamed as "
        "Server-Sent Events; set stream=false for a single JSON response."
    ),
    responses={200: {"model": ChatResponse, "content": {"text/event-stream": {}}}},
)
async def chat_endpoint(
    request: ChatRequest,
) -> StreamingResponse | ChatResponse:
    """
    Answer the latest turn of a conversation.

    Error handling:
    - Prompt template missing/malformed → 500
    - Missing model API key → 503
    - Model provider errors → 502 (or an error event once streaming)
    """
    try:
        system_prompt = get_system_prompt()
    except PromptTemplateError as e:
        logger.error("System prompt unavailable: %s", e)
        raise HTTPException(status_code=500, detail=f"System prompt unavailable: {e}") from e

    try:
        provider = get_llm_provider()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        raise HTTPException(
            status_code=503,
            detail=f"Service configuration error: {e}",
        ) from e

    messages = [m.to_model_message() for m in request.messages]
    last_content = messages[-1]["content"]
    logger.info(
        "Chat request: %d messages, stream=%s, last message %d chars",
        len(messages), request.stream, len(last_content),
    )
    logger.debug("Last message: %s", last_content[:80])

    # --- Non-streaming ---
    if not request.stream:
        try:
            response = await provider.complete(messages, system=system_prompt)
        except Exception as e:
            logger.exception("Chat completion failed: %s", e)
            raise HTTPException(status_code=502, detail=f"LLM service error: {e}") from e

        return ChatResponse(
            content=response.content,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
        )

    # --- Streaming ---
    stream = provider.stream(messages, system=system_prompt)
    try:
        first_delta = await anext(stream)
    except StopAsyncIteration:
        first_delta = None
    except Exception as e:
        logger.exception("Chat stream failed to start: %s", e)
        raise HTTPException(status_code=502, detail=f"LLM service error: {e}") from e

    return StreamingResponse(
        _sse_events(stream, first_delta, provider.model),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
