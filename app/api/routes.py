"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from app.api.handlers import (
    get_caller_id,
    get_chat_handler,
    prime_stream,
    rate_limited_response,
    streaming_text_response,
)
from app.core.errors import RateLimitedError
from app.schemas.chat import ChatRequest, ChatResponse, ErrorResponse
from app.services.agent_service import ChatHandler

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Guru chat backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/api/chat",
    tags=["chat"],
    summary="Ask the agent",
    description=(
        "Send the conversation so far; the last message is the current question. "
        "Streams the answer as plain text, or returns {output, sources} as JSON when "
        "show_intermediate_steps is true. 400 on invalid input, 500 on agent failure."
    ),
    responses={
        200: {"model": ChatResponse, "content": {"text/plain": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def post_chat(
    body: ChatRequest,
    request: Request,
    handler: ChatHandler = Depends(get_chat_handler),
) -> Response:
    caller_id = get_caller_id(request)
    logger.info(
        "[api:post_chat] IN  caller=%s messages=%d show_intermediate_steps=%s",
        caller_id, len(body.messages), body.show_intermediate_steps,
    )
    try:
        if body.show_intermediate_steps:
            result = await handler.answer(body.messages, caller_id)
            logger.info("[api:post_chat] OUT sources=%d output_len=%d", len(result.sources), len(result.output))
            return JSONResponse(result.model_dump(by_alias=True))
        chunks = await handler.stream_answer(body.messages, caller_id)
    except RateLimitedError:
        return rate_limited_response()
    return streaming_text_response(await prime_stream(chunks))
