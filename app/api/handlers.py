"""
API handlers: request identity, streaming bodies, and error-to-HTTP mapping.

Responsibility: Bridge HTTP types and services. Services raise app.core.errors;
this module turns them into status codes and {"error": message} bodies so the
service layer stays free of FastAPI types.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from app.core.config import DEFAULT_CALLER_ID, RATE_LIMIT_MESSAGE
from app.core.errors import AppError, InvalidRequestError
from app.services.agent_service import ChatHandler

logger = logging.getLogger(__name__)

TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"
_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def get_chat_handler(request: Request) -> ChatHandler:
    """Dependency: the process-wide ChatHandler built at startup."""
    return request.app.state.chat_handler


def get_caller_id(request: Request) -> str:
    """Client address used as the rate-limit key."""
    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_CALLER_ID


def streaming_text_response(chunks: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(chunks, media_type=TEXT_MEDIA_TYPE, headers=_STREAM_HEADERS)


async def _single_chunk(text: str) -> AsyncIterator[str]:
    yield text


def rate_limited_response() -> StreamingResponse:
    """Same transport as a normal answer, carrying the fixed rate-limit notice."""
    return streaming_text_response(_single_chunk(RATE_LIMIT_MESSAGE))


async def prime_stream(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Pull the first chunk now, so a failure before any output raises here and is
    answered with an error status instead of an empty 200.
    Later failures can only end the body: they are logged and the stream stops.
    """
    try:
        first = await anext(chunks)
    except StopAsyncIteration:
        first = None

    async def _body() -> AsyncIterator[str]:
        sent = 0
        try:
            if first is not None:
                sent += 1
                yield first
            async for chunk in chunks:
                sent += 1
                yield chunk
        except Exception:
            logger.exception("[api:stream] failed after %d chunks; closing response", sent)
        finally:
            await chunks.aclose()
            logger.info("[api:stream] OUT chunks=%d", sent)

    return _body()


async def _invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    logger.info("[api] 400 %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"error": exc.message})


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("[api] 500 %s %s: %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=500, content={"error": exc.message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """InvalidRequestError -> 400; any other AppError or exception -> 500. Body: {"error": message}."""
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
