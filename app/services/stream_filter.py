"""
Final-answer filter for the agent's log stream.

The executor's stream carries every internal step of the run: chain starts/ends,
tool calls, retriever results, and the chat model's tokens. Only tokens generated
by the chat model are forwarded to the caller. LangChain keys each run in the log
by its name ("ChatOpenAI", then "ChatOpenAI:2", ... for repeated calls), and a
model token arrives as

    {"op": "add", "path": "/logs/ChatOpenAI:2/streamed_output_str/-", "value": "Hel"}

Planning calls that end in a tool call stream empty-string tokens, so they are
dropped by the non-empty rule.
"""

import functools
import logging
import re
from collections.abc import AsyncIterator, Mapping
from typing import Any

from langchain_core.tracers.log_stream import RunLogPatch

logger = logging.getLogger(__name__)

DEFAULT_MODEL_RUN_NAME = "ChatOpenAI"


@functools.lru_cache(maxsize=32)
def _token_path_pattern(model_run_name: str) -> re.Pattern[str]:
    return re.compile(rf"^/logs/{re.escape(model_run_name)}(?::\d+)?/streamed_output_str/-$")


def is_final_answer_chunk(op: Mapping[str, Any], model_run_name: str = DEFAULT_MODEL_RUN_NAME) -> bool:
    """True when a log-patch op is a non-empty text token appended by the chat model."""
    if op.get("op") != "add":
        return False
    value = op.get("value")
    if not isinstance(value, str) or not value:
        return False
    return bool(_token_path_pattern(model_run_name).match(op.get("path") or ""))


async def filter_final_answer(
    events: AsyncIterator[RunLogPatch],
    model_run_name: str = DEFAULT_MODEL_RUN_NAME,
) -> AsyncIterator[str]:
    """
    Yield the text of each final-answer token, in order, one chunk per matching event.

    Only the first op of each patch is inspected: LangChain puts the
    streamed_output_str op first in a token patch.
    """
    forwarded = 0
    try:
        async for patch in events:
            ops = patch.ops
            if not ops:
                continue
            op = ops[0]
            if is_final_answer_chunk(op, model_run_name):
                forwarded += 1
                yield op["value"]
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("[stream_filter] forwarded=%d chunks", forwarded)
