"""
Source extraction for non-streaming responses.

The retriever tool returns each document's page_content joined by blank lines.
Knowledge-base documents are JSON objects ({"url": ..., "content": ...}), so an
observation is a run of JSON objects back to back, e.g. '{"url":"a"}\\n\\n{"url":"b"}'.
They are read one value at a time; separators (whitespace, commas) are optional.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from app.agent.executor import AgentStep
from app.core.config import RETRIEVER_TOOL_NAME
from app.core.errors import MalformedObservationError

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()
_SEPARATORS = " \t\r\n,"


def parse_json_fragments(text: str) -> list[Any]:
    """
    Parse concatenated JSON values. A top-level array contributes its items.
    Raises MalformedObservationError if anything other than JSON and separators is found.
    """
    values: list[Any] = []
    pos = 0
    end = len(text)
    while True:
        while pos < end and text[pos] in _SEPARATORS:
            pos += 1
        if pos >= end:
            return values
        try:
            value, pos = _decoder.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise MalformedObservationError(
                f"Could not parse tool observation as JSON at position {e.pos}: {e.msg}"
            ) from e
        if isinstance(value, list):
            values.extend(value)
        else:
            values.append(value)


def extract_sources(steps: Iterable[AgentStep], tool_name: str = RETRIEVER_TOOL_NAME) -> list[str]:
    """Collect the url of every document the retriever tool returned, first occurrence order."""
    urls: list[str] = []
    for step in steps:
        if step.tool != tool_name:
            continue
        for item in parse_json_fragments(step.observation):
            url = item.get("url") if isinstance(item, dict) else None
            if isinstance(url, str) and url and url not in urls:
                urls.append(url)
    logger.info("[sources] OUT urls=%d", len(urls))
    return urls
