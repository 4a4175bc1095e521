"""Shared request helper for structured Responses API calls."""

import logging
import os
import time
from typing import Any, Dict, List

from openai import AsyncOpenAI

from services.openai.response_parser import extract_usage, parse_function_call

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-5")


class ToolCallService:
    """Send one request forced onto a single function tool and return its arguments."""

    def __init__(self, client: AsyncOpenAI, model: str | None = None) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model or DEFAULT_MODEL

    async def call_tool(
        self,
        inputs: List[Dict[str, Any]],
        *,
        tool: Dict[str, Any],
        tool_name: str,
    ) -> Dict[str, Any]:
        """Run the request and return the parsed tool arguments."""
        start_time = time.time()
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=inputs,
                tools=[tool],
                tool_choice={"type": "function", "name": tool_name},
            )
        except Exception as exc:
            logging.error("Error during OpenAI Responses API call for %s: %s", tool_name, exc)
            raise

        try:
            args = parse_function_call(response, tool_name=tool_name)
        except Exception as exc:
            logging.error("Error parsing OpenAI response for %s: %s", tool_name, exc)
            logging.error("Full response object: %r", response)
            raise

        usage = extract_usage(response)
        LOGGER.info(
            "%s completed in %.3fs (input_tokens=%s, output_tokens=%s)",
            tool_name,
            time.time() - start_time,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return args
