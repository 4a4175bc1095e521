"""Shared fixtures: fake OpenAI clients and sample images."""

import base64
import io
import json
from types import SimpleNamespace

import pytest
from PIL import Image


class FakeResponses:
    """Stand-in for `client.responses` returning queued results in order."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.results:
            raise RuntimeError("No fake response queued")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _tool_response(name, args):
    return SimpleNamespace(
        output=[
            SimpleNamespace(type="reasoning"),
            SimpleNamespace(type="function_call", name=name, arguments=json.dumps(args)),
        ],
        usage=SimpleNamespace(input_tokens=120, output_tokens=30),
    )


@pytest.fixture
def tool_response():
    """Build a Responses API result carrying one function call."""
    return _tool_response


@pytest.fixture
def make_client():
    """Build a fake AsyncOpenAI exposing only `responses.create`."""

    def _make(*results):
        return SimpleNamespace(responses=FakeResponses(results))

    return _make


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (40, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data_uri(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("utf-8")
