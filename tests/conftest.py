"""Shared pytest fixtures for ImageGateway tests."""

import base64
from unittest.mock import MagicMock

import pytest

from imagegateway.config import GatewayConfig

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")
PNG_DATA_URL = f"data:image/png;base64,{PNG_B64}"


class MockUpstreamProvider:
    """Mock upstream provider returning canned bodies."""

    def __init__(self, chat_body: dict | None = None, images_body: dict | None = None):
        self.chat_body = chat_body
        self.images_body = images_body
        self.chat_calls: list[tuple[str, list]] = []
        self.image_calls: list[dict] = []

    async def complete_chat(self, model: str, messages: list) -> dict:
        self.chat_calls.append((model, messages))
        return self.chat_body

    async def generate_images(self, model, prompt, n=None, size=None, quality=None, style=None) -> dict:
        self.image_calls.append(
            {"model": model, "prompt": prompt, "n": n, "size": size, "quality": quality, "style": style}
        )
        return self.images_body


def chat_body(content: str = "", images: list | None = None, usage: dict | None = None) -> dict:
    """Build a chat-completion shaped body."""
    message: dict = {"role": "assistant", "content": content}
    if images is not None:
        message["images"] = images
    body: dict = {"id": "gen-1", "choices": [{"index": 0, "message": message}]}
    if usage is not None:
        body["usage"] = usage
    return body


def http_response(
    content: bytes = b"",
    status_code: int = 200,
    content_type: str | None = None,
    reason: str = "OK",
) -> MagicMock:
    """Build a mock httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.reason_phrase = reason
    response.content = content
    response.text = content.decode("utf-8", errors="replace")
    response.headers = {"content-type": content_type} if content_type else {}
    return response


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def gateway_config(tmp_path):
    """Configuration writing into a per-test directory."""
    return GatewayConfig(api_key="sk-or-v1-test-key-0123456789", output_dir=tmp_path / "out")


@pytest.fixture
def mock_provider():
    return MockUpstreamProvider()
