"""Locates an embedded image in a chat-completion response body."""

import logging
import re
from typing import Any

from imagegateway.models.references import ImageReference, RemoteUrlReference, classify_reference

logger = logging.getLogger(__name__)

_MARKDOWN_IMAGE_RE = re.compile(r"!\[.*?\]\((https?://[^\s)]+)\)")
_BARE_URL_RE = re.compile(r"https?://\S+")


def get_chat_message(body: Any) -> dict[str, Any] | None:
    """Return ``choices[0].message`` of a chat body, or None if it is not there."""
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    return message if isinstance(message, dict) else None


def get_message_text(message: dict[str, Any]) -> str:
    """Flatten message content to text; list content keeps only its text parts."""
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") for part in content if isinstance(part, dict) and part.get("type") == "text"
        )
    return ""


class ChatImageExtractor:
    """
    Finds the best image reference in a chat reply.

    Tiers, first match wins:
    1. ``message.images[0].image_url.url``
    2. content starting with ``http``
    3. content starting with ``data:image``
    4. first markdown image link ``![...](http(s)://...)``
    5. first bare ``http(s)://`` token

    The order decides which image wins when a reply satisfies several tiers,
    so it must not change.
    """

    def extract(self, body: Any) -> ImageReference | None:
        """Return the image reference in a chat body, or None when the reply is text only."""
        message = get_chat_message(body)
        if message is None:
            return None

        images = message.get("images")
        if isinstance(images, list) and images:
            # a non-empty images list is authoritative; content is not scanned
            return self._from_structured_images(images)

        content = get_message_text(message).strip()
        if not content:
            return None

        if content.startswith("http"):
            return RemoteUrlReference(url=content)
        if content.startswith("data:image"):
            return RemoteUrlReference(url=content)

        markdown_match = _MARKDOWN_IMAGE_RE.search(content)
        if markdown_match:
            return RemoteUrlReference(url=markdown_match.group(1))

        url_match = _BARE_URL_RE.search(content)
        if url_match:
            return RemoteUrlReference(url=url_match.group(0))

        logger.debug("🔍 [ChatImageExtractor] No image reference found in reply text")
        return None

    def _from_structured_images(self, images: list[Any]) -> ImageReference | None:
        first = images[0]
        if not isinstance(first, dict):
            return None
        image_url = first.get("image_url")
        url = image_url.get("url") if isinstance(image_url, dict) else None
        if isinstance(url, str) and url.strip():
            return classify_reference(url)
        return None
