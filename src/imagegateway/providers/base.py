"""Base provider interface for upstream image APIs."""

from typing import Any, Optional, Protocol

from typing_extensions import runtime_checkable


@runtime_checkable
class UpstreamProvider(Protocol):
    """Protocol for OpenAI-compatible upstream APIs."""

    async def complete_chat(self, model: str, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Send a chat completion request.

        Args:
            model: Model identifier (e.g., "google/gemini-2.5-flash-image-preview")
            messages: Chat messages in OpenAI format

        Returns:
            Raw response body as a dict (chat shape)

        Raises:
            RetryableError: Provider failures tagged with an ErrorCode
        """
        ...

    async def generate_images(
        self,
        model: str,
        prompt: str,
        n: Optional[int] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        style: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Send an image generation request.

        Returns:
            Raw response body as a dict (image-generation shape)
        """
        ...
