"""OpenRouter (OpenAI-compatible) upstream provider."""

import logging
from typing import Any, Optional

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from imagegateway.config import GatewayConfig
from imagegateway.models.errors import ErrorCode
from imagegateway.services.retry_service import RetryableError

logger = logging.getLogger(__name__)


class OpenRouterProvider:
    """Upstream provider using the OpenAI SDK against an OpenAI-compatible base URL."""

    def __init__(self, config: GatewayConfig):
        """
        Initialize provider.

        Args:
            config: Gateway configuration carrying the API key and base URL
        """
        if not config.api_key:
            raise ValueError("OPENROUTER_API_KEY environment variable or api_key setting is required")

        self.config = config
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=0,  # retries are handled by retry_with_backoff
            default_headers={
                "HTTP-Referer": config.referer,
                "X-Title": config.title,
            },
        )

    async def complete_chat(self, model: str, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Send a chat completion request and return the raw body.

        Non-standard fields such as ``message.images`` are kept.
        """
        logger.info(f"💬 [OpenRouterProvider] chat/completions model={model}")
        try:
            completion = await self.client.chat.completions.create(model=model, messages=messages)
        except Exception as e:
            raise self._wrap_error(e) from e
        return completion.model_dump()

    async def generate_images(
        self,
        model: str,
        prompt: str,
        n: Optional[int] = None,
        size: Optional[str] = None,
        quality: Optional[str] = None,
        style: Optional[str] = None,
    ) -> dict[str, Any]:
        """Send an images/generations request and return the raw body."""
        options = {"n": n, "size": size, "quality": quality, "style": style}
        kwargs = {key: value for key, value in options.items() if value is not None}

        logger.info(f"🎨 [OpenRouterProvider] images/generations model={model} options={kwargs}")
        try:
            response = await self.client.images.generate(model=model, prompt=prompt, **kwargs)
        except Exception as e:
            raise self._wrap_error(e) from e
        return response.model_dump()

    def _wrap_error(self, e: Exception) -> RetryableError:
        """Map SDK exceptions onto error codes the caller can act on."""
        if isinstance(e, AuthenticationError):
            return RetryableError(
                ErrorCode.AUTHENTICATION_REQUIRED,
                f"Authentication failed (401): Invalid API key. Please check your OPENROUTER_API_KEY. Error: {str(e)}",
                original_exception=e,
            )
        if isinstance(e, PermissionDeniedError):
            return RetryableError(
                ErrorCode.PERMISSION_DENIED,
                f"Access denied (403): Your API key may not have access to this model. Error: {str(e)}",
                original_exception=e,
            )
        if isinstance(e, RateLimitError):
            return RetryableError(
                ErrorCode.RATE_LIMITED,
                f"Upstream rate limit exceeded: {str(e)}",
                original_exception=e,
            )
        if isinstance(e, APITimeoutError):
            return RetryableError(
                ErrorCode.PROVIDER_TIMEOUT,
                f"Upstream request timed out: {str(e)}",
                original_exception=e,
            )
        if isinstance(e, APIConnectionError):
            return RetryableError(
                ErrorCode.PROVIDER_OVERLOADED,
                f"Could not reach upstream API: {str(e)}",
                original_exception=e,
            )
        if isinstance(e, APIStatusError):
            if e.status_code >= 500:
                return RetryableError(
                    ErrorCode.PROVIDER_OVERLOADED,
                    f"Upstream server error {e.status_code}: {str(e)}",
                    original_exception=e,
                )
            return RetryableError(
                ErrorCode.PROVIDER_REJECTED,
                f"Upstream API error {e.status_code}: {str(e)}",
                original_exception=e,
            )
        return RetryableError(
            ErrorCode.INTERNAL_ERROR,
            f"Upstream call failed: {str(e)}",
            original_exception=e,
        )
