"""Image service that orchestrates upstream calls, normalization and persistence."""

import asyncio
import base64
import logging
import time
from pathlib import Path
from typing import Any

from imagegateway.config import GatewayConfig
from imagegateway.models.errors import ErrorCode, ImageGatewayError
from imagegateway.models.references import RawBytesReference
from imagegateway.models.requests import (
    MODEL_CATALOG,
    AnalyzeImageRequest,
    GenerateImageRequest,
    ModelInfo,
    ShapeKind,
    shape_for_model,
)
from imagegateway.models.responses import AnalysisResult, GenerationResult
from imagegateway.providers.base import UpstreamProvider
from imagegateway.providers.openrouter_provider import OpenRouterProvider
from imagegateway.services.extractor_service import get_chat_message, get_message_text
from imagegateway.services.normalizer_service import ResponseNormalizer, parse_usage
from imagegateway.services.persist_service import ImageBatchPersister
from imagegateway.services.resolver_service import EXTENSION_TO_MIME, ImageReferenceResolver
from imagegateway.services.retry_service import retry_with_backoff

logger = logging.getLogger(__name__)


class ImageService:
    """Unified entry point for the generate, analyze and list operations."""

    def __init__(
        self,
        config: GatewayConfig,
        provider: UpstreamProvider | None = None,
        normalizer: ResponseNormalizer | None = None,
    ):
        """
        Initialize image service.

        Args:
            config: Gateway configuration
            provider: Upstream provider (built from config when an API key is set)
            normalizer: Response normalizer (built from config if not provided)
        """
        self.config = config
        self.resolver = ImageReferenceResolver(timeout_seconds=config.timeout_seconds)
        self.normalizer = normalizer or ResponseNormalizer(
            ImageBatchPersister(config.output_dir, resolver=self.resolver)
        )

        self.provider = provider
        if self.provider is None and config.api_key:
            self.provider = OpenRouterProvider(config)

    def _require_provider(self) -> UpstreamProvider:
        if self.provider is None:
            raise ImageGatewayError(
                "OPENROUTER_API_KEY environment variable is not set. "
                "Please set it in your MCP client config or environment.",
                error_code=ErrorCode.AUTHENTICATION_REQUIRED,
            )
        return self.provider

    async def generate(self, request: GenerateImageRequest) -> GenerationResult:
        """
        Generate image(s) and normalize whatever the upstream sent back.

        Args:
            request: Image generation request

        Returns:
            GenerationResult

        Raises:
            RetryableError: If the upstream call failed (after retries where applicable)
            UnsupportedShapeError: If the upstream body could not be understood
        """
        provider = self._require_provider()
        shape = shape_for_model(request.model)
        start_time = time.time()

        if shape is ShapeKind.CHAT:
            if any(value is not None for value in (request.n, request.size, request.quality, request.style)):
                logger.debug(
                    f"🎨 [ImageService] {request.model} ignores n/size/quality/style; describe them in the prompt"
                )
            body = await retry_with_backoff(
                provider.complete_chat,
                request.model,
                [{"role": "user", "content": request.prompt}],
            )
        elif shape is ShapeKind.IMAGE_GENERATION:
            body = await retry_with_backoff(
                provider.generate_images,
                request.model,
                request.prompt,
                n=request.n,
                size=request.size,
                quality=request.quality,
                style=request.style,
            )
        else:
            raise ImageGatewayError(f"No dispatch for response shape {shape!r}", error_code=ErrorCode.UNSUPPORTED_SHAPE)

        result = await self.normalizer.normalize(request, body, shape)

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"🎨 [ImageService] Generated with {request.model} in {duration_ms}ms "
            f"(image={'yes' if result.image else 'no'}, saved_to={result.saved_to})"
        )
        return result

    async def analyze(self, request: AnalyzeImageRequest) -> AnalysisResult:
        """
        Ask a vision model about an image given as URL, data URL or local path.

        Raises:
            ImageGatewayError: If the local file cannot be read or the upstream call fails
        """
        provider = self._require_provider()
        image_url = await self._image_url_for_analysis(request.image)

        messages: list[dict[str, Any]] = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": request.prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ]
        body = await retry_with_backoff(provider.complete_chat, request.model, messages)

        message = get_chat_message(body)
        if message is None:
            raise ImageGatewayError(
                "Upstream chat response has no choices[0].message",
                error_code=ErrorCode.UNSUPPORTED_SHAPE,
            )

        return AnalysisResult(
            model=request.model,
            prompt=request.prompt,
            analysis=get_message_text(message),
            usage=parse_usage(body),
        )

    async def _image_url_for_analysis(self, image: str) -> str:
        """URLs pass through; local files are read, typed from the suffix and inlined as a data URL."""
        if image.startswith(("http://", "https://", "data:")):
            return image

        path = Path(image).expanduser()
        loop = asyncio.get_running_loop()
        try:
            data = await loop.run_in_executor(None, path.read_bytes)
        except OSError as e:
            raise ImageGatewayError(
                f"Could not read image file {path}: {str(e)}",
                error_code=ErrorCode.INVALID_INPUT,
            ) from e

        declared_ext = path.suffix[1:].lower()
        resolved = await self.resolver.resolve(
            RawBytesReference(data=data, mime_hint=EXTENSION_TO_MIME.get(declared_ext))
        )
        mime = EXTENSION_TO_MIME[resolved.extension]
        return f"data:{mime};base64,{base64.b64encode(resolved.data).decode('ascii')}"

    def list_models(self) -> list[ModelInfo]:
        """Return the model catalog."""
        return list(MODEL_CATALOG.values())
