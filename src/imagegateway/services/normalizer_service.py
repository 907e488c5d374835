"""Normalizes heterogeneous upstream bodies into one GenerationResult."""

import logging
import math
import re
from typing import Any, Awaitable, Callable

from imagegateway.models.errors import UnsupportedShapeError
from imagegateway.models.references import (
    Base64Reference,
    DataUrlReference,
    ImageReference,
    RemoteUrlReference,
)
from imagegateway.models.requests import GenerateImageRequest, ShapeKind
from imagegateway.models.responses import GenerationResult, ImageDescriptor, Usage
from imagegateway.services.extractor_service import ChatImageExtractor, get_chat_message, get_message_text
from imagegateway.services.persist_service import ImageBatchPersister

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Image generated successfully"

_DATA_IMAGE_FORMAT_RE = re.compile(r"^data:image/([^;,]+)")


def size_kb(encoded: str) -> int:
    """Encoded length in KB, rounded half up. Measures the text, not the decoded bytes."""
    return math.floor(len(encoded) / 1024 + 0.5)


def image_format(encoded: str) -> str:
    """Subtype from a ``data:image/<subtype>`` prefix, or ``unknown``."""
    match = _DATA_IMAGE_FORMAT_RE.match(encoded)
    return match.group(1) if match else "unknown"


def parse_usage(body: dict[str, Any]) -> Usage | None:
    usage = body.get("usage")
    if not isinstance(usage, dict):
        return None
    return Usage(tokens=usage.get("total_tokens") or 0)


def describe_reference(ref: ImageReference, include_data: bool) -> ImageDescriptor:
    """Describe a found image; payloads are only copied into the record when asked for."""
    if isinstance(ref, RemoteUrlReference) and not ref.is_data_url:
        return ImageDescriptor(kind="url", url=ref.url)

    if isinstance(ref, RemoteUrlReference):
        encoded = ref.url
    elif isinstance(ref, DataUrlReference):
        encoded = ref.data_url
    elif isinstance(ref, Base64Reference):
        encoded = ref.payload
    else:
        raise UnsupportedShapeError(f"Cannot describe image reference of kind {ref.kind!r}")

    return ImageDescriptor(
        kind="base64",
        data=encoded if include_data else None,
        size_kb=size_kb(encoded),
        format=image_format(encoded),
    )


class ResponseNormalizer:
    """Turns chat-shaped and image-generation-shaped bodies into a GenerationResult."""

    def __init__(
        self,
        persister: ImageBatchPersister,
        extractor: ChatImageExtractor | None = None,
    ):
        """
        Initialize normalizer.

        Args:
            persister: Persister used when the request asks for files on disk
            extractor: Chat image extractor (creates a default one if not provided)
        """
        self.persister = persister
        self.extractor = extractor or ChatImageExtractor()
        self._handlers: dict[ShapeKind, Callable[[GenerateImageRequest, Any], Awaitable[GenerationResult]]] = {
            ShapeKind.CHAT: self._normalize_chat,
            ShapeKind.IMAGE_GENERATION: self._normalize_image_generation,
        }

    async def normalize(self, request: GenerateImageRequest, body: Any, shape: ShapeKind) -> GenerationResult:
        """
        Build the uniform result for one upstream body.

        Args:
            request: The inbound request
            body: Decoded upstream JSON body
            shape: Which response shape the body follows

        Returns:
            GenerationResult

        Raises:
            UnsupportedShapeError: If the body does not match the shape
        """
        handler = self._handlers.get(shape)
        if handler is None:
            raise UnsupportedShapeError(f"Unsupported upstream response shape: {shape!r}")
        if not isinstance(body, dict):
            raise UnsupportedShapeError(
                f"Upstream {ShapeKind(shape).value} response is not a JSON object (got {type(body).__name__})"
            )
        return await handler(request, body)

    async def _normalize_chat(self, request: GenerateImageRequest, body: dict[str, Any]) -> GenerationResult:
        message = get_chat_message(body)
        if message is None:
            raise UnsupportedShapeError(
                f"Upstream chat response has no choices[0].message (keys: {sorted(body.keys())})"
            )

        content = get_message_text(message)
        ref = self.extractor.extract(body)

        result = GenerationResult(
            success=True,
            model=request.model,
            prompt=request.prompt,
            message=content or DEFAULT_MESSAGE,
            usage=parse_usage(body),
        )

        if ref is None:
            logger.info(f"📝 [ResponseNormalizer] Chat reply from {request.model} contained no image")
            return result

        result.image = describe_reference(ref, request.show_full_response)

        if request.save_to_file:
            saved = await self.persister.persist([ref], request.filename)
            result.saved_to = saved[0]

        return result

    async def _normalize_image_generation(
        self, request: GenerateImageRequest, body: dict[str, Any]
    ) -> GenerationResult:
        items = body.get("data")
        if not isinstance(items, list):
            raise UnsupportedShapeError(
                f"Upstream image generation response has no data array (keys: {sorted(body.keys())})"
            )

        refs: list[ImageReference] = []
        descriptors: list[ImageDescriptor] = []
        for idx, item in enumerate(items):
            if not isinstance(item, dict):
                raise UnsupportedShapeError(f"Image generation item #{idx + 1} is not an object")

            if item.get("b64_json"):
                ref: ImageReference = Base64Reference(payload=item["b64_json"])
            elif item.get("url"):
                ref = RemoteUrlReference(url=item["url"])
            else:
                raise UnsupportedShapeError(f"Image generation item #{idx + 1} has neither b64_json nor url")

            descriptor = describe_reference(ref, request.show_full_response)
            descriptor.revised_prompt = item.get("revised_prompt")
            refs.append(ref)
            descriptors.append(descriptor)

        result = GenerationResult(
            success=True,
            model=request.model,
            prompt=request.prompt,
            message=DEFAULT_MESSAGE if descriptors else "No images returned",
            image=descriptors[0] if descriptors else None,
            images=descriptors,
            usage=parse_usage(body),
        )

        if request.save_to_file and refs:
            saved = await self.persister.persist(refs, request.filename)
            result.saved_files = saved
            result.saved_to = next((path for path in saved if path), None)

        return result
