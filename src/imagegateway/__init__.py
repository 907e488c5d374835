"""ImageGateway - MCP adapter for upstream image generation and vision APIs."""

from imagegateway.config import GatewayConfig
from imagegateway.models.errors import (
    ErrorCode,
    FetchError,
    ImageGatewayError,
    InvalidDataUrlError,
    NoImageDataError,
    UnsupportedShapeError,
    is_retryable,
)
from imagegateway.models.references import (
    Base64Reference,
    DataUrlReference,
    ImageReference,
    RawBytesReference,
    RemoteUrlReference,
    ResolvedImage,
    classify_reference,
)
from imagegateway.models.requests import AnalyzeImageRequest, GenerateImageRequest, ShapeKind
from imagegateway.models.responses import AnalysisResult, GenerationResult, ImageDescriptor
from imagegateway.providers.base import UpstreamProvider
from imagegateway.services.extractor_service import ChatImageExtractor
from imagegateway.services.image_service import ImageService
from imagegateway.services.normalizer_service import ResponseNormalizer
from imagegateway.services.persist_service import ImageBatchPersister
from imagegateway.services.resolver_service import ImageReferenceResolver
from imagegateway.services.retry_service import RetryableError

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "GatewayConfig",
    # Errors
    "ErrorCode",
    "is_retryable",
    "ImageGatewayError",
    "NoImageDataError",
    "InvalidDataUrlError",
    "FetchError",
    "UnsupportedShapeError",
    "RetryableError",
    # References
    "ImageReference",
    "RemoteUrlReference",
    "DataUrlReference",
    "Base64Reference",
    "RawBytesReference",
    "ResolvedImage",
    "classify_reference",
    # Request/Response types
    "ShapeKind",
    "GenerateImageRequest",
    "AnalyzeImageRequest",
    "GenerationResult",
    "AnalysisResult",
    "ImageDescriptor",
    # Providers
    "UpstreamProvider",
    # Services
    "ImageReferenceResolver",
    "ImageBatchPersister",
    "ChatImageExtractor",
    "ResponseNormalizer",
    "ImageService",
]
