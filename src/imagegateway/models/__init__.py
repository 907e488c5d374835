"""Models package for ImageGateway."""

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
from imagegateway.models.requests import (
    MODEL_CATALOG,
    AnalyzeImageRequest,
    GenerateImageRequest,
    ModelInfo,
    ShapeKind,
    shape_for_model,
)
from imagegateway.models.responses import AnalysisResult, GenerationResult, ImageDescriptor, Usage

__all__ = [
    "ErrorCode",
    "is_retryable",
    "ImageGatewayError",
    "NoImageDataError",
    "InvalidDataUrlError",
    "FetchError",
    "UnsupportedShapeError",
    "ImageReference",
    "RemoteUrlReference",
    "DataUrlReference",
    "Base64Reference",
    "RawBytesReference",
    "ResolvedImage",
    "classify_reference",
    "MODEL_CATALOG",
    "ModelInfo",
    "ShapeKind",
    "shape_for_model",
    "GenerateImageRequest",
    "AnalyzeImageRequest",
    "GenerationResult",
    "AnalysisResult",
    "ImageDescriptor",
    "Usage",
]
