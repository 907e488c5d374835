"""Request models for ImageGateway."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_IMAGE_MODEL = "google/gemini-2.5-flash-image-preview"
DEFAULT_VISION_MODEL = "google/gemini-2.5-flash"
DEFAULT_ANALYSIS_PROMPT = "Describe this image in detail."


class ShapeKind(str, Enum):
    """Schema family of an upstream response body."""

    CHAT = "chat"
    IMAGE_GENERATION = "image_generation"


class ModelInfo(BaseModel):
    """Catalog entry describing an upstream model."""

    id: str
    shape: ShapeKind
    description: str


MODEL_CATALOG: dict[str, ModelInfo] = {
    info.id: info
    for info in (
        ModelInfo(
            id="google/gemini-2.5-flash-image-preview",
            shape=ShapeKind.CHAT,
            description="Google Gemini 2.5 Flash Image Preview. Style, aspect ratio and "
            "composition are controlled through descriptive text in the prompt.",
        ),
        ModelInfo(
            id="google/gemini-2.5-flash",
            shape=ShapeKind.CHAT,
            description="Google Gemini 2.5 Flash. Vision model used for image analysis.",
        ),
        ModelInfo(
            id="openai/gpt-image-1",
            shape=ShapeKind.IMAGE_GENERATION,
            description="OpenAI GPT Image 1 via the images endpoint. Supports n, size and quality.",
        ),
        ModelInfo(
            id="openai/dall-e-3",
            shape=ShapeKind.IMAGE_GENERATION,
            description="OpenAI DALL-E 3 via the images endpoint. Supports size, quality and style.",
        ),
    )
}


def shape_for_model(model: str) -> ShapeKind:
    """Look up which response shape a model answers with (chat for unknown ids)."""
    info = MODEL_CATALOG.get(model)
    return info.shape if info else ShapeKind.CHAT


class GenerateImageRequest(BaseModel):
    """Inbound generate_image tool call."""

    prompt: str = Field(..., min_length=1, description="Text description of the image to generate")
    model: str = Field(DEFAULT_IMAGE_MODEL, description="Upstream model identifier")
    save_to_file: bool = Field(False, description="Save generated image(s) to the output directory")
    filename: Optional[str] = Field(None, description="Base filename for saved images (without extension)")
    show_full_response: bool = Field(False, description="Include base64 payloads in the result")
    n: Optional[int] = Field(None, ge=1, le=10, description="Number of images (image-generation models only)")
    size: Optional[str] = Field(None, description="Output size such as 1024x1024")
    quality: Optional[str] = Field(None, description="Quality setting such as standard or hd")
    style: Optional[str] = Field(None, description="Style setting such as vivid or natural")


class AnalyzeImageRequest(BaseModel):
    """Inbound analyze_image tool call."""

    image: str = Field(..., min_length=1, description="Image URL, data URL or local file path")
    prompt: str = Field(DEFAULT_ANALYSIS_PROMPT, min_length=1, description="Question about the image")
    model: str = Field(DEFAULT_VISION_MODEL, description="Vision-capable model identifier")
