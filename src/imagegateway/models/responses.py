"""Response models for ImageGateway."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


class Usage(BaseModel):
    """Token accounting reported by the upstream API."""

    tokens: int = Field(0, ge=0, description="Total tokens used by the call")


class ImageDescriptor(BaseModel):
    """Description of one image found in an upstream response."""

    kind: Literal["url", "base64"] = Field(..., description="How the image was delivered")
    url: Optional[str] = Field(None, description="Remote URL (kind=url)")
    data: Optional[str] = Field(None, description="Encoded payload, only in full-response mode")
    size_kb: Optional[int] = Field(None, ge=0, description="round(encoded length / 1024)")
    format: Optional[str] = Field(None, description="Image subtype such as png or jpeg")
    revised_prompt: Optional[str] = Field(None, description="Prompt as rewritten by the upstream model")

    @model_validator(mode="after")
    def validate_kind(self):
        """Ensure the populated fields agree with kind."""
        if self.kind == "url" and not self.url:
            raise ValueError("url must be present when kind='url'")
        if self.kind == "base64" and self.size_kb is None:
            raise ValueError("size_kb must be present when kind='base64'")
        return self


class GenerationResult(BaseModel):
    """Uniform result returned for every generate_image call."""

    success: bool = Field(True, description="Whether the call produced a usable reply")
    model: str = Field(..., description="Model that served the request")
    prompt: str = Field(..., description="Prompt as sent upstream")
    message: Optional[str] = Field(None, description="Text content of a chat reply")
    image: Optional[ImageDescriptor] = Field(None, description="First (or only) image found")
    images: Optional[list[ImageDescriptor]] = Field(None, description="All images, in upstream order")
    saved_to: Optional[str] = Field(None, description="Path of the first saved file")
    saved_files: Optional[list[Optional[str]]] = Field(
        None, description="One slot per image; None where saving failed"
    )
    usage: Optional[Usage] = Field(None, description="Token usage if reported")


class AnalysisResult(BaseModel):
    """Result returned for every analyze_image call."""

    success: bool = True
    model: str
    prompt: str
    analysis: str = Field(..., description="Text returned by the vision model")
    usage: Optional[Usage] = None
