"""Runtime configuration for ImageGateway."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from imagegateway.models.requests import DEFAULT_IMAGE_MODEL, DEFAULT_VISION_MODEL

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_OUTPUT_DIRNAME = "generated_images"


class GatewayConfig(BaseModel):
    """Settings shared by the provider, resolver and persister."""

    api_key: Optional[str] = Field(None, description="OpenRouter API key")
    base_url: str = Field(DEFAULT_BASE_URL, description="OpenAI-compatible API base URL")
    output_dir: Path = Field(
        default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_DIRNAME,
        description="Directory saved images are written to",
    )
    default_model: str = Field(DEFAULT_IMAGE_MODEL, description="Model used when a call names none")
    vision_model: str = Field(DEFAULT_VISION_MODEL, description="Model used for image analysis")
    timeout_seconds: float = Field(60.0, gt=0, description="Timeout for upstream calls and image fetches")
    referer: str = Field("https://github.com/imagegateway-mcp", description="HTTP-Referer attribution header")
    title: str = Field("ImageGateway MCP Server", description="X-Title attribution header")

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """
        Build configuration from environment variables.

        The output directory is resolved once here, relative to the current
        working directory when not set explicitly.
        """
        output_dir = os.getenv("IMAGEGATEWAY_OUTPUT_DIR")
        return cls(
            api_key=os.getenv("OPENROUTER_API_KEY") or None,
            base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_BASE_URL),
            output_dir=Path(output_dir).resolve() if output_dir else Path.cwd() / DEFAULT_OUTPUT_DIRNAME,
            default_model=os.getenv("IMAGEGATEWAY_MODEL", DEFAULT_IMAGE_MODEL),
            vision_model=os.getenv("IMAGEGATEWAY_VISION_MODEL", DEFAULT_VISION_MODEL),
            timeout_seconds=float(os.getenv("IMAGEGATEWAY_TIMEOUT_SECONDS", "60")),
        )

    def masked_api_key(self) -> str | None:
        """Return the key with its middle hidden, safe for logs."""
        if not self.api_key:
            return None
        if len(self.api_key) <= 14:
            return "*" * len(self.api_key)
        return f"{self.api_key[:10]}...{self.api_key[-4:]}"
