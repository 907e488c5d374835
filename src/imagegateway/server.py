"""MCP server exposing ImageGateway over stdio."""

import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from imagegateway.config import GatewayConfig
from imagegateway.models.errors import ImageGatewayError
from imagegateway.models.requests import AnalyzeImageRequest, GenerateImageRequest
from imagegateway.services.image_service import ImageService

logger = logging.getLogger(__name__)

SERVER_NAME = "imagegateway-mcp"

LIST_MODELS_NOTE = """Note: for chat-based models, image style, aspect ratio and composition are controlled
through descriptive text in your prompt (e.g. "square image", "16:9 aspect ratio",
"photorealistic", "watercolor"). Image-generation models also accept n, size, quality and style."""


def render_model_list(service: ImageService) -> str:
    lines = ["Available models:"]
    for info in service.list_models():
        lines.append(f"• {info.id} ({info.shape.value})")
        lines.append(f"  {info.description}")
    lines.append("")
    lines.append(LIST_MODELS_NOTE)
    return "\n".join(lines)


def create_server(config: GatewayConfig, service: ImageService | None = None) -> FastMCP:
    """
    Build a FastMCP server bound to one configuration.

    Args:
        config: Gateway configuration
        service: Image service (built from config if not provided)

    Returns:
        FastMCP instance with generate_image, analyze_image and list_models registered
    """
    service = service or ImageService(config)
    mcp = FastMCP(
        SERVER_NAME,
        instructions="Generate images from text prompts and analyze images with vision models.",
    )

    @mcp.tool(name="generate_image")
    async def generate_image(
        prompt: str = Field(description="Text description of the image to generate"),
        model: Optional[str] = Field(default=None, description="Model identifier (see list_models)"),
        save_to_file: bool = Field(default=False, description="Save generated image to local file"),
        filename: Optional[str] = Field(
            default=None, description="Base filename for saved image (without extension)"
        ),
        show_full_response: bool = Field(
            default=False, description="Show full response including base64 data"
        ),
        n: Optional[int] = Field(default=None, description="Number of images (image-generation models only)"),
        size: Optional[str] = Field(default=None, description="Image size such as 1024x1024"),
        quality: Optional[str] = Field(default=None, description="Quality such as standard or hd"),
        style: Optional[str] = Field(default=None, description="Style such as vivid or natural"),
    ) -> str:
        """Generate an image from a text prompt and optionally save it to disk."""
        try:
            request = GenerateImageRequest(
                prompt=prompt,
                model=model or config.default_model,
                save_to_file=save_to_file,
                filename=filename,
                show_full_response=show_full_response,
                n=n,
                size=size,
                quality=quality,
                style=style,
            )
            result = await service.generate(request)
        except ImageGatewayError as e:
            logger.error(f"❌ [Server] generate_image failed ({e.error_code.value}): {e.message}")
            raise ToolError(f"Failed to generate image: {e.message}") from e
        return result.model_dump_json(indent=2, exclude_none=True)

    @mcp.tool(name="analyze_image")
    async def analyze_image(
        image: str = Field(description="Image URL, data URL, or path to a local image file"),
        prompt: Optional[str] = Field(default=None, description="What to ask about the image"),
        model: Optional[str] = Field(default=None, description="Vision-capable model identifier"),
    ) -> str:
        """Describe or answer questions about an image using a vision model."""
        try:
            fields = {"image": image, "model": model or config.vision_model}
            if prompt:
                fields["prompt"] = prompt
            result = await service.analyze(AnalyzeImageRequest(**fields))
        except ImageGatewayError as e:
            logger.error(f"❌ [Server] analyze_image failed ({e.error_code.value}): {e.message}")
            raise ToolError(f"Failed to analyze image: {e.message}") from e
        return result.model_dump_json(indent=2, exclude_none=True)

    @mcp.tool(name="list_models")
    async def list_models() -> str:
        """Show the image generation and vision models this server can call."""
        return render_model_list(service)

    return mcp


def main() -> None:
    """Run the MCP server over stdio."""
    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GatewayConfig.from_env()
    if config.api_key:
        logger.info(f"🔑 [Server] API key loaded: {config.masked_api_key()}")
    else:
        logger.warning("⚠️ [Server] OPENROUTER_API_KEY environment variable is not set")

    logger.info(f"🚀 [Server] {SERVER_NAME} running on stdio, saving images to {config.output_dir}")
    create_server(config).run()


if __name__ == "__main__":
    main()
