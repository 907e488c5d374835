"""Tests for normalizing upstream bodies into GenerationResult."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from conftest import PNG_B64, PNG_BYTES, PNG_DATA_URL, chat_body, http_response
from imagegateway.models.errors import UnsupportedShapeError
from imagegateway.models.requests import GenerateImageRequest, ShapeKind
from imagegateway.services.normalizer_service import ResponseNormalizer, image_format, size_kb
from imagegateway.services.persist_service import ImageBatchPersister


@pytest.fixture
def normalizer(tmp_path):
    return ResponseNormalizer(ImageBatchPersister(tmp_path / "images"))


def _image(url: str) -> dict:
    return {"type": "image_url", "image_url": {"url": url}}


@pytest.mark.asyncio
async def test_chat_inline_image_concise(normalizer):
    body = chat_body(content="", images=[_image(PNG_DATA_URL)], usage={"total_tokens": 1290})
    request = GenerateImageRequest(prompt="a red dragon")

    result = await normalizer.normalize(request, body, ShapeKind.CHAT)

    assert result.success is True
    assert result.prompt == "a red dragon"
    assert result.message == "Image generated successfully"
    assert result.image.kind == "base64"
    assert result.image.data is None
    assert result.image.format == "png"
    assert result.image.size_kb == size_kb(PNG_DATA_URL)
    assert result.usage.tokens == 1290
    assert result.saved_to is None


@pytest.mark.asyncio
async def test_chat_inline_image_full_response_and_saved(normalizer, tmp_path):
    body = chat_body(content="Here is your dragon", images=[_image(PNG_DATA_URL)])
    request = GenerateImageRequest(
        prompt="a red dragon", save_to_file=True, filename="dragon", show_full_response=True
    )

    result = await normalizer.normalize(request, body, ShapeKind.CHAT)

    assert result.message == "Here is your dragon"
    assert result.image.data == PNG_DATA_URL
    assert result.saved_to is not None
    saved = Path(result.saved_to)
    assert saved.parent == tmp_path / "images"
    assert saved.name.startswith("dragon_")
    assert saved.suffix == ".png"
    assert saved.read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_chat_url_image(normalizer):
    body = chat_body(content="![img](https://cdn.example.com/out.jpg)")

    result = await normalizer.normalize(GenerateImageRequest(prompt="p"), body, ShapeKind.CHAT)

    assert result.image.kind == "url"
    assert result.image.url == "https://cdn.example.com/out.jpg"
    assert result.usage is None


@pytest.mark.asyncio
async def test_chat_url_image_saved_via_fetch(normalizer):
    body = chat_body(content="https://cdn.example.com/out")

    with patch("imagegateway.services.resolver_service.httpx.AsyncClient") as mock_httpx:
        mock_httpx.return_value.__aenter__.return_value.get = AsyncMock(
            return_value=http_response(b"\xff\xd8\xff", content_type="image/jpeg")
        )
        result = await normalizer.normalize(
            GenerateImageRequest(prompt="p", save_to_file=True), body, ShapeKind.CHAT
        )

    assert result.saved_to.endswith("_1.jpg")


@pytest.mark.asyncio
async def test_chat_text_only_reply_is_success(normalizer):
    body = chat_body(content="Sorry, I can only describe it: a red dragon over a castle.")

    result = await normalizer.normalize(
        GenerateImageRequest(prompt="p", save_to_file=True), body, ShapeKind.CHAT
    )

    assert result.success is True
    assert result.image is None
    assert result.saved_to is None
    assert result.message.startswith("Sorry")


@pytest.mark.asyncio
async def test_chat_save_failure_is_not_fatal(normalizer):
    body = chat_body(images=[_image("data:image/png;base64")])

    result = await normalizer.normalize(
        GenerateImageRequest(prompt="p", save_to_file=True), body, ShapeKind.CHAT
    )

    assert result.success is True
    assert result.image.kind == "base64"
    assert result.saved_to is None


@pytest.mark.asyncio
async def test_chat_without_choices_raises(normalizer):
    with pytest.raises(UnsupportedShapeError, match="choices"):
        await normalizer.normalize(GenerateImageRequest(prompt="p"), {"error": "nope"}, ShapeKind.CHAT)


@pytest.mark.asyncio
async def test_non_object_body_raises(normalizer):
    with pytest.raises(UnsupportedShapeError):
        await normalizer.normalize(GenerateImageRequest(prompt="p"), ["x"], ShapeKind.IMAGE_GENERATION)


@pytest.mark.asyncio
async def test_image_generation_preserves_order(normalizer):
    body = {
        "created": 1,
        "data": [
            {"b64_json": PNG_B64, "revised_prompt": "a majestic red dragon"},
            {"url": "https://cdn.example.com/2.png"},
        ],
        "usage": {"total_tokens": 42},
    }
    request = GenerateImageRequest(prompt="a red dragon", model="openai/dall-e-3")

    result = await normalizer.normalize(request, body, ShapeKind.IMAGE_GENERATION)

    assert [d.kind for d in result.images] == ["base64", "url"]
    assert result.images[0].revised_prompt == "a majestic red dragon"
    assert result.images[0].data is None
    assert result.images[0].size_kb == size_kb(PNG_B64)
    assert result.images[1].url == "https://cdn.example.com/2.png"
    assert result.image == result.images[0]
    assert result.usage.tokens == 42


@pytest.mark.asyncio
async def test_image_generation_saved_files_align_with_input(normalizer):
    body = {"data": [{"b64_json": PNG_B64}, {"b64_json": "abc"}, {"b64_json": PNG_B64}]}
    request = GenerateImageRequest(prompt="p", model="openai/dall-e-3", save_to_file=True, filename="set")

    result = await normalizer.normalize(request, body, ShapeKind.IMAGE_GENERATION)

    assert len(result.saved_files) == 3
    assert result.saved_files[1] is None
    assert result.saved_files[0].endswith("_1.png")
    assert result.saved_files[2].endswith("_3.png")
    assert result.saved_to == result.saved_files[0]


@pytest.mark.asyncio
async def test_image_generation_without_data_raises(normalizer):
    with pytest.raises(UnsupportedShapeError, match="data array"):
        await normalizer.normalize(GenerateImageRequest(prompt="p"), {"choices": []}, ShapeKind.IMAGE_GENERATION)


@pytest.mark.asyncio
async def test_image_generation_item_without_image_raises(normalizer):
    with pytest.raises(UnsupportedShapeError, match="#2"):
        await normalizer.normalize(
            GenerateImageRequest(prompt="p"),
            {"data": [{"url": "https://x.test/a.png"}, {"revised_prompt": "only text"}]},
            ShapeKind.IMAGE_GENERATION,
        )


def test_size_kb_measures_encoded_length():
    assert size_kb("a" * 1024) == 1
    assert size_kb("a" * 1535) == 1
    assert size_kb("a" * 1536) == 2
    assert size_kb("a" * 10 * 1024) == 10
    assert size_kb("") == 0


def test_image_format():
    assert image_format("data:image/jpeg;base64,xyz") == "jpeg"
    assert image_format("data:image/png,xyz") == "png"
    assert image_format(PNG_B64) == "unknown"
