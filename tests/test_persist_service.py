"""Tests for batch persistence of resolved images."""

import re
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import PNG_B64, PNG_BYTES, PNG_DATA_URL
from imagegateway.models.references import Base64Reference, DataUrlReference, RawBytesReference
from imagegateway.services.persist_service import (
    ImageBatchPersister,
    filesystem_timestamp,
    sanitize_file_part,
)


@pytest.mark.asyncio
async def test_persist_creates_nested_output_dir(tmp_path):
    output_dir = tmp_path / "a" / "b" / "images"
    persister = ImageBatchPersister(output_dir)

    saved = await persister.persist([RawBytesReference(data=PNG_BYTES)], "cat")

    assert output_dir.is_dir()
    assert len(saved) == 1
    assert Path(saved[0]).read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_persist_partial_failure_keeps_order(tmp_path):
    """A malformed middle reference leaves a None slot and does not stop the batch."""
    persister = ImageBatchPersister(tmp_path)
    refs = [
        DataUrlReference(data_url=PNG_DATA_URL),
        DataUrlReference(data_url="data:image/png;base64"),
        Base64Reference(payload=PNG_B64, mime_hint="image/jpeg"),
    ]

    saved = await persister.persist(refs, "batch")

    assert len(saved) == 3
    assert saved[1] is None
    assert saved[0].endswith("_1.png")
    assert saved[2].endswith("_3.jpg")
    assert Path(saved[0]).read_bytes() == PNG_BYTES
    assert Path(saved[2]).read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_persist_filename_is_sanitized(tmp_path):
    persister = ImageBatchPersister(tmp_path)

    base_name = "my cat/dog — “best” " + "x" * 100
    saved = await persister.persist([RawBytesReference(data=PNG_BYTES)], base_name)

    name = Path(saved[0]).name
    safe_base = sanitize_file_part(base_name)
    assert re.fullmatch(r"[A-Za-z0-9_\-]+\.png", name)
    assert safe_base.startswith("my_cat_dog_best_x")
    assert len(safe_base) == 64
    assert name.startswith(safe_base + "_")
    assert name.endswith("_1.png")


@pytest.mark.asyncio
async def test_persist_default_base_name(tmp_path):
    persister = ImageBatchPersister(tmp_path)

    saved = await persister.persist([RawBytesReference(data=PNG_BYTES)])

    assert Path(saved[0]).name.startswith("generated_image_")


@pytest.mark.asyncio
async def test_persist_empty_batch(tmp_path):
    persister = ImageBatchPersister(tmp_path / "empty")

    assert await persister.persist([], "nothing") == []


def test_sanitize_file_part():
    assert sanitize_file_part("hello world") == "hello_world"
    assert sanitize_file_part("a/b\\c:d") == "a_b_c_d"
    assert sanitize_file_part("keep-this_one") == "keep-this_one"
    assert sanitize_file_part("é") == "_"
    assert len(sanitize_file_part("z" * 200)) == 64


def test_filesystem_timestamp_has_no_colons_or_dots():
    stamp = filesystem_timestamp(datetime(2026, 10, 18, 9, 30, 15, 123456, tzinfo=timezone.utc))

    assert stamp == "2026-10-18T09-30-15-123456Z"
    assert ":" not in filesystem_timestamp()
    assert "." not in filesystem_timestamp()
