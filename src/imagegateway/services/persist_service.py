"""Writes resolved images to uniquely named files in the output directory."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from imagegateway.models.references import ImageReference
from imagegateway.services.resolver_service import ImageReferenceResolver

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "generated_image"
MAX_BASE_NAME_LENGTH = 64

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_\-]+")


def sanitize_file_part(name: str) -> str:
    """Replace runs of characters outside ``[A-Za-z0-9_-]`` with ``_`` and cap the length."""
    return _UNSAFE_CHARS_RE.sub("_", name)[:MAX_BASE_NAME_LENGTH]


def filesystem_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 instant with ``:`` and ``.`` replaced so it is safe in filenames."""
    now = now or datetime.now(timezone.utc)
    stamp = now.astimezone(timezone.utc).replace(tzinfo=None).isoformat(timespec="microseconds") + "Z"
    return stamp.replace(":", "-").replace(".", "-")


class ImageBatchPersister:
    """Resolves and saves batches of image references, one file per reference."""

    def __init__(self, output_dir: Path, resolver: ImageReferenceResolver | None = None):
        """
        Initialize persister.

        Args:
            output_dir: Directory files are written to (created on first use)
            resolver: Resolver instance (creates a default one if not provided)
        """
        self.output_dir = Path(output_dir)
        self.resolver = resolver or ImageReferenceResolver()

    async def persist(self, refs: Sequence[ImageReference], base_name: str | None = None) -> list[str | None]:
        """
        Resolve and write every reference.

        A failure for one reference never aborts the batch; its slot is None.

        Args:
            refs: References to save, in order
            base_name: Human readable filename stem

        Returns:
            One path (or None) per input reference, in input order
        """
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, lambda: self.output_dir.mkdir(parents=True, exist_ok=True))

        safe_base = sanitize_file_part(base_name or DEFAULT_BASE_NAME) or DEFAULT_BASE_NAME
        timestamp = filesystem_timestamp()

        # gather preserves input order regardless of completion order
        return list(
            await asyncio.gather(
                *(self._persist_one(ref, safe_base, timestamp, idx) for idx, ref in enumerate(refs))
            )
        )

    async def _persist_one(self, ref: ImageReference, safe_base: str, timestamp: str, idx: int) -> str | None:
        try:
            resolved = await self.resolver.resolve(ref)
            filepath = self.output_dir / f"{safe_base}_{timestamp}_{idx + 1}.{resolved.extension}"

            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, filepath.write_bytes, resolved.data)
        except Exception as e:
            logger.warning(f"⚠️ [ImagePersister] Failed to save image #{idx + 1}: {str(e)}", exc_info=True)
            return None

        logger.info(f"💾 [ImagePersister] Saved image to: {filepath}")
        return str(filepath)
