"""Resolution of image references into bytes plus a file extension."""

import base64
import binascii
import logging
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import httpx

from imagegateway.models.errors import FetchError, InvalidDataUrlError, NoImageDataError
from imagegateway.models.references import (
    Base64Reference,
    DataUrlReference,
    ImageReference,
    RawBytesReference,
    RemoteUrlReference,
    ResolvedImage,
)

logger = logging.getLogger(__name__)

MIME_TO_EXTENSION: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/avif": "avif",
    "image/svg+xml": "svg",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
}

EXTENSION_TO_MIME: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "avif": "image/avif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
}

ALLOWED_URL_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif", "bmp", "tiff", "svg", "ico", "avif"}

DEFAULT_EXTENSION = "png"

_DATA_URL_RE = re.compile(r"^data:([^;,]+)?(;base64)?,(.*)$", re.IGNORECASE | re.DOTALL)
_BASE64_PREFIX_RE = re.compile(r"^data:(.*?);base64,", re.DOTALL)


def mime_to_extension(mime: str | None) -> str | None:
    """Map a content type (parameters ignored) to an extension, or None."""
    if not mime:
        return None
    clean = mime.split(";")[0].strip().lower()
    return MIME_TO_EXTENSION.get(clean)


def extension_from_url(url: str) -> str | None:
    """Guess an extension from a URL path suffix, limited to known image types."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    ext = PurePosixPath(path).suffix[1:].lower()
    if not ext or ext not in ALLOWED_URL_EXTENSIONS:
        return None
    return "jpg" if ext == "jpeg" else ext


def parse_data_url(data_url: str) -> tuple[bytes, str | None]:
    """
    Decode a ``data:[<mime>][;base64],<data>`` string.

    Without the ``;base64`` marker the data is percent-decoded text, returned as UTF-8.

    Returns:
        (decoded bytes, mime type or None)

    Raises:
        InvalidDataUrlError: If the string is not a data URL or its base64 is corrupt
    """
    match = _DATA_URL_RE.match(data_url)
    if not match:
        raise InvalidDataUrlError(f"Invalid data URL: {data_url[:48]!r}")

    mime, base64_marker, data = match.groups()
    if not base64_marker:
        return unquote(data).encode("utf-8"), mime

    try:
        return base64.b64decode(data), mime
    except (binascii.Error, ValueError) as e:
        raise InvalidDataUrlError(f"Invalid base64 payload in data URL: {str(e)}") from e


def decode_base64_payload(payload: str) -> tuple[bytes, str | None]:
    """Decode base64 text, stripping and capturing an optional ``data:<mime>;base64,`` prefix."""
    mime = None
    match = _BASE64_PREFIX_RE.match(payload)
    if match:
        mime = match.group(1) or None
        payload = payload[match.end():]

    try:
        return base64.b64decode(payload), mime
    except (binascii.Error, ValueError) as e:
        raise NoImageDataError(f"Could not decode base64 image payload: {str(e)}") from e


class ImageReferenceResolver:
    """Turns any ImageReference variant into a ResolvedImage."""

    def __init__(self, timeout_seconds: float = 60.0):
        """
        Initialize resolver.

        Args:
            timeout_seconds: Timeout for fetching remote image URLs
        """
        self.timeout_seconds = timeout_seconds

    async def resolve(self, ref: ImageReference) -> ResolvedImage:
        """
        Resolve a reference to bytes and an extension.

        Extension priority: discovered mime type, then URL path suffix, then png.
        The mime hint is only consulted for references that are not fetched.

        Args:
            ref: Reference to resolve

        Returns:
            ResolvedImage with the decoded bytes

        Raises:
            NoImageDataError: If the reference carries no usable data
            InvalidDataUrlError: If a data URL is malformed
            FetchError: If a remote URL answers with a non-2xx status
        """
        data: bytes | None = None
        mime: str | None = None
        url_ext: str | None = None
        fetched = False

        if isinstance(ref, RemoteUrlReference):
            if ref.is_data_url:
                data, mime = parse_data_url(ref.url)
            else:
                data, mime = await self._fetch(ref.url)
                url_ext = extension_from_url(ref.url)
                fetched = True
        elif isinstance(ref, DataUrlReference):
            data, mime = parse_data_url(ref.data_url)
        elif isinstance(ref, Base64Reference):
            data, mime = decode_base64_payload(ref.payload)
        elif isinstance(ref, RawBytesReference):
            data = ref.data

        if data is None:
            raise NoImageDataError(f"No image data found in {type(ref).__name__}")

        if not fetched:
            mime = mime or ref.mime_hint
        extension = mime_to_extension(mime) or url_ext or DEFAULT_EXTENSION
        return ResolvedImage(data=data, extension=extension)

    async def _fetch(self, url: str) -> tuple[bytes, str | None]:
        """GET a remote image; returns (body, content type)."""
        logger.debug(f"🌐 [ImageResolver] Fetching {url}")
        async with httpx.AsyncClient(timeout=self.timeout_seconds, follow_redirects=True) as client:
            response = await client.get(url)

        if not response.is_success:
            raise FetchError(url, response.status_code, response.reason_phrase, body=response.text[:500])

        return response.content, response.headers.get("content-type")
