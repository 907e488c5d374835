"""Image reference variants and resolved image values."""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from imagegateway.models.errors import NoImageDataError

ImageExtension = Literal["png", "jpg", "webp", "gif", "bmp", "tiff", "svg", "ico", "avif"]


class _ReferenceBase(BaseModel):
    mime_hint: Optional[str] = Field(
        None,
        description="Declared content type, used only when the reference itself carries none",
    )


class RemoteUrlReference(_ReferenceBase):
    """An http(s) URL, or a data URL delivered where a URL was expected."""

    kind: Literal["remote_url"] = "remote_url"
    url: str = Field(..., min_length=1)

    @property
    def is_data_url(self) -> bool:
        return self.url.startswith("data:")


class DataUrlReference(_ReferenceBase):
    """A ``data:<mime>;base64,<payload>`` or ``data:<mime>,<text>`` string."""

    kind: Literal["data_url"] = "data_url"
    data_url: str = Field(..., min_length=1)


class Base64Reference(_ReferenceBase):
    """Raw base64 text, possibly still carrying a ``data:...;base64,`` prefix."""

    kind: Literal["base64"] = "base64"
    payload: str = Field(..., min_length=1)


class RawBytesReference(_ReferenceBase):
    """Already decoded image bytes."""

    kind: Literal["raw_bytes"] = "raw_bytes"
    data: bytes


ImageReference = Annotated[
    Union[RemoteUrlReference, DataUrlReference, Base64Reference, RawBytesReference],
    Field(discriminator="kind"),
]


class ResolvedImage(BaseModel):
    """Image bytes plus the file extension they should be written with."""

    data: bytes
    extension: ImageExtension = "png"


def classify_reference(value: Any, mime_hint: str | None = None) -> ImageReference:
    """
    Wrap an arbitrary "image" value in the matching reference variant.

    Args:
        value: bytes, a URL, a data URL, or base64 text
        mime_hint: Optional declared content type

    Returns:
        One ImageReference variant

    Raises:
        NoImageDataError: If the value is empty or of an unknown type
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawBytesReference(data=bytes(value), mime_hint=mime_hint)

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.startswith("data:"):
            return DataUrlReference(data_url=text, mime_hint=mime_hint)
        if text.startswith(("http://", "https://")):
            return RemoteUrlReference(url=text, mime_hint=mime_hint)
        return Base64Reference(payload=text, mime_hint=mime_hint)

    raise NoImageDataError(f"No image data found in value of type {type(value).__name__}")
