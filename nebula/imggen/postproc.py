"""Post-processing utilities for downloaded images."""

from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from nebula.imggen.errors import DecodeError
from nebula.imggen.models import ImageInfo


def decode_image(image_bytes: bytes) -> ImageInfo:
    """Fully decode the payload so a truncated or foreign file is caught before storage."""

    try:
        with Image.open(BytesIO(image_bytes)) as img:
            img.load()
            return ImageInfo(format=img.format or "", width=img.width, height=img.height)
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise DecodeError("Could not process downloaded image") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Could not process downloaded image: {exc}") from exc


# Records written without a decoded format hold the provider's default output.
DEFAULT_FORMAT = "PNG"

_EXTENSION_OVERRIDES = {"JPEG": ".jpg", "TIFF": ".tif"}


def media_type_for(image_format: str | None) -> str:
    """MIME type Pillow registers for ``image_format``."""

    Image.init()
    return Image.MIME.get((image_format or DEFAULT_FORMAT).upper(), "application/octet-stream")


def extension_for(image_format: str | None) -> str:
    fmt = (image_format or DEFAULT_FORMAT).upper()
    return _EXTENSION_OVERRIDES.get(fmt, f".{fmt.lower()}")
