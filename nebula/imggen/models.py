"""Value objects exchanged during a generation cycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from nebula.imggen.errors import WallpaperGenerationError


class Orientation(str, Enum):
    """Device orientation used to pick the requested image size."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    SQUARE = "square"


class ImageSize(str, Enum):
    """Image dimensions accepted by the provider."""

    PORTRAIT = "1024x1792"
    LANDSCAPE = "1792x1024"
    SQUARE = "1024x1024"

    @classmethod
    def for_orientation(cls, orientation: Orientation) -> "ImageSize":
        return cls[orientation.name]


class Quality(str, Enum):
    """Quality tier sent to the provider."""

    STANDARD = "standard"
    HIGH = "hd"

    @classmethod
    def parse(cls, value: str) -> "Quality":
        """Accept either the wire value or the tier name (``high``/``standard``)."""

        normalised = value.strip().lower()
        for member in cls:
            if normalised in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown image quality: {value!r}")


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """A single image request. Built fresh for every cycle."""

    prompt: str
    size: ImageSize
    quality: Quality = Quality.HIGH

    def __post_init__(self) -> None:
        if not self.prompt.strip():
            raise ValueError("GenerationRequest.prompt must not be empty.")

    def to_payload(self, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "prompt": self.prompt,
            "n": 1,
            "size": self.size.value,
            "quality": self.quality.value,
        }


@dataclass(frozen=True, slots=True)
class ImageInfo:
    """What Pillow learned about the downloaded image."""

    format: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class StoredWallpaper:
    """The single most recent wallpaper and when it was generated."""

    image: bytes
    timestamp: datetime
    format: str | None = None


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Terminal outcome of one cycle: an image or a typed failure."""

    image: bytes | None = None
    generated_at: datetime | None = None
    prompt: str | None = None
    info: ImageInfo | None = None
    error: WallpaperGenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(
        cls,
        image: bytes,
        generated_at: datetime,
        *,
        prompt: str,
        info: ImageInfo,
    ) -> "GenerationResult":
        return cls(image=image, generated_at=generated_at, prompt=prompt, info=info)

    @classmethod
    def failed(cls, error: WallpaperGenerationError) -> "GenerationResult":
        return cls(error=error)

    def raise_for_error(self) -> None:
        """Re-raise the failure, if any, for callers that prefer exceptions."""

        if self.error is not None:
            raise self.error
