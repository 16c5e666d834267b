"""Error taxonomy for a wallpaper generation cycle."""

from __future__ import annotations


class WallpaperGenerationError(RuntimeError):
    """Base class for failures that end a generation cycle."""


class ValidationError(WallpaperGenerationError):
    """Raised when the prompt cannot be resolved to non-empty text."""


class MissingCredentialError(WallpaperGenerationError):
    """Raised when no provider API key is available."""

    def __init__(self, message: str = "API key not found. Please set your API key in settings.") -> None:
        super().__init__(message)


class BusyError(WallpaperGenerationError):
    """Raised when a cycle is requested while another one is still running."""

    def __init__(self, message: str = "A wallpaper is already being generated.") -> None:
        super().__init__(message)


class ProviderError(WallpaperGenerationError):
    """Raised when the image provider rejects or fails the generation request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        self.message = message
        super().__init__(message)


class DownloadError(WallpaperGenerationError):
    """Raised when the generated image cannot be fetched."""


class DecodeError(WallpaperGenerationError):
    """Raised when the fetched bytes are not a displayable image."""


class StorageError(WallpaperGenerationError):
    """Raised when the wallpaper cannot be written to local storage."""
