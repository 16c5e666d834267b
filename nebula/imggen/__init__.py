"""Prompt building, request models and the generation error taxonomy."""

from .errors import (
    BusyError,
    DecodeError,
    DownloadError,
    MissingCredentialError,
    ProviderError,
    StorageError,
    ValidationError,
    WallpaperGenerationError,
)
from .models import GenerationRequest, GenerationResult, ImageSize, Orientation, Quality, StoredWallpaper
from .prompt_builder import PromptBuilder, PromptSource
from .themes import PRESETS, Theme, find_theme

__all__ = [
    "BusyError",
    "DecodeError",
    "DownloadError",
    "GenerationRequest",
    "GenerationResult",
    "ImageSize",
    "MissingCredentialError",
    "Orientation",
    "PRESETS",
    "PromptBuilder",
    "PromptSource",
    "ProviderError",
    "Quality",
    "StorageError",
    "StoredWallpaper",
    "Theme",
    "ValidationError",
    "WallpaperGenerationError",
    "find_theme",
]
