"""Local persistence for the wallpaper and preferences."""

from .repository import PreferenceStore, WallpaperStore

__all__ = ["PreferenceStore", "WallpaperStore"]
