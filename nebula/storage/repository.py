"""File-backed storage for the latest wallpaper and user preferences."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from nebula.imggen.models import StoredWallpaper
from nebula.imggen.themes import find_theme

logger = logging.getLogger(__name__)

METADATA_FILE = "wallpaper.json"
IMAGE_PREFIX = "wallpaper-"
IMAGE_SUFFIX = ".img"


def _write_durably(path: Path, body: bytes) -> None:
    """Write ``body`` to a temp file, fsync it and atomically move it into place."""

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "wb") as handle:
        handle.write(body)
        handle.flush()
        os.fsync(handle.fileno())
    os.replace(tmp_path, path)


def _fsync_dir(path: Path) -> None:
    if not hasattr(os, "O_DIRECTORY"):
        return
    fd = os.open(path, os.O_RDONLY | os.O_DIRECTORY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class WallpaperStore:
    """
    Holds the single most recent wallpaper.

    The image and a small JSON record pointing at it live under ``root``. ``put``
    returns only after both are on disk; the JSON record is replaced atomically, so a
    crash leaves either the previous wallpaper or the new one.
    """

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._current: StoredWallpaper | None = None
        self._image_name: str | None = None

    @property
    def root(self) -> Path:
        return self._root

    @property
    def image_path(self) -> Path | None:
        """Path of the current image on disk, if any."""

        if self._image_name is None:
            return None
        return self._root / self._image_name

    def get(self) -> StoredWallpaper | None:
        """Return the current record, or ``None`` if nothing has been written."""

        return self._current

    async def restore(self) -> StoredWallpaper | None:
        """Load the persisted record. Call once at process start."""

        return await asyncio.to_thread(self._restore_sync)

    async def put(self, image: bytes, timestamp: datetime, image_format: str | None = None) -> StoredWallpaper:
        """Overwrite the stored wallpaper and return the new record."""

        if not image:
            raise ValueError("Refusing to store an empty image.")
        # The write runs to completion in its thread even if the caller is cancelled.
        return await asyncio.to_thread(self._put_sync, bytes(image), timestamp, image_format or None)

    async def clear(self) -> bool:
        """Delete the stored wallpaper. Returns ``False`` if there was none."""

        return await asyncio.to_thread(self._clear_sync)

    def _put_sync(self, image: bytes, timestamp: datetime, image_format: str | None) -> StoredWallpaper:
        digest = hashlib.sha256(image).hexdigest()
        image_name = f"{IMAGE_PREFIX}{digest[:16]}{IMAGE_SUFFIX}"
        record = {
            "image_file": image_name,
            "timestamp": timestamp.isoformat(),
            "sha256": digest,
            "size": len(image),
            "format": image_format,
        }
        with self._lock:
            _write_durably(self._root / image_name, image)
            _write_durably(
                self._root / METADATA_FILE,
                json.dumps(record, indent=2).encode("utf-8"),
            )
            _fsync_dir(self._root)
            wallpaper = StoredWallpaper(image=image, timestamp=timestamp, format=image_format)
            self._current = wallpaper
            self._image_name = image_name
            self._remove_stale_images(keep=image_name)
        logger.info("Stored wallpaper (%d bytes) generated at %s.", len(image), timestamp.isoformat())
        return wallpaper

    def _restore_sync(self) -> StoredWallpaper | None:
        with self._lock:
            record = self._read_record()
            if record is None:
                self._current = None
                self._image_name = None
                return None
            wallpaper, image_name = record
            self._current = wallpaper
            self._image_name = image_name
            self._remove_stale_images(keep=image_name)
            return wallpaper

    def _clear_sync(self) -> bool:
        with self._lock:
            metadata_path = self._root / METADATA_FILE
            existed = metadata_path.exists()
            if existed:
                metadata_path.unlink()
                _fsync_dir(self._root)
            self._remove_stale_images(keep=None)
            self._current = None
            self._image_name = None
            return existed

    def _read_record(self) -> tuple[StoredWallpaper, str] | None:
        metadata_path = self._root / METADATA_FILE
        if not metadata_path.exists():
            return None
        try:
            payload: dict[str, Any] = json.loads(metadata_path.read_text(encoding="utf-8"))
            image_name = str(payload["image_file"])
            timestamp = datetime.fromisoformat(payload["timestamp"])
            image = (self._root / image_name).read_bytes()
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("Stored wallpaper record is unreadable: %s", exc)
            return None
        if hashlib.sha256(image).hexdigest() != payload.get("sha256"):
            logger.error("Stored wallpaper %s failed its checksum; ignoring it.", image_name)
            return None
        image_format = payload.get("format")
        return (
            StoredWallpaper(
                image=image,
                timestamp=timestamp,
                format=image_format if isinstance(image_format, str) else None,
            ),
            image_name,
        )

    def _remove_stale_images(self, keep: str | None) -> None:
        for path in self._root.glob(f"{IMAGE_PREFIX}*"):
            if path.name == keep:
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue


class PreferenceStore:
    """JSON-backed user preferences used by the scheduled refresh."""

    def __init__(self, root: Path) -> None:
        self._path = root / "preferences.json"
        root.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def selected_theme(self) -> str | None:
        """Return the saved theme name, if one was chosen."""

        payload = await self._load()
        theme = payload.get("selected_theme")
        return theme if isinstance(theme, str) and theme else None

    async def set_selected_theme(self, name: str) -> str:
        """Persist the selected preset theme and return its canonical name."""

        theme = find_theme(name)
        if theme is None:
            raise ValueError(f"Unknown theme: {name}")
        async with self._lock:
            payload = await self._load()
            payload["selected_theme"] = theme.name
            body = json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")
            await asyncio.to_thread(_write_durably, self._path, body)
        return theme.name

    async def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        data = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        try:
            payload = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("Preferences file %s is corrupt; using defaults.", self._path)
            return {}
        return payload if isinstance(payload, dict) else {}
