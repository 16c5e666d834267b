"""Copy the current wallpaper out of the app's storage."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from nebula.imggen.postproc import extension_for
from nebula.storage.repository import WallpaperStore


async def export_wallpaper(store: WallpaperStore, destination_dir: Path) -> Path:
    """Copy the stored wallpaper into ``destination_dir`` and return the new path."""

    current = store.get()
    source = store.image_path
    if current is None or source is None:
        raise LookupError("There is no wallpaper to export yet.")

    destination_dir.mkdir(parents=True, exist_ok=True)
    target = destination_dir / f"nebula-{current.timestamp.strftime('%Y%m%d_%H%M%S')}{extension_for(current.format)}"
    await asyncio.to_thread(shutil.copyfile, source, target)
    return target
