"""Wiring of the objects shared by the HTTP app, the worker and the scripts."""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

import httpx

from nebula.api.provider_client import ImageProviderClient
from nebula.config.settings import Settings, get_settings
from nebula.imggen.models import Orientation, Quality
from nebula.imggen.orchestrator import GenerationOrchestrator
from nebula.secrets.keychain import CredentialStore, resolve_credential
from nebula.storage.repository import PreferenceStore, WallpaperStore


@dataclass(slots=True)
class NebulaRuntime:
    """Container for objects shared across entry points."""

    settings: Settings
    client: ImageProviderClient
    store: WallpaperStore
    preferences: PreferenceStore
    credentials: CredentialStore
    orchestrator: GenerationOrchestrator

    def credential(self) -> str | None:
        return resolve_credential(self.credentials, self.settings)

    async def close(self) -> None:
        with suppress(Exception):
            await self.client.close()


def build_runtime(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    credentials: CredentialStore | None = None,
) -> NebulaRuntime:
    """Create the runtime from settings. Call ``store.restore()`` before serving."""

    settings = settings or get_settings()
    root = Path(settings.storage_root)
    client = ImageProviderClient(settings, transport=transport)
    store = WallpaperStore(root)
    orchestrator = GenerationOrchestrator(
        client,
        store,
        orientation=Orientation(settings.orientation.lower()),
        quality=Quality.parse(settings.image_quality),
    )
    return NebulaRuntime(
        settings=settings,
        client=client,
        store=store,
        preferences=PreferenceStore(root),
        credentials=credentials or CredentialStore(settings.keyring_service),
        orchestrator=orchestrator,
    )
