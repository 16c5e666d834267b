"""Shared fixtures: settings, a fake keyring, a PNG payload and a fake provider."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any

import httpx
import keyring
import keyring.errors
import pytest
import pytest_asyncio
from PIL import Image

from nebula.api.provider_client import ImageProviderClient
from nebula.config.settings import Settings, get_settings
from nebula.imggen.orchestrator import GenerationOrchestrator
from nebula.storage.repository import WallpaperStore

PROVIDER_BASE_URL = "https://provider.test/v1"
IMAGE_URL = "https://images.test/generated/abc.png"
FIXED_NOW = datetime(2026, 10, 17, 2, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def fake_keyring(monkeypatch: pytest.MonkeyPatch) -> dict[tuple[str, str], str]:
    secrets: dict[tuple[str, str], str] = {}

    def set_password(service: str, name: str, value: str) -> None:
        secrets[(service, name)] = value

    def get_password(service: str, name: str) -> str | None:
        return secrets.get((service, name))

    def delete_password(service: str, name: str) -> None:
        if (service, name) not in secrets:
            raise keyring.errors.PasswordDeleteError("not found")
        del secrets[(service, name)]

    monkeypatch.setattr(keyring, "set_password", set_password)
    monkeypatch.setattr(keyring, "get_password", get_password)
    monkeypatch.setattr(keyring, "delete_password", delete_password)
    return secrets


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        provider_base_url=PROVIDER_BASE_URL,
        storage_root=str(tmp_path / "wallpaper"),
        export_dir=str(tmp_path / "exported"),
        keyring_service="nebula-test",
        internal_token="internal-secret",
        request_timeout=5.0,
    )


@pytest.fixture
def png_bytes() -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (16, 28), color=(40, 20, 90)).save(buffer, format="PNG")
    return buffer.getvalue()


@dataclass
class FakeProvider:
    """Scriptable stand-in for the generation endpoint and the image host."""

    image: bytes
    generation_status: int = 200
    generation_body: Any = None
    download_status: int = 200
    download_body: bytes | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    @property
    def generation_requests(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith("/images/generations")]

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.generation_requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/images/generations"):
            body = self.generation_body
            if body is None:
                body = {"created": 1, "data": [{"url": IMAGE_URL}]}
            if isinstance(body, (bytes, str)):
                return httpx.Response(self.generation_status, content=body)
            return httpx.Response(self.generation_status, json=body)
        if str(request.url) == IMAGE_URL:
            content = self.image if self.download_body is None else self.download_body
            return httpx.Response(self.download_status, content=content)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def provider(png_bytes: bytes) -> FakeProvider:
    return FakeProvider(image=png_bytes)


@pytest.fixture
def store(settings: Settings) -> WallpaperStore:
    return WallpaperStore(Path(settings.storage_root))


@pytest_asyncio.fixture
async def client(settings: Settings, provider: FakeProvider) -> ImageProviderClient:
    client = ImageProviderClient(settings, transport=provider.transport)
    yield client
    await client.close()


@pytest.fixture
def orchestrator(client: ImageProviderClient, store: WallpaperStore) -> GenerationOrchestrator:
    return GenerationOrchestrator(client, store, clock=lambda: FIXED_NOW)
