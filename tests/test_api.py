"""Tests for the HTTP routes."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from conftest import FakeProvider
from nebula.api.main import create_app
from nebula.config.settings import Settings
from nebula.runtime import build_runtime
from nebula.secrets.keychain import API_KEY_NAME

TOKEN_HEADER = {"X-Internal-Token": "internal-secret"}


@pytest.fixture
def api(settings: Settings, provider: FakeProvider, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("NEBULA_INTERNAL_TOKEN", "internal-secret")
    runtime = build_runtime(settings, transport=provider.transport)
    with TestClient(create_app(runtime)) as client:
        yield client


def test_wallpaper_is_404_before_first_generation(api: TestClient) -> None:
    assert api.get("/wallpaper").status_code == 404
    assert api.get("/wallpaper/meta").status_code == 404


def test_themes_listing(api: TestClient) -> None:
    names = [theme["name"] for theme in api.get("/themes").json()]

    assert names == ["Cosmic", "Neon City", "Abstract", "Minimal", "Nature", "Custom"]


def test_generate_without_credential_is_401(api: TestClient, provider: FakeProvider) -> None:
    response = api.post("/generation", json={"theme": "Cosmic"})

    assert response.status_code == 401
    assert provider.requests == []
    assert api.get("/generation").json()["error_message"] == response.json()["detail"]


def test_generate_empty_prompt_is_422(api: TestClient, fake_keyring: dict) -> None:
    fake_keyring[("nebula-test", API_KEY_NAME)] = "sk-test"

    response = api.post("/generation", json={"prompt": "  "})

    assert response.status_code == 422


def test_full_generation_flow(api: TestClient, fake_keyring: dict, png_bytes: bytes, settings: Settings) -> None:
    fake_keyring[("nebula-test", API_KEY_NAME)] = "sk-test"

    response = api.post("/generation", json={"theme": "Minimal", "orientation": "square"})

    assert response.status_code == 200
    body = response.json()
    assert body["format"] == "PNG"
    assert body["size_bytes"] == len(png_bytes)
    state = api.get("/generation").json()
    assert state["progress"] == 1.0
    assert state["is_loading"] is False

    image = api.get("/wallpaper")
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"
    assert image.content == png_bytes
    meta = api.get("/wallpaper/meta").json()
    assert meta["size_bytes"] == len(png_bytes)
    assert meta["media_type"] == "image/png"

    exported = api.post("/wallpaper/export")
    assert exported.status_code == 200
    exported_path = Path(exported.json()["path"])
    assert exported_path.parent == Path(settings.export_dir)
    assert exported_path.suffix == ".png"
    assert exported_path.read_bytes() == png_bytes


def test_provider_failure_maps_to_502(api: TestClient, provider: FakeProvider, fake_keyring: dict) -> None:
    fake_keyring[("nebula-test", API_KEY_NAME)] = "sk-test"
    provider.generation_status = 400
    provider.generation_body = {"error": {"message": "Your request was rejected by the safety system."}}

    response = api.post("/generation", json={"prompt": "something"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Your request was rejected by the safety system."
    assert api.get("/wallpaper").status_code == 404


def test_credential_routes_require_token(api: TestClient) -> None:
    assert api.put("/credential", json={"api_key": "sk-new"}).status_code == 401
    assert api.delete("/credential").status_code == 401


def test_credential_lifecycle(api: TestClient, fake_keyring: dict) -> None:
    assert api.put("/credential", json={"api_key": "sk-new"}, headers=TOKEN_HEADER).status_code == 204
    assert fake_keyring[("nebula-test", API_KEY_NAME)] == "sk-new"

    assert api.delete("/credential", headers=TOKEN_HEADER).status_code == 204
    assert api.delete("/credential", headers=TOKEN_HEADER).status_code == 404


def test_select_theme(api: TestClient) -> None:
    assert api.put("/preferences/theme", json={"theme": "cosmic"}).json() == {"theme": "Cosmic"}
    assert api.put("/preferences/theme", json={"theme": "Vaporwave"}).status_code == 422


def test_jpeg_wallpaper_is_served_and_exported_as_jpeg(api: TestClient, provider: FakeProvider, fake_keyring: dict) -> None:
    fake_keyring[("nebula-test", API_KEY_NAME)] = "sk-test"
    buffer = BytesIO()
    Image.new("RGB", (16, 28), color=(10, 60, 30)).save(buffer, format="JPEG")
    provider.image = buffer.getvalue()

    assert api.post("/generation", json={"theme": "Nature"}).json()["media_type"] == "image/jpeg"

    assert api.get("/wallpaper").headers["content-type"] == "image/jpeg"
    assert Path(api.post("/wallpaper/export").json()["path"]).suffix == ".jpg"
