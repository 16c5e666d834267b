"""Tests for the Celery refresh task wiring."""

from __future__ import annotations

from dataclasses import replace

import keyring
import pytest
import pytest_mock
from keyring.backends import fail

from conftest import FakeProvider
from nebula.config.settings import Settings
from nebula.runtime import build_runtime
from nebula.secrets.keychain import API_KEY_NAME
from nebula.workers import refresh_worker


def test_daily_schedule_runs_refresh_task() -> None:
    entry = refresh_worker.celery_app.conf.beat_schedule["daily-wallpaper-refresh"]

    assert entry["task"] == refresh_worker.REFRESH_TASK_NAME
    assert entry["schedule"].hour == {2}
    assert entry["schedule"].minute == {0}


def test_task_returns_refresh_outcome(mocker: pytest_mock.MockerFixture) -> None:
    mocker.patch("nebula.workers.refresh_worker.configure_logging")
    run_refresh = mocker.patch(
        "nebula.workers.refresh_worker._run_refresh",
        mocker.AsyncMock(return_value={"success": True, "message": "done", "generated_at": None}),
    )

    result = refresh_worker.refresh_wallpaper_task()

    assert result["success"] is True
    run_refresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_refresh_restores_store_and_generates(
    mocker: pytest_mock.MockerFixture,
    settings: Settings,
    provider: FakeProvider,
    fake_keyring: dict,
) -> None:
    runtime = build_runtime(settings, transport=provider.transport)
    await runtime.preferences.set_selected_theme("Cosmic")
    fake_keyring[("nebula-test", API_KEY_NAME)] = "sk-test"
    mocker.patch("nebula.workers.refresh_worker.get_settings", return_value=settings)
    mocker.patch("nebula.workers.refresh_worker.build_runtime", return_value=runtime)

    result = await refresh_worker._run_refresh()

    assert result["success"] is True
    assert runtime.store.get() is not None
    assert provider.generation_requests[0].headers["Authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_run_refresh_on_headless_worker_uses_env_key(
    mocker: pytest_mock.MockerFixture,
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    provider: FakeProvider,
) -> None:
    monkeypatch.setattr(keyring, "get_password", fail.Keyring().get_password)
    headless = replace(settings, api_key="sk-env")
    runtime = build_runtime(headless, transport=provider.transport)
    await runtime.preferences.set_selected_theme("Nature")
    mocker.patch("nebula.workers.refresh_worker.get_settings", return_value=headless)
    mocker.patch("nebula.workers.refresh_worker.build_runtime", return_value=runtime)

    result = await refresh_worker._run_refresh()

    assert result["success"] is True
    assert provider.generation_requests[0].headers["Authorization"] == "Bearer sk-env"


@pytest.mark.asyncio
async def test_run_refresh_without_any_key_reports_failure(
    mocker: pytest_mock.MockerFixture,
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    provider: FakeProvider,
) -> None:
    monkeypatch.setattr(keyring, "get_password", fail.Keyring().get_password)
    runtime = build_runtime(settings, transport=provider.transport)
    await runtime.preferences.set_selected_theme("Nature")
    mocker.patch("nebula.workers.refresh_worker.get_settings", return_value=settings)
    mocker.patch("nebula.workers.refresh_worker.build_runtime", return_value=runtime)

    result = await refresh_worker._run_refresh()

    assert result["success"] is False
    assert result["message"] == "API key not found. Please set your API key in settings."
    assert provider.requests == []
