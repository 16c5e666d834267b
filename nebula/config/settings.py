"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_TRUTHY = {"1", "true", "yes", "on"}


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


def _as_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True, slots=True)
class Settings:
    """Centralised project settings based on OS environment variables."""

    environment: str = "dev"
    log_level: str = "INFO"

    provider_base_url: str = "https://api.openai.com/v1"
    image_model: str = "dall-e-3"
    image_quality: str = "hd"
    orientation: str = "portrait"
    request_timeout: float = 120.0

    storage_root: str = "storage/wallpaper"
    export_dir: str = ""

    keyring_service: str = "nebula"
    api_key: str = ""
    internal_token: str = ""

    auto_refresh: bool = True
    refresh_hour: int = 2
    refresh_timeout: float = 60.0
    redis_url: str = "redis://localhost:6379/0"


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        environment=os.getenv("ENVIRONMENT", "dev"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        provider_base_url=os.getenv("NEBULA_PROVIDER_BASE_URL", "https://api.openai.com/v1"),
        image_model=os.getenv("NEBULA_IMAGE_MODEL", "dall-e-3"),
        image_quality=os.getenv("NEBULA_IMAGE_QUALITY", "hd"),
        orientation=os.getenv("NEBULA_ORIENTATION", "portrait"),
        request_timeout=float(os.getenv("NEBULA_REQUEST_TIMEOUT", "120")),
        storage_root=os.getenv("NEBULA_STORAGE_ROOT", "storage/wallpaper"),
        export_dir=os.getenv("NEBULA_EXPORT_DIR", ""),
        keyring_service=os.getenv("NEBULA_KEYRING_SERVICE", "nebula"),
        api_key=os.getenv("NEBULA_API_KEY", ""),
        internal_token=os.getenv("NEBULA_INTERNAL_TOKEN", ""),
        auto_refresh=_as_bool(os.getenv("NEBULA_AUTO_REFRESH", "true")),
        refresh_hour=int(os.getenv("NEBULA_REFRESH_HOUR", "2")),
        refresh_timeout=float(os.getenv("NEBULA_REFRESH_TIMEOUT", "60")),
        redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
