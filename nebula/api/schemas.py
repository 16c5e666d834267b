"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from nebula.imggen.models import Orientation


class ThemeOut(BaseModel):
    name: str
    description: str
    requires_prompt: bool


class GenerateIn(BaseModel):
    """Either ``theme`` or ``prompt``; a prompt wins when both are given."""

    theme: str | None = None
    prompt: str | None = None
    orientation: Orientation | None = None


class WallpaperMeta(BaseModel):
    timestamp: datetime
    size_bytes: int
    media_type: str | None = None


class GenerateOut(WallpaperMeta):
    prompt: str
    format: str
    width: int
    height: int


class GenerationStateOut(BaseModel):
    is_loading: bool
    progress: float
    error_message: str | None = None
    last_generated_at: datetime | None = None


class ThemeIn(BaseModel):
    theme: str


class CredentialIn(BaseModel):
    api_key: str = Field(min_length=1)


class CheckOut(BaseModel):
    name: str
    success: bool
    message: str


class ExportOut(BaseModel):
    path: str
