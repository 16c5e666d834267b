"""Connectivity check for the image provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from openai import AsyncOpenAI

from nebula.config.settings import Settings, get_settings


@dataclass(slots=True)
class IntegrationCheckResult:
    """Structured result describing the integration check outcome."""

    name: str
    success: bool
    message: str


async def _run_check(
    name: str,
    factory: Callable[[], Awaitable[bool]],
    success_message: str,
) -> IntegrationCheckResult:
    try:
        result = await factory()
    except Exception as exc:  # reported to the caller, not raised
        return IntegrationCheckResult(name=name, success=False, message=str(exc))

    if result:
        return IntegrationCheckResult(name=name, success=True, message=success_message)
    return IntegrationCheckResult(
        name=name,
        success=False,
        message="Service responded with non-success status.",
    )


async def check_provider(credential: str | None, settings: Settings | None = None) -> IntegrationCheckResult:
    """List models with the given API key to confirm it is accepted."""

    if not credential:
        return IntegrationCheckResult(
            name="Image provider",
            success=False,
            message="API key not found. Please set your API key in settings.",
        )

    settings = settings or get_settings()
    client = AsyncOpenAI(
        api_key=credential,
        base_url=settings.provider_base_url.rstrip("/"),
    )

    async def _ping() -> bool:
        try:
            models = await client.models.list()
            return bool(models.data)
        finally:
            await client.close()

    return await _run_check(
        name="Image provider",
        factory=_ping,
        success_message="Image provider accepted the API key.",
    )
