"""Async wrapper around the image provider's generation endpoint."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
import pydantic
from pydantic import BaseModel

from nebula.config.settings import Settings
from nebula.imggen.errors import DownloadError, ProviderError
from nebula.imggen.models import GenerationRequest

logger = logging.getLogger(__name__)

GENERATIONS_ENDPOINT = "/images/generations"


class ProviderImage(BaseModel):
    url: str | None = None
    revised_prompt: str | None = None


class ProviderImageResponse(BaseModel):
    """Successful body of the generation endpoint."""

    created: int | None = None
    data: list[ProviderImage]


class ProviderErrorDetail(BaseModel):
    message: str | None = None
    type: str | None = None
    code: Any = None


class ProviderErrorBody(BaseModel):
    """Error body returned with a non-2xx status."""

    error: ProviderErrorDetail


class ImageProviderClient:
    """Submits generation requests and downloads the resulting image."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.provider_base_url.rstrip("/"),
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def create_image(
        self,
        request: GenerationRequest,
        credential: str,
        *,
        on_response: Callable[[], None] | None = None,
    ) -> str:
        """POST the request and return the URL of the generated image."""

        payload = request.to_payload(self._settings.image_model)
        logger.info("Requesting %s image from provider (model=%s).", payload["size"], payload["model"])
        try:
            async with self._client.stream(
                "POST",
                GENERATIONS_ENDPOINT,
                json=payload,
                headers={"Authorization": f"Bearer {credential}"},
            ) as response:
                if on_response is not None:
                    on_response()
                body = await response.aread()
        except httpx.TimeoutException as exc:
            raise ProviderError("Network error: the image provider did not respond in time.") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Network error: {exc}") from exc

        if not response.is_success:
            raise self._error_from_response(response.status_code, body)
        return self._extract_url(response.status_code, body)

    async def download_image(
        self,
        url: str,
        *,
        on_progress: Callable[[float], None] | None = None,
    ) -> bytes:
        """Fetch raw image bytes, reporting the received fraction when the size is known."""

        try:
            target = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise DownloadError("Invalid image URL") from exc
        if target.scheme not in ("http", "https"):
            raise DownloadError("Invalid image URL")

        received = bytearray()
        try:
            async with self._client.stream("GET", target, follow_redirects=True) as response:
                if not response.is_success:
                    raise DownloadError(f"Image download failed: status code {response.status_code}")
                total = int(response.headers.get("Content-Length") or 0)
                async for chunk in response.aiter_bytes():
                    received.extend(chunk)
                    if total and on_progress is not None:
                        on_progress(len(received) / total)
        except httpx.HTTPError as exc:
            raise DownloadError(f"Image download failed: {exc}") from exc

        if not received:
            raise DownloadError("No data received")
        return bytes(received)

    @staticmethod
    def _error_from_response(status_code: int, body: bytes) -> ProviderError:
        try:
            parsed = ProviderErrorBody.model_validate_json(body)
        except pydantic.ValidationError:
            parsed = None
        if parsed is not None and parsed.error.message:
            logger.warning("Provider rejected request with status %s: %s", status_code, parsed.error.message)
            return ProviderError(parsed.error.message, status=status_code)
        logger.warning("Provider rejected request with status %s.", status_code)
        return ProviderError(f"Status code {status_code}", status=status_code)

    @staticmethod
    def _extract_url(status_code: int, body: bytes) -> str:
        try:
            parsed = ProviderImageResponse.model_validate_json(body)
        except pydantic.ValidationError as exc:
            raise ProviderError("Failed to parse API response", status=status_code) from exc
        for image in parsed.data:
            if image.url:
                return image.url
        raise ProviderError("Failed to parse API response", status=status_code)
