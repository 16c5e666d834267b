"""Drives one wallpaper generation cycle end to end."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from nebula.api.provider_client import ImageProviderClient
from nebula.imggen import progress as stages
from nebula.imggen.errors import (
    BusyError,
    MissingCredentialError,
    StorageError,
    WallpaperGenerationError,
)
from nebula.imggen.models import GenerationRequest, GenerationResult, ImageSize, Orientation, Quality
from nebula.imggen.postproc import decode_image
from nebula.imggen.progress import GenerationState, ProgressReporter, ProgressSink
from nebula.imggen.prompt_builder import PromptBuilder, PromptSource
from nebula.metrics.prometheus_exporter import (
    wallpaper_generation_in_progress,
    wallpaper_generation_total,
    wallpaper_last_success_timestamp,
)
from nebula.storage.repository import WallpaperStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _outcome_label(error: WallpaperGenerationError) -> str:
    name = type(error).__name__.removesuffix("Error")
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in name).lstrip("_")


class GenerationOrchestrator:
    """
    Builds the provider request, awaits it, downloads and decodes the image, then
    hands it to the wallpaper store.

    Only one cycle runs per instance; a second call while one is in flight is
    rejected with ``BusyError``. Failures never touch the store and reset progress
    to zero.
    """

    def __init__(
        self,
        client: ImageProviderClient,
        store: WallpaperStore,
        *,
        prompt_builder: PromptBuilder | None = None,
        state: GenerationState | None = None,
        orientation: Orientation = Orientation.PORTRAIT,
        quality: Quality = Quality.HIGH,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._store = store
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._state = state or GenerationState()
        self._orientation = orientation
        self._quality = quality
        self._clock = clock
        self._in_flight = False

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def generate(
        self,
        source: PromptSource,
        credential: str | None,
        *,
        progress: ProgressSink | None = None,
        orientation: Orientation | None = None,
    ) -> GenerationResult:
        """Run one cycle and return its result. Cancellation propagates to the caller."""

        if self._in_flight:
            # The running cycle owns the shared state; only the caller's sink hears about this.
            ProgressReporter(progress).reset()
            wallpaper_generation_total.labels(outcome="busy").inc()
            logger.info("Rejected generation for %s: a cycle is already running.", source.describe())
            return GenerationResult.failed(BusyError())

        self._in_flight = True
        self._state.begin()
        reporter = ProgressReporter(progress, self._state)
        wallpaper_generation_in_progress.inc()
        try:
            result = await self._run(source, credential, reporter, orientation or self._orientation)
        except WallpaperGenerationError as exc:
            reporter.reset()
            self._state.fail(str(exc))
            wallpaper_generation_total.labels(outcome=_outcome_label(exc)).inc()
            logger.warning("Wallpaper generation failed (%s): %s", type(exc).__name__, exc)
            return GenerationResult.failed(exc)
        except asyncio.CancelledError:
            if reporter.value >= stages.COMPLETE:
                logger.info("Wallpaper generation for %s was cancelled after the wallpaper was stored.", source.describe())
                raise
            reporter.reset()
            self._state.fail(None)
            wallpaper_generation_total.labels(outcome="cancelled").inc()
            logger.info("Wallpaper generation for %s was cancelled.", source.describe())
            raise
        except Exception as exc:
            reporter.reset()
            self._state.fail(str(exc))
            wallpaper_generation_total.labels(outcome="unexpected").inc()
            logger.exception("Wallpaper generation crashed.")
            raise
        finally:
            self._in_flight = False
            wallpaper_generation_in_progress.dec()
        return result

    async def _run(
        self,
        source: PromptSource,
        credential: str | None,
        reporter: ProgressReporter,
        orientation: Orientation,
    ) -> GenerationResult:
        prompt = self._prompt_builder.build(source)
        if credential is None or not credential.strip():
            raise MissingCredentialError()

        request = GenerationRequest(
            prompt=prompt,
            size=ImageSize.for_orientation(orientation),
            quality=self._quality,
        )
        reporter.advance(stages.SUBMITTED)
        image_url = await self._client.create_image(
            request,
            credential.strip(),
            on_response=lambda: reporter.advance(stages.RESPONSE_RECEIVED),
        )
        reporter.advance(stages.RESPONSE_PARSED)

        image_bytes = await self._client.download_image(
            image_url,
            on_progress=reporter.band(stages.RESPONSE_PARSED, stages.DOWNLOADED),
        )
        reporter.advance(stages.DOWNLOADED)

        info = await asyncio.to_thread(decode_image, image_bytes)
        result = GenerationResult.succeeded(image_bytes, self._next_timestamp(), prompt=prompt, info=info)
        await self._hand_off(result, reporter)

        logger.info(
            "Generated %s wallpaper %dx%d for %s.",
            info.format or "unknown",
            info.width,
            info.height,
            source.describe(),
        )
        return result

    async def _hand_off(self, result: GenerationResult, reporter: ProgressReporter) -> None:
        """
        Write the result to the store and record the success.

        The write cannot be interrupted once started. If the cycle is cancelled meanwhile,
        the write is awaited first and a landed wallpaper is recorded as a success before
        the cancellation propagates, so state and store always agree.
        """

        write = asyncio.ensure_future(self._store.put(result.image, result.generated_at, result.info.format))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            await asyncio.wait({write})
            if write.exception() is None:
                self._complete(result, reporter)
            raise
        except OSError as exc:
            raise StorageError(f"Could not save wallpaper: {exc}") from exc
        self._complete(result, reporter)

    def _complete(self, result: GenerationResult, reporter: ProgressReporter) -> None:
        reporter.advance(stages.COMPLETE)
        self._state.succeed(result.generated_at)
        wallpaper_generation_total.labels(outcome="success").inc()
        wallpaper_last_success_timestamp.set(result.generated_at.timestamp())

    def _next_timestamp(self) -> datetime:
        """Return now, nudged forward so it is strictly later than the stored record."""

        now = self._clock()
        current = self._store.get()
        if current is not None and now <= current.timestamp:
            now = current.timestamp + timedelta(microseconds=1)
        return now
