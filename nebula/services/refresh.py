"""Entry point used by the daily background refresh."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from nebula.imggen.orchestrator import GenerationOrchestrator
from nebula.imggen.prompt_builder import PromptSource
from nebula.storage.repository import PreferenceStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TIMEOUT = 60.0


@dataclass(slots=True)
class RefreshOutcome:
    """Success flag and message reported back to the scheduler."""

    success: bool
    message: str
    generated_at: datetime | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "message": self.message,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


async def refresh_wallpaper(
    orchestrator: GenerationOrchestrator,
    preferences: PreferenceStore,
    credential: str | None,
    *,
    timeout: float = DEFAULT_REFRESH_TIMEOUT,
) -> RefreshOutcome:
    """Generate a wallpaper for the saved theme, giving up after ``timeout`` seconds."""

    theme = await preferences.selected_theme()
    if theme is None:
        logger.info("Skipping scheduled refresh: no theme has been selected.")
        return RefreshOutcome(success=False, message="No theme selected for scheduled refresh.")

    try:
        result = await asyncio.wait_for(
            orchestrator.generate(PromptSource.from_theme(theme), credential),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Scheduled refresh for %s did not finish within %.0f seconds.", theme, timeout)
        return RefreshOutcome(
            success=False,
            message=f"Wallpaper refresh did not finish within {timeout:g} seconds.",
        )

    if not result.ok:
        return RefreshOutcome(success=False, message=str(result.error))
    logger.info("Scheduled refresh stored a new %s wallpaper.", theme)
    return RefreshOutcome(
        success=True,
        message=f"New {theme} wallpaper generated.",
        generated_at=result.generated_at,
    )
