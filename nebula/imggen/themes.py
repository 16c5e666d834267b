"""Preset themes offered to the user."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Theme:
    """A named preset mapping to a descriptive phrase."""

    name: str
    description: str
    requires_prompt: bool = False


CUSTOM_THEME_NAME = "Custom"

PRESETS: tuple[Theme, ...] = (
    Theme("Cosmic", "Deep space, galaxies, nebulae, and celestial bodies"),
    Theme("Neon City", "Cyberpunk urban landscapes with glowing neon lights"),
    Theme("Abstract", "Fluid shapes, bold colors, and geometric patterns"),
    Theme("Minimal", "Clean, simple designs with subtle color gradients"),
    Theme("Nature", "Serene landscapes, forests, oceans, and natural beauty"),
    Theme(CUSTOM_THEME_NAME, "Create your own unique wallpaper description", requires_prompt=True),
)


def find_theme(name: str) -> Theme | None:
    """Return the preset with the given name, ignoring case."""

    wanted = name.strip().casefold()
    for theme in PRESETS:
        if theme.name.casefold() == wanted:
            return theme
    return None
