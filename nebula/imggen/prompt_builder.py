"""Prompt construction helpers for the image generation step."""

from __future__ import annotations

from dataclasses import dataclass

from nebula.imggen.errors import ValidationError
from nebula.imggen.themes import Theme, find_theme

THEME_TEMPLATE = (
    "Create a high-resolution futuristic {description} wallpaper for a smartphone. "
    "Use dramatic lighting and a cohesive color palette. Highly detailed."
)


@dataclass(frozen=True, slots=True)
class PromptSource:
    """Either a preset theme name or literal free text."""

    theme: str | None = None
    custom_prompt: str | None = None

    @classmethod
    def from_theme(cls, name: str) -> "PromptSource":
        return cls(theme=name)

    @classmethod
    def custom(cls, text: str) -> "PromptSource":
        return cls(custom_prompt=text)

    def describe(self) -> str:
        if self.custom_prompt is not None:
            return "custom prompt"
        return f"theme {self.theme!r}"


class PromptBuilder:
    """Resolves a prompt source into the text sent to the provider."""

    def __init__(self, template: str = THEME_TEMPLATE) -> None:
        self._template = template

    def build(self, source: PromptSource) -> str:
        """Return the provider prompt or raise ``ValidationError``."""

        if source.custom_prompt is not None:
            prompt = source.custom_prompt.strip()
            if not prompt:
                raise ValidationError("Please describe your wallpaper before generating.")
            return prompt

        if not source.theme:
            raise ValidationError("Choose a theme or enter a custom prompt.")

        theme = find_theme(source.theme)
        if theme is None:
            raise ValidationError(f"Unknown theme: {source.theme}")
        if theme.requires_prompt:
            raise ValidationError(f"The {theme.name} theme needs a description.")
        return self.render(theme)

    def render(self, theme: Theme) -> str:
        return self._template.format(description=theme.description)
