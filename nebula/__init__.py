"""Nebula: AI-generated wallpapers with a locally cached latest image."""

__version__ = "0.1.0"
