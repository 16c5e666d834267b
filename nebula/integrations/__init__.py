"""Integration check helpers."""

from .checks import IntegrationCheckResult, check_provider

__all__ = [
    "IntegrationCheckResult",
    "check_provider",
]
