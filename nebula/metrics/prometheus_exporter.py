"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge


wallpaper_generation_total = Counter(
    "wallpaper_generation_total",
    "Total number of wallpaper generation cycles by outcome.",
    ["outcome"],
)

wallpaper_generation_in_progress = Gauge(
    "wallpaper_generation_in_progress",
    "Number of wallpaper generation cycles currently in flight.",
)

wallpaper_last_success_timestamp = Gauge(
    "wallpaper_last_success_timestamp_seconds",
    "Unix timestamp of the last stored wallpaper.",
)
