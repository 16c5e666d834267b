"""Refresh and export services built on the orchestrator and store."""
