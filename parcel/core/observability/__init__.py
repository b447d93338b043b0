"""Logging setup and per-artifact log capture."""
