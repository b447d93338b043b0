"""Installed-state index."""
