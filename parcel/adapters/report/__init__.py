"""Test-report sink."""
