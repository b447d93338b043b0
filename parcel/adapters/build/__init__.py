"""Command-driven builder backends."""
