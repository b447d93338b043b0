"""Append-only ledgers."""
