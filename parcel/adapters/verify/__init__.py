"""Checksum and signature verifiers."""
