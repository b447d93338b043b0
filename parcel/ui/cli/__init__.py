"""CLI command groups registered on the ``parcel`` entry point."""
