"""Host configuration loading."""
