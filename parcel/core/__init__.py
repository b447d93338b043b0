"""Core layer — models, configuration, persistence and lifecycle services."""
