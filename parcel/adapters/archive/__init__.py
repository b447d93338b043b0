"""Archive extractor."""
