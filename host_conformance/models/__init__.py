"""Data models for catalog, configuration, descriptors and results."""
