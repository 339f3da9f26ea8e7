"""Helpers shared across registry, storage and installer modules."""
