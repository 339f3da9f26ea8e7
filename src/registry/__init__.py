"""Upstream package registries."""
