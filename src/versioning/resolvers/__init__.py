"""Version resolvers."""

from .npm import resolve_version

__all__ = ["resolve_version"]
