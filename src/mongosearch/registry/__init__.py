"""Action registry."""

from .registry import ActionRegistry, get_registry, reset_registry, set_registry

__all__ = ["ActionRegistry", "get_registry", "reset_registry", "set_registry"]
