"""Core abstractions: documents, embedders and actions."""

from .base import ActionKind, ActionMetadata, BaseAction, action_key
from .document import TEXT, Document, Embedder

__all__ = [
    "ActionKind",
    "ActionMetadata",
    "BaseAction",
    "action_key",
    "TEXT",
    "Document",
    "Embedder",
]
