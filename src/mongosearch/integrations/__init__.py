"""Framework integrations (optional extras)."""

from .langchain import to_langchain, to_langchain_tools

__all__ = ["to_langchain", "to_langchain_tools"]
