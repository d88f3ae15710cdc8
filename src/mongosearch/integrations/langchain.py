"""LangChain integration for mongosearch.

Provides adapters to convert registered MongoDB tools (CRUD and search
index administration) to LangChain StructuredTools for use with agents.

Requires: pip install mongosearch[langchain]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import orjson

from ..core import ActionKind
from ..foundation.errors import ToolError, ToolException

if TYPE_CHECKING:
    from langchain_core.tools import StructuredTool

    from ..core import BaseAction
    from ..registry import ActionRegistry


def _render(result: Any) -> str:
    return orjson.dumps(result, default=str).decode()


def to_langchain(action: BaseAction[Any, Any]) -> StructuredTool:
    """Convert a tool-kind action to a LangChain StructuredTool.

    Results are returned as JSON strings. Failures are rendered as
    ToolError strings instead of raising, so the agent can read them.

    Raises:
        ValueError: If the action is an indexer or retriever
        ImportError: If langchain-core is not installed
    """
    if action.metadata.kind is not ActionKind.TOOL:
        raise ValueError(f"Only tool actions can be exposed to LangChain, got {action.key}")
    try:
        from langchain_core.tools import StructuredTool
    except ImportError as e:
        raise ImportError(
            "LangChain integration requires langchain-core. "
            "Install with: pip install mongosearch[langchain]"
        ) from e

    name = action.name

    async def _ainvoke(**kwargs: Any) -> str:
        try:
            return _render(await action.run(kwargs))
        except ToolException as e:
            return e.error.render()
        except Exception as e:
            return ToolError.from_exception(name, e, "Execution failed").render()

    return StructuredTool.from_function(
        coroutine=_ainvoke,
        name=name.replace("/", "_"),
        description=action.metadata.description,
        args_schema=action.params_schema,
    )


def to_langchain_tools(registry: ActionRegistry) -> list[StructuredTool]:
    """Convert every tool-kind action in a registry to LangChain format."""
    return [to_langchain(a) for a in registry if a.metadata.kind is ActionKind.TOOL]
