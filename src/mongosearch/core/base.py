"""Core action abstractions: BaseAction, ActionMetadata, ActionKind.

Every component the plugin exposes (indexer, retriever, CRUD and search
index tools) is an action: a named, typed operation registered once at
startup and looked up by exact key afterwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..foundation.errors import ErrorCode, ToolException
from ..runtime.retry import NO_RETRY, RetryPolicy, execute_with_retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


class ActionKind(StrEnum):
    """Role of an action in the host framework."""
    INDEXER = "indexer"
    RETRIEVER = "retriever"
    TOOL = "tool"


def action_key(kind: ActionKind | str, name: str) -> str:
    """Registry key for an action, e.g. ``/retriever/mongodb/menu``."""
    return f"/{ActionKind(kind).value}/{name}"


class ActionMetadata(BaseModel):
    """Metadata describing an action.

    Attributes:
        name: Identifier, unique per kind (e.g. "mongodb/menu/create")
        kind: Indexer, retriever or tool
        description: What the action does (shown to LLM for tool selection)
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z][a-z0-9_\-/]*$")
    kind: ActionKind
    description: str = Field(..., min_length=10)

    @property
    def key(self) -> str:
        return action_key(self.kind, self.name)


# Type variables for action parameter schemas and results
TParams = TypeVar("TParams", bound=BaseModel)
TResult = TypeVar("TResult")


class BaseAction(ABC, Generic[TParams, TResult]):
    """Abstract base class for all actions.

    Subclasses must:
    - Define `params_schema` class variable with the Pydantic model type
    - Implement `_run(params)`

    Instances carry their metadata because names are derived from the
    component id chosen in plugin configuration.
    """

    params_schema: ClassVar[type[BaseModel]]

    __slots__ = ("metadata", "retry_policy")

    def __init__(self, metadata: ActionMetadata, retry_policy: RetryPolicy | None = None) -> None:
        self.metadata = metadata
        self.retry_policy = retry_policy or NO_RETRY

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def key(self) -> str:
        return self.metadata.key

    def validate(self, params: dict[str, Any] | BaseModel) -> TParams:
        """Coerce params into ``params_schema``.

        Raises:
            ToolException: INVALID_PARAMS when validation fails
        """
        if isinstance(params, self.params_schema):
            return params  # type: ignore[return-value]
        if isinstance(params, BaseModel):
            params = params.model_dump(by_alias=True)
        try:
            return self.params_schema.model_validate(params)  # type: ignore[return-value]
        except ValidationError as e:
            raise ToolException.create(
                self.name, f"Invalid parameters: {e}", ErrorCode.INVALID_PARAMS, recoverable=False
            ) from e

    async def _retry(self, operation: Callable[[], Awaitable[Any]], what: str) -> Any:
        """Run a driver call under this action's retry policy."""
        return await execute_with_retry(operation, self.retry_policy, name=f"{self.name}:{what}")

    async def run(self, params: dict[str, Any] | TParams) -> TResult:
        """Validate params and execute."""
        return await self._run(self.validate(params))

    @abstractmethod
    async def _run(self, params: TParams) -> TResult:
        """Execute the action. Driver errors propagate unchanged."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"
