"""Documents and the embedder contract.

A Document is the unit that indexers write and retrievers return: a data
payload (text, or a media URL), its data type and free-form metadata.
Embedding generation is delegated to any object satisfying ``Embedder``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, Self, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

TEXT = "text"


class Document(BaseModel):
    """Content plus metadata, stored and retrieved as one record.

    Attributes:
        data: Text content, or a media URL / data URI
        data_type: "text" or the media content type (e.g. "image/png")
        metadata: Arbitrary JSON-compatible metadata
    """

    model_config = ConfigDict(populate_by_name=True)

    data: str
    data_type: str = Field(default=TEXT, alias="dataType")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, metadata: Mapping[str, Any] | None = None) -> Self:
        return cls(data=text, data_type=TEXT, metadata=dict(metadata or {}))

    @classmethod
    def from_media(cls, url: str, content_type: str, metadata: Mapping[str, Any] | None = None) -> Self:
        return cls(data=url, data_type=content_type, metadata=dict(metadata or {}))

    @property
    def is_media(self) -> bool:
        return self.data_type != TEXT

    @property
    def text(self) -> str:
        """Text content, empty for media documents."""
        return "" if self.is_media else self.data


@runtime_checkable
class Embedder(Protocol):
    """Produces one vector per document, in input order."""

    async def embed(
        self,
        documents: Sequence[Document],
        options: Mapping[str, Any] | None = None,
    ) -> list[list[float]]: ...
