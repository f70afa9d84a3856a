"""Shared base models for API payloads."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Model exposed to clients with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(CamelModel, Generic[DataT]):
    """Standard ``{success, data, message}`` response wrapper."""

    success: bool = True
    data: DataT | None = None
    message: str | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


__all__ = ["CamelModel", "Envelope", "MessageResponse"]
