"""Base model shared by greader records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ReaderModel(BaseModel):
    """Base model with standard configuration.

    Records are immutable once built by the converter.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )
