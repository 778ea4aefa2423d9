"""Pydantic schemas for input documents and output records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr


class Document(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: StrictInt
    text: StrictStr


class OutputRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    embedding: list[float]
