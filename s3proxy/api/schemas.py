"""Pydantic schemas for the public JSON responses."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ObjectEntry(BaseModel):
    name: str
    url: str


class ListResponse(BaseModel):
    error: bool = False
    list: List[ObjectEntry] = Field(default_factory=lambda: [])


class ErrorResponse(BaseModel):
    error: bool = True
    message: str
