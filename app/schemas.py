"""Pydantic schemas for the published snapshot document."""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field, RootModel


class SnapshotEntry(BaseModel):
    """Latest reading for one sensor."""

    timestamp: datetime = Field(..., description="When the reading was taken (RFC 3339).")
    temperature: float = Field(..., description="Degrees Celsius.")


class Snapshot(RootModel[Dict[str, SnapshotEntry]]):
    """All readings of one cycle keyed by sensor id."""

    root: Dict[str, SnapshotEntry] = Field(default_factory=dict)
