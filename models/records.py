"""Domain records produced by one polling cycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Union


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A validated temperature reading decoded from one sensor report."""

    sensor_id: str
    temperature_c: float
    timestamp: datetime


class FailureKind(str, Enum):
    """Why a report file produced no reading this cycle."""

    open_failed = "cannot open file"
    read_failed = "cannot read file"
    metadata_failed = "cannot read file metadata"
    grammar_mismatch = "content does not match report format"
    crc_mismatch = "crc check failed"
    invalid_integer = "temperature is not an integer"
    out_of_range = "temperature outside plausible range"
    missing_id = "sensor id not found in path"


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A skipped report file and the reason it was skipped."""

    path: Path
    kind: FailureKind
    detail: str = ""

    @property
    def reason(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


ParseResult = Union[SensorReading, ParseFailure]
